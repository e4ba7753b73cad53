# payview/services/storage.py
import logging
import time
from typing import BinaryIO, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from slugify import slugify

from payview.config import settings
from payview.exceptions import UpstreamError

logger = logging.getLogger(__name__)


def owned_key(creator_id: str, key: Optional[str]) -> Optional[str]:
    """`key` when it names an object directly inside the creator's folder, else None."""
    prefix = f"{creator_id}/"
    if not key or not key.startswith(prefix):
        return None
    name = key[len(prefix):]
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        return None
    return key


class StorageClient:
    """Single-bucket object storage over the S3 API (Cloudflare R2 in production)."""

    def __init__(self, s3_client, bucket: str):
        self.s3 = s3_client
        self.bucket = bucket

    def object_key(self, creator_id: str, filename: str) -> str:
        name, _, ext = filename.rpartition(".")
        stem = slugify(name or ext)
        suffix = f".{ext.lower()}" if name else ""
        return f"{creator_id}/{stem}_{int(time.time())}{suffix}"

    def upload(self, file: BinaryIO, key: str, content_type: Optional[str]) -> str:
        try:
            self.s3.upload_fileobj(
                file,
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type or "application/octet-stream"},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error(f"Upload of {key} failed: {exc}")
            raise UpstreamError("File storage unavailable") from exc
        return key

    def signed_url(self, key: str, expires: int) -> str:
        try:
            return self.s3.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": key,
                    "ResponseContentDisposition": "inline",
                },
                ExpiresIn=expires,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error(f"Signing {key} failed: {exc}")
            raise UpstreamError("File storage unavailable") from exc


storage_client = None


def get_storage() -> StorageClient:
    global storage_client
    if storage_client is None:
        s3 = boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint_url,
            aws_access_key_id=settings.storage_access_key_id,
            aws_secret_access_key=settings.storage_secret_access_key,
            region_name=settings.storage_region,
            config=Config(
                connect_timeout=settings.external_timeout_seconds,
                read_timeout=settings.external_timeout_seconds,
                retries={"total_max_attempts": 1},
                signature_version="s3v4",
            ),
        )
        storage_client = StorageClient(s3, settings.storage_bucket)
    return storage_client
