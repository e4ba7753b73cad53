import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session

from payview.exceptions import AuthorizationError
from payview.models.file import File
from payview.services.access_ledger import AccessLedger
from payview.services.storage import StorageClient, owned_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedUrl:
    url: str
    expires_in: int


class SignedAccessIssuer:
    """
    Hands out presigned GET URLs for files the viewer may read. A missing
    file and a denied viewer get the same error, and storage is only
    contacted after access is granted.
    """

    def __init__(self, session: Session, ledger: AccessLedger, storage: StorageClient, expires_in: int):
        self.session = session
        self.ledger = ledger
        self.storage = storage
        self.expires_in = expires_in

    def issue_url(self, file_id: int, viewer_id: Optional[str]) -> SignedUrl:
        if not viewer_id:
            raise AuthorizationError("Unauthorized")

        file = self.session.get(File, file_id)
        if file is None:
            raise AuthorizationError()

        decision = self.ledger.evaluate_access(file, viewer_id)
        if not decision.granted:
            raise AuthorizationError()

        # only objects in the creator's own folder are ever signed
        key = owned_key(file.creator_id, file.storage_key)
        if key is None:
            logger.error(f"File {file.id} points outside its creator's folder", extra={"file_id": file.id})
            raise AuthorizationError()

        url = self.storage.signed_url(key, self.expires_in)
        logger.info(f"Signed URL issued for file {file.id}", extra={"file_id": file.id, "user_id": viewer_id})
        return SignedUrl(url=url, expires_in=self.expires_in)
