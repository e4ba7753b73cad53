from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Loaded once at import time. Required values have no defaults, so a
    missing variable stops the process at startup instead of at first use.
    """

    env: str = "local"
    log_level: str = "INFO"
    log_json: bool = False

    app_url: str
    database_url: str

    # identity provider (Supabase-style HS256 access tokens)
    identity_provider_url: str
    identity_provider_key: str
    identity_audience: str = "authenticated"
    identity_algorithm: str = "HS256"

    # stripe
    stripe_secret_key: str
    stripe_webhook_secret: str
    platform_fee_percentage: float = 5
    currency: str = "usd"

    # object storage (S3 API, Cloudflare R2 in production)
    storage_bucket: str
    storage_endpoint_url: Optional[str] = None
    storage_access_key_id: Optional[str] = None
    storage_secret_access_key: Optional[str] = None
    storage_region: str = "auto"
    signed_url_expires_seconds: int = 3600

    external_timeout_seconds: float = 10

    # email
    brevo_api_key: Optional[str] = None
    mail_from: str = "no-reply@payview.io"
    store_name: str = "PayView"

    @field_validator("platform_fee_percentage")
    @classmethod
    def _fee_in_range(cls, value: float) -> float:
        if not 0 <= value <= 100:
            raise ValueError("platform_fee_percentage must be between 0 and 100")
        return value

    @property
    def identity_issuer(self) -> str:
        return f"{self.identity_provider_url.rstrip('/')}/auth/v1"

    @property
    def base_url(self) -> str:
        return self.app_url.rstrip("/")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
