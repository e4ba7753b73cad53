from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FileRecordIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    creator_id: Optional[str] = Field(default=None, alias="creatorId")
    file_name: str = Field(alias="fileName", min_length=1)
    file_url: str = Field(alias="fileUrl", min_length=1)  # storage key returned by /files/upload
    file_size: Optional[int] = Field(default=None, alias="fileSize", ge=0)
    content_type: Optional[str] = Field(default=None, alias="contentType")
    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    access_duration_days: Optional[int] = Field(default=None, alias="accessDurationDays", gt=0)
    screenshot_protection: bool = Field(default=True, alias="screenshotProtection")

    @field_validator("expires_at")
    @classmethod
    def _to_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # stored columns are naive UTC
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class SeriesIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    creator_id: Optional[str] = Field(default=None, alias="creatorId")
    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None


class CreateFileRecordsRequest(BaseModel):
    files: List[FileRecordIn] = Field(min_length=1)
    group: bool = False
    series: Optional[SeriesIn] = None


class ProvisionPriceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_cents: int = Field(alias="priceCents", gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class FileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    creator_id: str
    collection_id: Optional[int] = None
    slug: str
    title: str
    description: Optional[str] = None
    file_name: str
    file_size_bytes: Optional[int] = None
    content_type: Optional[str] = None
    price_cents: int
    currency: str
    stripe_product_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    access_duration_days: Optional[int] = None
    screenshot_protection: bool
    is_active: bool
    created_at: datetime


class FileDetails(FileOut):
    """Display projection: the file plus creator name and sales aggregates."""

    purchase_count: int
    total_revenue_cents: int
    view_count: int
    download_count: int
    creator_username: Optional[str] = None
    sales_count: int = 0
    revenue_cents: int = 0
