from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from payview.utils.clock import utcnow


class File(SQLModel, table=True):
    __tablename__ = "files"

    # main info
    id: Optional[int] = Field(default=None, primary_key=True)
    creator_id: str = Field(index=True)
    collection_id: Optional[int] = Field(default=None, foreign_key="file_collections.id")
    slug: str = Field(index=True, unique=True)
    title: str
    description: Optional[str] = None

    # stored object
    file_name: str
    storage_key: str
    file_size_bytes: Optional[int] = None
    content_type: Optional[str] = None

    # pricing; frozen once stripe_price_id is set
    price_cents: int = Field(default=0, ge=0)
    currency: str = Field(default="usd")
    stripe_product_id: Optional[str] = None
    stripe_price_id: Optional[str] = None

    # access window granted to buyers
    expires_at: Optional[datetime] = None
    access_duration_days: Optional[int] = None

    # counters
    max_downloads: Optional[int] = None
    download_count: int = Field(default=0)
    view_count: int = Field(default=0)
    purchase_count: int = Field(default=0)
    total_revenue_cents: int = Field(default=0)

    screenshot_protection: bool = Field(default=True)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def price_locked(self) -> bool:
        return self.stripe_price_id is not None
