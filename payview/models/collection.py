from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from payview.utils.clock import utcnow


class FileCollection(SQLModel, table=True):
    __tablename__ = "file_collections"

    id: Optional[int] = Field(default=None, primary_key=True)
    creator_id: str = Field(index=True)
    title: str
    slug: str = Field(index=True, unique=True)
    description: Optional[str] = None
    price_cents: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
