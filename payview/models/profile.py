from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from payview.utils.clock import utcnow


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, unique=True)  # identity provider subject
    email: Optional[str] = None
    username: str = Field(index=True)
    full_name: Optional[str] = None
    is_creator: bool = Field(default=False)

    # payouts (stripe connect); the account id is assigned once and never replaced
    stripe_account_id: Optional[str] = Field(default=None, index=True, unique=True)
    stripe_onboarding_complete: bool = Field(default=False)

    total_earnings_cents: int = Field(default=0)
    total_sales_count: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
