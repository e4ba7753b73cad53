from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TransactionDetails(BaseModel):
    """Display projection of a transaction with file and party names."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    transaction_number: str
    file_id: int
    buyer_id: Optional[str] = None
    seller_id: str
    buyer_email: Optional[str] = None
    amount_cents: int
    currency: str
    platform_fee_cents: int
    seller_earnings_cents: int
    status: str
    access_expires_at: Optional[datetime] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    file_title: Optional[str] = None
    file_slug: Optional[str] = None
    seller_username: Optional[str] = None
    buyer_username: Optional[str] = None
