from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from payview.constants.transaction_status import TransactionStatus
from payview.utils.clock import utcnow


class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    id: Optional[int] = Field(default=None, primary_key=True)
    transaction_number: str = Field(index=True, unique=True)

    file_id: int = Field(foreign_key="files.id", index=True)
    buyer_id: Optional[str] = Field(default=None, index=True)
    buyer_email: Optional[str] = None
    seller_id: str = Field(index=True)

    # one transaction per checkout session; the webhook looks it up by this
    stripe_session_id: str = Field(index=True, unique=True)
    stripe_payment_intent_id: Optional[str] = None

    amount_cents: int
    currency: str = Field(default="usd")
    platform_fee_cents: int
    seller_earnings_cents: int

    status: str = Field(default=TransactionStatus.pending.value, index=True)  # pending | completed | failed | refunded

    access_expires_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
