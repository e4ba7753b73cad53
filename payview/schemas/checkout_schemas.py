from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StartCheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_id: int = Field(alias="fileId")
    buyer_id: Optional[str] = Field(default=None, alias="buyerId")
    # echoed back from the paywall page; the server recomputes and compares
    price_ref: Optional[str] = Field(default=None, alias="priceRef")
    seller_payout_ref: Optional[str] = Field(default=None, alias="sellerPayoutRef")
    platform_fee_cents: Optional[int] = Field(default=None, alias="platformFeeCents")


class StartCheckoutResponse(BaseModel):
    sessionId: str
    url: str


class CheckoutStatusResponse(BaseModel):
    status: str
    transactionNumber: str
    fileId: int
