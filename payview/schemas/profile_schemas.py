from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email: Optional[str] = None
    username: str
    full_name: Optional[str] = None
    is_creator: bool
    stripe_account_id: Optional[str] = None
    stripe_onboarding_complete: bool
    total_earnings_cents: int
    total_sales_count: int
