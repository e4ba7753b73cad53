from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from payview.config import settings
from payview.exceptions import ValidationError


def _percentage(fee_percentage: Optional[float]) -> Decimal:
    pct = Decimal(str(settings.platform_fee_percentage if fee_percentage is None else fee_percentage))
    if pct < 0 or pct > 100:
        raise ValidationError("Fee percentage must be between 0 and 100")
    return pct


def calculate_platform_fee(amount_cents: int, fee_percentage: Optional[float] = None) -> int:
    """
    Platform share of a sale, rounded half up to a whole minor unit.
    This is the only place the fee is computed; checkout and emails both call it.
    """
    if amount_cents < 0:
        raise ValidationError("Amount must not be negative")
    fee = Decimal(amount_cents) * _percentage(fee_percentage) / Decimal(100)
    return int(fee.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_seller_earnings(amount_cents: int, fee_percentage: Optional[float] = None) -> int:
    return amount_cents - calculate_platform_fee(amount_cents, fee_percentage)


def format_cents(cents: int, currency: str = "usd") -> str:
    symbol = "$" if currency.lower() == "usd" else f"{currency.upper()} "
    return f"{symbol}{Decimal(cents) / 100:.2f}"
