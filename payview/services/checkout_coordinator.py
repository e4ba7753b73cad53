import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session

from payview.config import settings
from payview.exceptions import NotPurchasableError
from payview.models.file import File
from payview.models.transaction import Transaction
from payview.services.access_ledger import AccessLedger
from payview.services.fees import calculate_platform_fee
from payview.services.payment_gateway import PaymentGateway
from payview.services.profile_service import get_profile
from payview.utils import clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutQuote:
    price_id: str
    destination_account: str
    amount_cents: int
    platform_fee_cents: int


@dataclass(frozen=True)
class CheckoutResult:
    session_id: str
    url: str
    transaction: Transaction


class CheckoutCoordinator:
    def __init__(self, session: Session, ledger: AccessLedger, gateway: PaymentGateway):
        self.session = session
        self.ledger = ledger
        self.gateway = gateway

    def quote(self, file: File) -> CheckoutQuote:
        """Everything needed to sell `file`, or NotPurchasableError before any external call."""
        if not file.is_active:
            raise NotPurchasableError("This content is no longer available")
        if file.expires_at is not None and file.expires_at <= clock.utcnow():
            raise NotPurchasableError("This content has expired")
        if not file.stripe_price_id or file.price_cents <= 0:
            raise NotPurchasableError("Payment processing not available for this content")

        seller = get_profile(self.session, file.creator_id)
        if seller is None or not seller.stripe_account_id:
            raise NotPurchasableError("The creator has not finished setting up payouts")

        return CheckoutQuote(
            price_id=file.stripe_price_id,
            destination_account=seller.stripe_account_id,
            amount_cents=file.price_cents,
            platform_fee_cents=calculate_platform_fee(file.price_cents),
        )

    def start_checkout(
        self,
        file: File,
        buyer_id: Optional[str] = None,
        buyer_email: Optional[str] = None,
    ) -> CheckoutResult:
        quote = self.quote(file)

        metadata = {
            "fileId": str(file.id),
            "buyerUserId": buyer_id or "",
            "sellerAccountId": quote.destination_account,
        }

        checkout = self.gateway.create_checkout_session(
            price_id=quote.price_id,
            destination_account=quote.destination_account,
            application_fee_cents=quote.platform_fee_cents,
            success_url=f"{settings.base_url}/stripe-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.base_url}/paywall/{file.id}",
            metadata=metadata,
            customer_email=buyer_email,
        )

        transaction = self.ledger.create_pending_transaction(
            file=file,
            buyer_id=buyer_id,
            buyer_email=buyer_email,
            amount_cents=quote.amount_cents,
            platform_fee_cents=quote.platform_fee_cents,
            stripe_session_id=checkout.id,
        )

        return CheckoutResult(session_id=checkout.id, url=checkout.url, transaction=transaction)
