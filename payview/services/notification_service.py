import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session

from payview.config import settings
from payview.constants.transaction_status import TransactionStatus
from payview.database import engine
from payview.exceptions import NotFoundError, ValidationError
from payview.models.file import File
from payview.models.transaction import Transaction
from payview.services.access_ledger import AccessLedger
from payview.services.email_service import send_email
from payview.services.profile_service import get_profile
from payview.utils.template import render_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationResult:
    buyer_notified: bool
    seller_notified: bool


def send_purchase_notifications(session: Session, transaction: Transaction) -> NotificationResult:
    """
    Buyer confirmation and seller sale emails for a completed purchase.
    Amounts come from the transaction row, which already holds the fee split.
    """
    file = session.get(File, transaction.file_id)
    if file is None:
        raise NotFoundError("File not found")

    seller = get_profile(session, transaction.seller_id)
    buyer = get_profile(session, transaction.buyer_id) if transaction.buyer_id else None
    buyer_email = transaction.buyer_email or (buyer.email if buyer else None)

    creator_name = seller.username if seller else f"{settings.store_name} Creator"
    common = {
        "file_title": file.title,
        "amount_cents": transaction.amount_cents,
        "currency": transaction.currency,
        "store_name": settings.store_name,
        "transaction_number": transaction.transaction_number,
    }

    buyer_notified = False
    if buyer_email:
        html = render_template(
            "emails/buyer_purchase_confirmation.html",
            creator_name=creator_name,
            content_url=f"{settings.base_url}/content/{file.id}",
            access_expires_at=transaction.access_expires_at,
            **common,
        )
        buyer_notified = send_email(
            to=buyer_email,
            subject=f"Purchase Confirmation - {settings.store_name}",
            html=html,
        )

    seller_notified = False
    if seller and seller.email:
        html = render_template(
            "emails/seller_sale_notification.html",
            buyer_email=buyer_email,
            earnings_cents=transaction.seller_earnings_cents,
            fee_percentage=f"{settings.platform_fee_percentage:g}",
            **common,
        )
        seller_notified = send_email(
            to=seller.email,
            subject=f"New Sale Notification - {settings.store_name}",
            html=html,
        )

    logger.info(
        f"Purchase notifications for {transaction.transaction_number}: "
        f"buyer={buyer_notified} seller={seller_notified}",
        extra={"transaction_number": transaction.transaction_number},
    )
    return NotificationResult(buyer_notified=buyer_notified, seller_notified=seller_notified)


def notify_for_session(
    session: Session, *, file_id: int, buyer_id: str, session_id: str
) -> NotificationResult:
    transaction: Optional[Transaction] = AccessLedger(session).find_by_session(session_id)
    if transaction is None:
        raise NotFoundError("Transaction not found")
    if transaction.file_id != file_id or transaction.buyer_id != buyer_id:
        raise ValidationError("Missing required data")
    if transaction.status != TransactionStatus.completed:
        raise ValidationError("Payment not completed")
    return send_purchase_notifications(session, transaction)


def notify_purchase(transaction_id: int) -> None:
    """Background entry point; runs after the webhook has been acknowledged."""
    with Session(engine) as session:
        transaction = session.get(Transaction, transaction_id)
        if transaction is None:
            logger.error(f"Transaction {transaction_id} vanished before notification")
            return
        try:
            send_purchase_notifications(session, transaction)
        except Exception:
            logger.exception(
                "Purchase notification failed",
                extra={"transaction_number": transaction.transaction_number},
            )
