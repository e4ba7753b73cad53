"""
Consumer of Stripe webhook deliveries.

Stripe delivers at least once, possibly concurrently. Signature verification
comes before anything else; after that every handler is idempotent because
the ledger only moves a transaction out of `pending` once.
"""
import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from payview.exceptions import NotFoundError, SignatureError, StorageError, ValidationError
from payview.models.transaction import Transaction
from payview.services.access_ledger import AccessLedger
from payview.services.payment_gateway import PaymentGateway
from payview.services.profile_service import set_onboarding_state

logger = logging.getLogger(__name__)

PAID_STATUSES = ("paid", "no_payment_required")

Notifier = Callable[[Transaction], None]


@dataclass(frozen=True)
class WebhookOutcome:
    event_type: str
    handled: bool
    transaction: Optional[Transaction] = None


class WebhookReconciler:
    def __init__(
        self,
        session: Session,
        ledger: AccessLedger,
        gateway: PaymentGateway,
        notifier: Optional[Notifier] = None,
    ):
        self.session = session
        self.ledger = ledger
        self.gateway = gateway
        self.notifier = notifier
        self._handlers = {
            "checkout.session.completed": self._on_session_completed,
            "checkout.session.async_payment_succeeded": self._on_session_completed,
            "checkout.session.async_payment_failed": self._on_session_failed,
            "checkout.session.expired": self._on_session_failed,
            "account.updated": self._on_account_updated,
            "charge.refunded": self._on_charge_refunded,
        }

    def handle_event(self, raw_body, signature_header: Optional[str]) -> WebhookOutcome:
        try:
            payload = raw_body.decode("utf-8") if isinstance(raw_body, bytes) else raw_body
        except UnicodeDecodeError as exc:
            raise ValidationError("Malformed event body") from exc

        try:
            self.gateway.verify_webhook(payload, signature_header)
        except SignatureError as exc:
            logger.warning(f"Rejected webhook delivery: {exc.message}", extra={"error": exc.message})
            raise

        event_type, data = self._parse(payload)
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled event type: {event_type}", extra={"event_type": event_type})
            return WebhookOutcome(event_type=event_type, handled=False)

        return handler(event_type, data)

    @staticmethod
    def _parse(payload: str):
        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise ValidationError("Malformed event body") from exc

        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise ValidationError("Malformed event body")
        data = (event.get("data") or {}).get("object") if isinstance(event.get("data"), dict) else None
        if not isinstance(data, dict):
            raise ValidationError("Malformed event body")
        return event["type"], data

    # handlers -----------------------------------------------------------

    def _on_session_completed(self, event_type: str, checkout: dict) -> WebhookOutcome:
        session_id = checkout.get("id")
        metadata = checkout.get("metadata") or {}
        file_id = metadata.get("fileId")
        correlation = {"session_id": session_id, "file_id": file_id, "event_type": event_type}

        if not session_id or not file_id:
            logger.error("No fileId in session metadata", extra=correlation)
            return WebhookOutcome(event_type=event_type, handled=False)

        if event_type == "checkout.session.completed" and checkout.get("payment_status") not in PAID_STATUSES:
            # delayed payment methods finish with async_payment_succeeded
            logger.info(f"Session {session_id} completed but not yet paid", extra=correlation)
            return WebhookOutcome(event_type=event_type, handled=False)

        try:
            result = self.ledger.complete_transaction(session_id, checkout.get("payment_intent"))
        except NotFoundError:
            logger.error(f"No transaction for session {session_id}", extra=correlation)
            return WebhookOutcome(event_type=event_type, handled=False)

        transaction = result.transaction
        if result.newly_completed:
            logger.info(
                f"Payment completed for file {file_id}",
                extra={**correlation, "transaction_number": transaction.transaction_number},
            )
            if metadata.get("buyerUserId"):
                self._notify(transaction)
        else:
            logger.info(
                f"Duplicate completion for session {session_id} ignored",
                extra={**correlation, "transaction_number": transaction.transaction_number},
            )

        return WebhookOutcome(event_type=event_type, handled=True, transaction=transaction)

    def _on_session_failed(self, event_type: str, checkout: dict) -> WebhookOutcome:
        session_id = checkout.get("id")
        if not session_id:
            raise ValidationError("Malformed event body")
        try:
            result = self.ledger.fail_transaction(session_id)
        except NotFoundError:
            logger.error(f"No transaction for session {session_id}", extra={"session_id": session_id})
            return WebhookOutcome(event_type=event_type, handled=False)
        return WebhookOutcome(event_type=event_type, handled=True, transaction=result.transaction)

    def _on_account_updated(self, event_type: str, account: dict) -> WebhookOutcome:
        account_id = account.get("id")
        if not account_id:
            raise ValidationError("Malformed event body")

        # derived state, always overwritten as a whole
        complete = bool(account.get("details_submitted")) and bool(account.get("charges_enabled"))
        try:
            profile = set_onboarding_state(self.session, account_id, complete)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"Profile update failed for account {account_id}", extra={"account_id": account_id})
            raise StorageError("Storage temporarily unavailable") from exc

        if profile is None:
            logger.warning(f"No profile for account {account_id}", extra={"account_id": account_id})
        else:
            logger.info(f"Account updated: {account_id}", extra={"account_id": account_id})
        return WebhookOutcome(event_type=event_type, handled=profile is not None)

    def _on_charge_refunded(self, event_type: str, charge: dict) -> WebhookOutcome:
        payment_intent = charge.get("payment_intent")
        if not payment_intent or not charge.get("refunded"):
            # partial refunds keep access
            return WebhookOutcome(event_type=event_type, handled=False)
        transaction = self.ledger.refund_transaction(payment_intent)
        return WebhookOutcome(event_type=event_type, handled=transaction is not None, transaction=transaction)

    def _notify(self, transaction: Transaction) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier(transaction)
        except Exception:
            # the delivery is still acknowledged; a duplicate email is cheaper than a retried payment event
            logger.exception(
                "Purchase notification failed",
                extra={
                    "transaction_number": transaction.transaction_number,
                    "session_id": transaction.stripe_session_id,
                },
            )
