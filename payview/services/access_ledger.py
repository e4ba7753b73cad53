"""
Transaction records and the access decision.

The ledger is the only writer of transaction status. Status changes are
conditional UPDATEs guarded by the current status, so duplicate or concurrent
webhook deliveries converge on a single transition, and the seller/file
aggregates move exactly once with it.
"""
import logging
import secrets
import string
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from payview.constants.transaction_status import TransactionStatus, can_transition
from payview.exceptions import NotFoundError, StorageError, ValidationError
from payview.models.file import File
from payview.models.profile import Profile
from payview.models.transaction import Transaction
from payview.utils import clock

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


class AccessReason(str, Enum):
    owner = "owner"
    purchased = "purchased"
    never_purchased = "never_purchased"
    expired = "expired"


@dataclass(frozen=True)
class AccessDecision:
    granted: bool
    reason: AccessReason
    access_expires_at: Optional[datetime] = None
    transaction_id: Optional[int] = None


@dataclass(frozen=True)
class CompletionResult:
    transaction: Transaction
    # False when the event was a replay and nothing changed
    newly_completed: bool


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_transaction_number() -> str:
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"TXN-{timestamp}-{suffix}"


def access_window_end(file: File, completed_at: datetime) -> Optional[datetime]:
    """Earliest of the file's absolute expiry and its relative access window."""
    candidates = []
    if file.expires_at is not None:
        candidates.append(file.expires_at)
    if file.access_duration_days:
        candidates.append(completed_at + timedelta(days=file.access_duration_days))
    return min(candidates) if candidates else None


class AccessLedger:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _storage(self, action: str, **correlation):
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"Ledger storage failure during {action}", extra=correlation)
            raise StorageError("Storage temporarily unavailable") from exc

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    def create_pending_transaction(
        self,
        *,
        file: File,
        buyer_id: Optional[str],
        amount_cents: int,
        platform_fee_cents: int,
        stripe_session_id: str,
        buyer_email: Optional[str] = None,
    ) -> Transaction:
        if amount_cents is None or amount_cents <= 0:
            raise ValidationError("Amount must be greater than zero")
        if platform_fee_cents is None or not 0 <= platform_fee_cents <= amount_cents:
            raise ValidationError("Platform fee must be between zero and the amount")
        if not stripe_session_id:
            raise ValidationError("Checkout session reference is required")

        transaction = Transaction(
            transaction_number=generate_transaction_number(),
            file_id=file.id,
            buyer_id=buyer_id,
            buyer_email=buyer_email,
            seller_id=file.creator_id,
            stripe_session_id=stripe_session_id,
            amount_cents=amount_cents,
            currency=file.currency,
            platform_fee_cents=platform_fee_cents,
            seller_earnings_cents=amount_cents - platform_fee_cents,
            status=TransactionStatus.pending.value,
        )

        with self._storage("create_pending_transaction", session_id=stripe_session_id):
            self.session.add(transaction)
            self.session.commit()
            self.session.refresh(transaction)

        logger.info(
            f"Pending transaction {transaction.transaction_number} created for file {file.id}",
            extra={"transaction_number": transaction.transaction_number, "session_id": stripe_session_id},
        )
        return transaction

    def complete_transaction(
        self, session_ref: str, payment_intent_ref: Optional[str] = None
    ) -> CompletionResult:
        now = clock.utcnow()

        with self._storage("complete_transaction", session_id=session_ref):
            result = self._transition(
                Transaction.stripe_session_id == session_ref,
                TransactionStatus.pending,
                TransactionStatus.completed,
                completed_at=now,
                stripe_payment_intent_id=payment_intent_ref,
            )

            if result.rowcount == 0:
                self.session.rollback()
                existing = self.find_by_session(session_ref)
                if existing is None:
                    raise NotFoundError("Transaction not found")
                # replayed delivery: same outcome as the first one, no side effects
                return CompletionResult(transaction=existing, newly_completed=False)

            transaction = self.find_by_session(session_ref)
            file = self.session.get(File, transaction.file_id)
            transaction.access_expires_at = access_window_end(file, now)
            self.session.add(transaction)
            self._move_aggregates(transaction, direction=1, now=now)
            self.session.commit()
            self.session.refresh(transaction)

        logger.info(
            f"Transaction {transaction.transaction_number} completed",
            extra={"transaction_number": transaction.transaction_number, "session_id": session_ref},
        )
        return CompletionResult(transaction=transaction, newly_completed=True)

    def fail_transaction(self, session_ref: str) -> CompletionResult:
        with self._storage("fail_transaction", session_id=session_ref):
            result = self._transition(
                Transaction.stripe_session_id == session_ref,
                TransactionStatus.pending,
                TransactionStatus.failed,
            )
            changed = result.rowcount > 0
            if changed:
                self.session.commit()
            else:
                self.session.rollback()
            transaction = self.find_by_session(session_ref)

        if transaction is None:
            raise NotFoundError("Transaction not found")
        if changed:
            logger.info(
                f"Transaction {transaction.transaction_number} failed",
                extra={"transaction_number": transaction.transaction_number, "session_id": session_ref},
            )
        return CompletionResult(transaction=transaction, newly_completed=changed)

    def refund_transaction(self, payment_intent_ref: str) -> Optional[Transaction]:
        """Record a refund issued on the Stripe side. Access ends with it."""
        now = clock.utcnow()
        with self._storage("refund_transaction"):
            transaction = self.session.exec(
                select(Transaction).where(Transaction.stripe_payment_intent_id == payment_intent_ref)
            ).first()
            if transaction is None:
                return None

            result = self._transition(
                Transaction.id == transaction.id,
                TransactionStatus.completed,
                TransactionStatus.refunded,
            )
            if result.rowcount == 0:
                self.session.rollback()
                return transaction

            self._move_aggregates(transaction, direction=-1, now=now)
            self.session.commit()
            self.session.refresh(transaction)

        logger.info(
            f"Transaction {transaction.transaction_number} refunded",
            extra={"transaction_number": transaction.transaction_number},
        )
        return transaction

    def _transition(self, criteria, source: TransactionStatus, target: TransactionStatus, **values):
        """Conditional status UPDATE; matches nothing unless the row is still in `source`."""
        if not can_transition(source, target):
            raise ValidationError(f"Transaction cannot move from {source.value} to {target.value}")
        return self.session.exec(
            update(Transaction)
            .where(criteria)
            .where(Transaction.status == source.value)
            .values(status=target.value, **values)
        )

    def _move_aggregates(self, transaction: Transaction, *, direction: int, now: datetime) -> None:
        self.session.exec(
            update(Profile)
            .where(Profile.user_id == transaction.seller_id)
            .values(
                total_sales_count=Profile.total_sales_count + direction,
                total_earnings_cents=Profile.total_earnings_cents
                + direction * transaction.seller_earnings_cents,
                updated_at=now,
            )
        )
        self.session.exec(
            update(File)
            .where(File.id == transaction.file_id)
            .values(
                purchase_count=File.purchase_count + direction,
                total_revenue_cents=File.total_revenue_cents + direction * transaction.amount_cents,
            )
        )

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def find_by_session(self, session_ref: str) -> Optional[Transaction]:
        with self._storage("find_by_session", session_id=session_ref):
            return self.session.exec(
                select(Transaction)
                .where(Transaction.stripe_session_id == session_ref)
                .execution_options(populate_existing=True)
            ).first()

    def latest_completed(self, file_id: int, viewer_id: str) -> Optional[Transaction]:
        with self._storage("latest_completed", file_id=file_id):
            return self.session.exec(
                select(Transaction)
                .where(Transaction.file_id == file_id)
                .where(Transaction.buyer_id == viewer_id)
                .where(Transaction.status == TransactionStatus.completed.value)
                .order_by(Transaction.completed_at.desc(), Transaction.id.desc())
            ).first()

    def evaluate_access(self, file: File, viewer_id: Optional[str]) -> AccessDecision:
        if viewer_id and viewer_id == file.creator_id:
            return AccessDecision(granted=True, reason=AccessReason.owner)

        if not viewer_id:
            return AccessDecision(granted=False, reason=AccessReason.never_purchased)

        transaction = self.latest_completed(file.id, viewer_id)
        if transaction is None:
            return AccessDecision(granted=False, reason=AccessReason.never_purchased)

        expires_at = transaction.access_expires_at
        if expires_at is not None and expires_at <= clock.utcnow():
            return AccessDecision(
                granted=False,
                reason=AccessReason.expired,
                access_expires_at=expires_at,
                transaction_id=transaction.id,
            )

        return AccessDecision(
            granted=True,
            reason=AccessReason.purchased,
            access_expires_at=expires_at,
            transaction_id=transaction.id,
        )
