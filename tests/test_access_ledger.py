import re
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from payview.constants.transaction_status import can_transition
from payview.exceptions import NotFoundError, StorageError, ValidationError
from payview.models import Transaction
from payview.services.access_ledger import AccessReason, access_window_end, generate_transaction_number

from helpers import BUYER_ID, CREATOR_ID, make_file


def _pending(ledger, file, session_id, buyer_id=BUYER_ID, amount=1000, fee=50):
    return ledger.create_pending_transaction(
        file=file,
        buyer_id=buyer_id,
        amount_cents=amount,
        platform_fee_cents=fee,
        stripe_session_id=session_id,
    )


def test_transaction_number_format():
    number = generate_transaction_number()
    assert re.match(r"^TXN-[0-9A-Z]+-[0-9A-Z]{4}$", number)
    assert generate_transaction_number() != number


def test_allowed_transitions():
    assert can_transition("pending", "completed")
    assert can_transition("pending", "failed")
    assert can_transition("completed", "refunded")
    assert not can_transition("failed", "completed")
    assert not can_transition("refunded", "completed")
    assert not can_transition("completed", "pending")


def test_pending_transaction_records_split(pending):
    assert pending.status == "pending"
    assert pending.amount_cents == 1000
    assert pending.platform_fee_cents == 50
    assert pending.seller_earnings_cents == 950
    assert pending.seller_id == CREATOR_ID
    assert pending.completed_at is None


@pytest.mark.parametrize("amount, fee", [(0, 0), (1000, 1001), (1000, -1)])
def test_pending_transaction_rejects_bad_amounts(session, ledger, paid_file, amount, fee):
    with pytest.raises(ValidationError):
        _pending(ledger, paid_file, "cs_bad", amount=amount, fee=fee)
    assert session.exec(select(Transaction)).all() == []


def test_complete_is_idempotent(session, ledger, pending, creator, paid_file):
    first = ledger.complete_transaction("cs_test_pending", "pi_1")
    second = ledger.complete_transaction("cs_test_pending", "pi_1")

    assert first.newly_completed is True
    assert second.newly_completed is False
    assert first.transaction.id == second.transaction.id
    assert second.transaction.status == "completed"
    assert second.transaction.stripe_payment_intent_id == "pi_1"

    session.refresh(creator)
    session.refresh(paid_file)
    assert creator.total_sales_count == 1
    assert creator.total_earnings_cents == 950
    assert paid_file.purchase_count == 1
    assert paid_file.total_revenue_cents == 1000


def test_complete_unknown_session(ledger):
    with pytest.raises(NotFoundError):
        ledger.complete_transaction("cs_missing")


def test_failed_transaction_is_not_completed_later(session, ledger, pending, creator):
    failed = ledger.fail_transaction("cs_test_pending")
    assert failed.newly_completed is True
    assert failed.transaction.status == "failed"

    late = ledger.complete_transaction("cs_test_pending", "pi_late")
    assert late.newly_completed is False
    assert late.transaction.status == "failed"

    session.refresh(creator)
    assert creator.total_sales_count == 0


def test_owner_is_granted_without_purchase(ledger, paid_file):
    decision = ledger.evaluate_access(paid_file, CREATOR_ID)
    assert decision.granted
    assert decision.reason is AccessReason.owner


def test_anonymous_viewer_is_denied(ledger, paid_file):
    decision = ledger.evaluate_access(paid_file, None)
    assert not decision.granted
    assert decision.reason is AccessReason.never_purchased


def test_pending_purchase_does_not_grant(ledger, pending, paid_file):
    decision = ledger.evaluate_access(paid_file, BUYER_ID)
    assert not decision.granted
    assert decision.reason is AccessReason.never_purchased


def test_completed_purchase_grants(ledger, pending, paid_file):
    ledger.complete_transaction("cs_test_pending")
    decision = ledger.evaluate_access(paid_file, BUYER_ID)
    assert decision.granted
    assert decision.reason is AccessReason.purchased
    assert decision.access_expires_at is None
    assert decision.transaction_id == pending.id

    assert not ledger.evaluate_access(paid_file, "someone-else").granted


def test_access_duration_expires(frozen_clock, session, ledger, creator):
    file = make_file(session, access_duration_days=7)
    _pending(ledger, file, "cs_week")
    completed = ledger.complete_transaction("cs_week").transaction
    assert completed.access_expires_at == frozen_clock.now + timedelta(days=7)

    frozen_clock.advance(timedelta(days=6, hours=23))
    assert ledger.evaluate_access(file, BUYER_ID).granted

    frozen_clock.advance(timedelta(hours=1))
    decision = ledger.evaluate_access(file, BUYER_ID)
    assert not decision.granted
    assert decision.reason is AccessReason.expired
    assert decision.access_expires_at == completed.access_expires_at


def test_stored_timestamps_read_back_naive(session, ledger, pending, creator):
    ledger.complete_transaction("cs_test_pending")
    session.expire_all()
    stored = session.get(Transaction, pending.id)
    assert stored.completed_at.tzinfo is None
    assert stored.created_at.tzinfo is None
    assert stored.completed_at >= stored.created_at


def test_access_window_is_the_earlier_limit(frozen_clock, session, creator):
    cutoff = frozen_clock.now + timedelta(days=2)
    file = make_file(session, expires_at=cutoff, access_duration_days=30)
    assert access_window_end(file, frozen_clock.now) == cutoff

    file.expires_at = frozen_clock.now + timedelta(days=60)
    assert access_window_end(file, frozen_clock.now) == frozen_clock.now + timedelta(days=30)

    file.expires_at = None
    file.access_duration_days = None
    assert access_window_end(file, frozen_clock.now) is None


def test_latest_completed_purchase_decides(frozen_clock, session, ledger, creator):
    file = make_file(session, access_duration_days=1)
    _pending(ledger, file, "cs_first")
    ledger.complete_transaction("cs_first")

    frozen_clock.advance(timedelta(days=2))
    assert ledger.evaluate_access(file, BUYER_ID).reason is AccessReason.expired

    _pending(ledger, file, "cs_second")
    second = ledger.complete_transaction("cs_second").transaction

    decision = ledger.evaluate_access(file, BUYER_ID)
    assert decision.granted
    assert decision.transaction_id == second.id


def test_refund_reverses_aggregates_and_access(session, ledger, pending, creator, paid_file):
    ledger.complete_transaction("cs_test_pending", "pi_refund")

    refunded = ledger.refund_transaction("pi_refund")
    assert refunded.status == "refunded"
    # a second refund notification changes nothing
    assert ledger.refund_transaction("pi_refund").status == "refunded"

    session.refresh(creator)
    session.refresh(paid_file)
    assert creator.total_sales_count == 0
    assert creator.total_earnings_cents == 0
    assert paid_file.purchase_count == 0
    assert ledger.evaluate_access(paid_file, BUYER_ID).reason is AccessReason.never_purchased


def test_refund_for_unknown_payment(ledger):
    assert ledger.refund_transaction("pi_unknown") is None


def test_storage_failure_is_retryable(monkeypatch, session, ledger, paid_file):
    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", broken_commit)
    with pytest.raises(StorageError) as excinfo:
        _pending(ledger, paid_file, "cs_unlucky")
    assert excinfo.value.retryable
    assert excinfo.value.status_code == 503
