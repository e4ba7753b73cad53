from enum import Enum


class TransactionStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


ALLOWED_TRANSITIONS = {
    TransactionStatus.pending: [TransactionStatus.completed, TransactionStatus.failed],
    TransactionStatus.completed: [TransactionStatus.refunded],
    TransactionStatus.failed: [],
    TransactionStatus.refunded: [],
}


def can_transition(current: str, target: str) -> bool:
    return TransactionStatus(target) in ALLOWED_TRANSITIONS.get(TransactionStatus(current), [])
