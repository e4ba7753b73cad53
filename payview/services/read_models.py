"""
Display projections (the `file_details` and `transaction_details` views).

These join files and transactions with profile names for dashboards. They are
read-only and nothing in the ledger depends on them.
"""
from typing import List, Optional

from sqlalchemy.orm import aliased
from sqlmodel import Session, select

from payview.constants.transaction_status import TransactionStatus
from payview.models.file import File
from payview.models.profile import Profile
from payview.models.transaction import Transaction
from payview.schemas.file_schemas import FileDetails
from payview.schemas.transaction_schemas import TransactionDetails


def file_details(session: Session, file_id: int) -> Optional[FileDetails]:
    row = session.exec(
        select(File, Profile.username)
        .join(Profile, Profile.user_id == File.creator_id, isouter=True)
        .where(File.id == file_id)
    ).first()
    if row is None:
        return None

    file, creator_username = row
    details = FileDetails.model_validate(file)
    return details.model_copy(
        update={
            "creator_username": creator_username,
            "sales_count": file.purchase_count,
            "revenue_cents": file.total_revenue_cents,
        }
    )


def transaction_details(
    session: Session,
    *,
    buyer_id: Optional[str] = None,
    seller_id: Optional[str] = None,
    status: Optional[TransactionStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[TransactionDetails]:
    seller = aliased(Profile)
    buyer = aliased(Profile)

    query = (
        select(Transaction, File.title, File.slug, seller.username, buyer.username)
        .join(File, File.id == Transaction.file_id)
        .join(seller, seller.user_id == Transaction.seller_id, isouter=True)
        .join(buyer, buyer.user_id == Transaction.buyer_id, isouter=True)
    )
    if buyer_id is not None:
        query = query.where(Transaction.buyer_id == buyer_id)
    if seller_id is not None:
        query = query.where(Transaction.seller_id == seller_id)
    if status is not None:
        query = query.where(Transaction.status == status.value)

    query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).offset(offset).limit(limit)

    results = []
    for transaction, file_title, file_slug, seller_username, buyer_username in session.exec(query).all():
        details = TransactionDetails.model_validate(transaction)
        results.append(
            details.model_copy(
                update={
                    "file_title": file_title,
                    "file_slug": file_slug,
                    "seller_username": seller_username,
                    "buyer_username": buyer_username,
                }
            )
        )
    return results
