from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from payview.constants.transaction_status import TransactionStatus
from payview.database import get_session
from payview.schemas.profile_schemas import ProfileOut
from payview.schemas.transaction_schemas import TransactionDetails
from payview.services.profile_service import get_or_create_profile
from payview.services.read_models import transaction_details
from payview.utils.token import Identity, get_current_identity

router = APIRouter()


@router.get("/profile", response_model=ProfileOut)
def my_profile(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return get_or_create_profile(session, identity)


@router.get("/transactions", response_model=List[TransactionDetails])
def my_transactions(
    role: Literal["buyer", "seller"] = "buyer",
    status: Optional[TransactionStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    if role == "seller":
        return transaction_details(session, seller_id=identity.user_id, status=status, limit=limit, offset=offset)
    return transaction_details(session, buyer_id=identity.user_id, status=status, limit=limit, offset=offset)
