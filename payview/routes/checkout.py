from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from payview.database import get_session
from payview.dependencies.services import get_checkout_coordinator, get_ledger
from payview.exceptions import AuthorizationError, NotFoundError, ValidationError
from payview.models.file import File
from payview.schemas.checkout_schemas import (
    CheckoutStatusResponse,
    StartCheckoutRequest,
    StartCheckoutResponse,
)
from payview.services.access_ledger import AccessLedger
from payview.services.checkout_coordinator import CheckoutCoordinator
from payview.utils.token import Identity, get_optional_identity

router = APIRouter()


@router.post("/start", response_model=StartCheckoutResponse)
def start_checkout(
    payload: StartCheckoutRequest,
    session: Session = Depends(get_session),
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    file = session.get(File, payload.file_id)
    if file is None:
        raise ValidationError("File not found")

    buyer_id = payload.buyer_id
    if identity is None and buyer_id:
        # a buyer is only ever taken from the bearer token
        raise AuthorizationError("Unauthorized")
    if identity is not None:
        if buyer_id and buyer_id != identity.user_id:
            raise ValidationError("Buyer does not match the signed-in user")
        buyer_id = identity.user_id

    # the server's numbers win; stale values from the paywall page are refused
    quote = coordinator.quote(file)
    if payload.price_ref and payload.price_ref != quote.price_id:
        raise ValidationError("Price has changed, reload the page")
    if payload.seller_payout_ref and payload.seller_payout_ref != quote.destination_account:
        raise ValidationError("Seller payout account mismatch")
    if payload.platform_fee_cents is not None and payload.platform_fee_cents != quote.platform_fee_cents:
        raise ValidationError("Platform fee mismatch")

    result = coordinator.start_checkout(
        file,
        buyer_id=buyer_id,
        buyer_email=identity.email if identity else None,
    )
    return {"sessionId": result.session_id, "url": result.url}


@router.get("/status", response_model=CheckoutStatusResponse)
def checkout_status(
    session_id: str,
    ledger: AccessLedger = Depends(get_ledger),
):
    """Read-only; the success page polls this until the webhook has landed."""
    transaction = ledger.find_by_session(session_id)
    if transaction is None:
        raise NotFoundError("Transaction not found")
    return {
        "status": transaction.status,
        "transactionNumber": transaction.transaction_number,
        "fileId": transaction.file_id,
    }
