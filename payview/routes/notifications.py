from fastapi import APIRouter, Depends
from sqlmodel import Session

from payview.database import get_session
from payview.exceptions import AuthorizationError
from payview.schemas.notification_schemas import PurchaseNotificationRequest
from payview.services.notification_service import notify_for_session
from payview.utils.token import Identity, get_current_identity

router = APIRouter()


@router.post("/purchase")
def send_purchase_notification(
    payload: PurchaseNotificationRequest,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """Resend the purchase emails for a completed checkout session."""
    if identity.user_id != payload.buyer_id:
        raise AuthorizationError()

    notify_for_session(
        session,
        file_id=payload.file_id,
        buyer_id=payload.buyer_id,
        session_id=payload.session_id,
    )
    return {"success": True}
