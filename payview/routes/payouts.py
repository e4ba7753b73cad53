from fastapi import APIRouter, Depends
from sqlmodel import Session

from payview.database import get_session
from payview.dependencies.services import get_gateway
from payview.services.payment_gateway import PaymentGateway
from payview.services.payout_service import start_onboarding
from payview.utils.token import Identity, get_current_identity

router = APIRouter()


@router.post("/onboard")
def onboard(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    gateway: PaymentGateway = Depends(get_gateway),
):
    link = start_onboarding(session, gateway, identity)
    return {"accountId": link.account_id, "onboardingUrl": link.onboarding_url}
