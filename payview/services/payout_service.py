import logging
from dataclasses import dataclass

from sqlmodel import Session

from payview.config import settings
from payview.services.payment_gateway import PaymentGateway
from payview.services.profile_service import attach_payout_account, get_or_create_profile
from payview.utils.token import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnboardingLink:
    account_id: str
    onboarding_url: str


def start_onboarding(session: Session, gateway: PaymentGateway, identity: Identity) -> OnboardingLink:
    """
    Create the creator's Express account on first use, then hand out a fresh
    onboarding link. An existing account id is reused, never replaced.
    """
    profile = get_or_create_profile(session, identity)

    account_id = profile.stripe_account_id
    if not account_id:
        account_id = gateway.create_connected_account(email=identity.email)
        attach_payout_account(session, profile, account_id)
        logger.info(f"Connected account {account_id} created", extra={"account_id": account_id, "user_id": identity.user_id})

    url = gateway.create_onboarding_link(
        account_id=account_id,
        refresh_url=f"{settings.base_url}/dashboard?stripe_refresh=true",
        return_url=f"{settings.base_url}/dashboard?stripe_success=true",
    )
    return OnboardingLink(account_id=account_id, onboarding_url=url)
