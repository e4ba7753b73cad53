from typing import Optional

from sqlmodel import Session, select

from payview.exceptions import ValidationError
from payview.models.profile import Profile
from payview.utils.clock import utcnow
from payview.utils.token import Identity


def get_profile(session: Session, user_id: str) -> Optional[Profile]:
    return session.exec(select(Profile).where(Profile.user_id == user_id)).first()


def get_or_create_profile(session: Session, identity: Identity) -> Profile:
    """Profiles are created lazily on the first authenticated request that needs one."""
    profile = get_profile(session, identity.user_id)
    if profile:
        return profile

    username = (identity.email or identity.user_id).split("@")[0]
    profile = Profile(
        user_id=identity.user_id,
        email=identity.email,
        username=username,
    )
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def attach_payout_account(session: Session, profile: Profile, account_id: str) -> Profile:
    if profile.stripe_account_id and profile.stripe_account_id != account_id:
        raise ValidationError("Payout account is already assigned")
    profile.stripe_account_id = account_id
    profile.is_creator = True
    profile.updated_at = utcnow()
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def set_onboarding_state(session: Session, account_id: str, complete: bool) -> Optional[Profile]:
    profile = session.exec(select(Profile).where(Profile.stripe_account_id == account_id)).first()
    if profile is None:
        return None
    profile.stripe_onboarding_complete = complete
    profile.updated_at = utcnow()
    session.add(profile)
    session.commit()
    return profile
