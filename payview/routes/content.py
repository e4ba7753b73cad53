from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from payview.database import get_session
from payview.dependencies.services import get_ledger, get_signed_access_issuer
from payview.exceptions import AuthorizationError
from payview.models.file import File
from payview.schemas.content_schemas import AccessResponse, SignedUrlRequest, SignedUrlResponse
from payview.services.access_ledger import AccessLedger
from payview.services.signed_access import SignedAccessIssuer
from payview.utils.token import Identity, get_current_identity, get_optional_identity

router = APIRouter()


@router.post("/signed-url", response_model=SignedUrlResponse)
def issue_signed_url(
    payload: SignedUrlRequest,
    identity: Identity = Depends(get_current_identity),
    issuer: SignedAccessIssuer = Depends(get_signed_access_issuer),
):
    signed = issuer.issue_url(payload.file_id, identity.user_id)
    return {"url": signed.url, "expiresIn": signed.expires_in}


@router.get("/{file_id}/access", response_model=AccessResponse)
def check_access(
    file_id: int,
    session: Session = Depends(get_session),
    ledger: AccessLedger = Depends(get_ledger),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    file = session.get(File, file_id)
    if file is None:
        raise AuthorizationError()

    decision = ledger.evaluate_access(file, identity.user_id if identity else None)
    return {
        "granted": decision.granted,
        "reason": decision.reason.value,
        "access_expires_at": decision.access_expires_at,
    }
