from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from payview.config import settings
from payview.exceptions import AuthorizationError

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: Optional[str] = None


def decode_access_token(token: str):
    try:
        return jwt.decode(
            token,
            settings.identity_provider_key,
            algorithms=[settings.identity_algorithm],
            audience=settings.identity_audience,
            issuer=settings.identity_issuer,
        )
    except JWTError:
        return None


def identity_from_token(token: str) -> Identity:
    payload = decode_access_token(token)
    if payload is None:
        raise AuthorizationError("Unauthorized")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthorizationError("Unauthorized")

    return Identity(user_id=str(user_id), email=payload.get("email"))


def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Identity]:
    if credentials is None:
        return None
    return identity_from_token(credentials.credentials)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None:
        raise AuthorizationError("Unauthorized")
    return identity_from_token(credentials.credentials)
