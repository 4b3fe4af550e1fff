"""Bearer token handling.

Tokens are issued by the auth service; this API only verifies them. The
``sub`` claim is the user id and ``type`` the account type.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from .config import settings


class TokenDecodeError(Exception):
    """The token is malformed, expired, signed with another key or has no subject."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    user_type: str | None = None


def create_access_token(user_id: str, user_type: str, expires_minutes: int | None = None) -> str:
    lifetime = timedelta(minutes=expires_minutes or settings.jwt_expires_in_minutes)
    claims = {
        "sub": user_id,
        "type": user_type,
        "exp": datetime.now(tz=timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise TokenDecodeError(str(exc)) from exc
    user_id = payload.get("sub")
    if not user_id:
        raise TokenDecodeError("token has no subject")
    return TokenClaims(user_id=user_id, user_type=payload.get("type"))
