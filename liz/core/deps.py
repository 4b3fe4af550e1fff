"""Request dependencies resolving the bearer token to an active user."""

import logging

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from liz.core.database import get_db
from liz.core.exceptions import ForbiddenError
from liz.core.security import TokenDecodeError, decode_access_token
from liz.modules.users.models import User
from liz.shared.enums import UserType

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise _unauthorized("Missing authentication")
    try:
        claims = decode_access_token(credentials.credentials)
    except TokenDecodeError as exc:
        logger.info("bearer token rejected: %s", exc)
        raise _unauthorized("Invalid token") from exc

    user = await db.get(User, claims.user_id)
    if user is None or not user.is_active:
        raise _unauthorized("User not found or disabled")
    return user


def require_user_type(*allowed: UserType):
    """Admit only accounts whose ``user_type`` is one of ``allowed``."""

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.user_type not in allowed:
            raise ForbiddenError(f"{' or '.join(allowed).capitalize()} account required")
        return current_user

    return dependency


require_admin = require_user_type(UserType.ADMIN)
