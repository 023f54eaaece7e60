"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract and
validate the caller from the ``x-auth`` header. Failure is fail-closed:
get_current_user raises Unauthenticated, which the app renders as a bare
401 before any handler code runs.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.auth.tokens import TokenService
from todoapi.config import settings
from todoapi.db.engine import get_db
from todoapi.db.models import User
from todoapi.errors import Unauthenticated

AUTH_HEADER = "x-auth"


@dataclass
class AuthContext:
    """The authenticated caller and the raw token they presented.

    Handlers use ``user.id`` for ownership scoping and ``token`` for logout.
    """

    user: User
    token: str


def get_token_service(db: AsyncSession = Depends(get_db)) -> TokenService:
    return TokenService(
        db,
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.token_expire_minutes,
    )


async def get_current_user(
    request: Request,
    x_auth: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> AuthContext:
    """Resolve the ``x-auth`` header to a user (required; 401 if absent or bad)."""
    if not x_auth:
        raise Unauthenticated("Authentication required")

    user = await tokens.verify(x_auth)

    request.state.user = user
    request.state.token = x_auth
    return AuthContext(user=user, token=x_auth)
