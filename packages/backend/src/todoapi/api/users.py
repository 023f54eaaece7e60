"""User API routes — registration, login, current user, logout.

Learn: Registration and login return the user body and put the fresh
token in the ``x-auth`` response header. Logout removes only the token
used for the logout request; other sessions keep working.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.auth.dependencies import (
    AUTH_HEADER,
    AuthContext,
    get_current_user,
    get_token_service,
)
from todoapi.auth.tokens import TokenService
from todoapi.db.engine import get_db
from todoapi.errors import PersistenceError, ValidationError
from todoapi.schemas.user import LoginRequest, UserCreate, UserRead
from todoapi.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> UserService:
    return UserService(db, tokens)


@router.post("", response_model=UserRead)
async def register(
    body: UserCreate,
    response: Response,
    svc: UserService = Depends(_svc),
):
    """Create an account and log it in."""
    try:
        user, token = await svc.register(email=body.email, password=body.password)
    except (ValidationError, PersistenceError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    response.headers[AUTH_HEADER] = token
    return user


@router.get("/me", response_model=UserRead)
async def get_me(auth: AuthContext = Depends(get_current_user)):
    """Get the current authenticated user."""
    return auth.user


@router.post("/login", response_model=UserRead)
async def login(
    body: LoginRequest,
    response: Response,
    svc: UserService = Depends(_svc),
):
    """Email/password → new session token in the x-auth header."""
    try:
        user, token = await svc.login(email=body.email, password=body.password)
    except (ValidationError, PersistenceError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    response.headers[AUTH_HEADER] = token
    return user


@router.delete("/me/token")
async def logout(
    auth: AuthContext = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Revoke the token presented with this request."""
    try:
        await svc.logout(auth.user, auth.token)
    except PersistenceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(status_code=200)
