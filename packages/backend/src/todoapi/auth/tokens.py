"""Token service — issue, verify and revoke ``x-auth`` tokens.

Learn: A token is a JWT carrying the user id (``sub``) and a fixed
``access`` purpose of "auth". A valid signature alone is not enough:
the exact token string must also be present in the user's token list.
Removing it from that list (logout) therefore revokes just that session.

The signing secret is passed in at construction; nothing here reads
global state.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.db.models import AUTH_ACCESS, User, UserToken
from todoapi.errors import InvalidToken, PersistenceError, Unauthenticated

logger = structlog.get_logger()


class TokenService:
    """Signs tokens and keeps the server-side token list in sync."""

    def __init__(
        self,
        db: AsyncSession,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: Optional[int] = None,
    ):
        self.db = db
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    # ─── Signing ─────────────────────────────────────────

    def sign(self, user_id: uuid.UUID) -> str:
        """Create a signed token for a user. Does not touch the database."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "access": AUTH_ACCESS,
            "iat": now,
            "jti": uuid.uuid4().hex,
        }
        if self.expire_minutes:
            payload["exp"] = now + timedelta(minutes=self.expire_minutes)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> uuid.UUID:
        """Check the signature and payload, returning the embedded user id.

        Raises InvalidToken on any failure.
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidToken(f"Invalid token: {e}")

        if payload.get("access") != AUTH_ACCESS:
            raise InvalidToken("Token was not issued for auth access")
        try:
            return uuid.UUID(str(payload["sub"]))
        except (KeyError, ValueError):
            raise InvalidToken("Token subject is missing or malformed")

    # ─── Issue / verify / revoke ─────────────────────────

    async def issue(self, user: User) -> str:
        """Sign a token and append it to the user's token list.

        The token is only returned once it is committed; a store failure
        raises PersistenceError instead.
        """
        token = self.sign(user.id)
        user.tokens.append(UserToken(access=AUTH_ACCESS, token=token))
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("token.issue_failed", user_id=str(user.id), error=str(e))
            raise PersistenceError("Could not store token") from e

        logger.info("token.issued", user_id=str(user.id), sessions=len(user.tokens))
        return token

    async def verify(self, token: str) -> User:
        """Resolve a token to the user it was issued to.

        Raises InvalidToken for bad tokens and Unauthenticated when the
        token is not (or no longer) registered for that user.
        """
        user_id = self.decode(token)

        result = await self.db.execute(
            select(User)
            .join(UserToken, UserToken.user_id == User.id)
            .where(
                User.id == user_id,
                UserToken.token == token,
                UserToken.access == AUTH_ACCESS,
            )
            .execution_options(populate_existing=True)
        )
        user = result.scalars().first()
        if not user:
            raise Unauthenticated("Token is not registered for this user")
        return user

    async def revoke(self, user: User, token: str) -> None:
        """Remove the token from the user's list. Removing an absent token is a no-op."""
        for record in [t for t in user.tokens if t.token == token]:
            user.tokens.remove(record)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("token.revoke_failed", user_id=str(user.id), error=str(e))
            raise PersistenceError("Could not remove token") from e

        logger.info("token.revoked", user_id=str(user.id), sessions=len(user.tokens))
