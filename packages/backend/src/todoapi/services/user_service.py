"""User service — registration, credential checks and sessions.

Learn: Registration and login both end by issuing a token through the
TokenService, so the returned ``x-auth`` value is always one that is
already stored on the user row.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.auth.password import hash_password, verify_password
from todoapi.auth.tokens import TokenService
from todoapi.db.models import User
from todoapi.errors import PersistenceError, ValidationError

logger = structlog.get_logger()


class UserService:
    """Business logic for accounts."""

    def __init__(self, db: AsyncSession, tokens: TokenService):
        self.db = db
        self.tokens = tokens

    async def get_by_email(self, email: str) -> User | None:
        try:
            result = await self.db.execute(
                select(User)
                .where(User.email == email)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Could not load user") from e
        return result.scalars().first()

    async def register(self, email: str, password: str) -> tuple[User, str]:
        """Create a user and its first session token.

        Duplicate emails are a ValidationError, whether caught by the
        pre-check or by the unique constraint.
        """
        if await self.get_by_email(email):
            raise ValidationError("Email already registered")

        user = User(email=email, password_hash=hash_password(password), tokens=[])
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError("Email already registered") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Could not create user") from e

        token = await self.tokens.issue(user)
        logger.info("user.registered", user_id=str(user.id))
        return user, token

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and add a new session token.

        Existing tokens are left alone: each login is an extra session.
        """
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("user.login_rejected")
            raise ValidationError("Invalid credentials")

        token = await self.tokens.issue(user)
        logger.info("user.logged_in", user_id=str(user.id))
        return user, token

    async def logout(self, user: User, token: str) -> None:
        await self.tokens.revoke(user, token)
        logger.info("user.logged_out", user_id=str(user.id))
