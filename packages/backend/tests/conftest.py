"""Test fixtures — an isolated database per test and seeded users/todos.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine and a freshly created schema. By default
   that is an in-memory SQLite database (aiosqlite), so the suite needs no
   running services; set TODOAPI_TEST_DATABASE_URL to point at PostgreSQL.
2. The app's get_db dependency is overridden to hand out the test session,
   so assertions can look straight at the rows the routes wrote.
3. Auth is NOT mocked: every protected request goes through the real
   x-auth guard with tokens issued by the real TokenService.
"""

import os

# Cheap bcrypt in tests; must be set before todoapi.config is imported.
os.environ.setdefault("TODOAPI_BCRYPT_ROUNDS", "4")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from todoapi.auth.password import hash_password
from todoapi.auth.tokens import TokenService
from todoapi.config import settings
from todoapi.db.engine import get_db
from todoapi.db.models import Base, Todo, User
from todoapi.main import app


TEST_DB_URL = os.environ.get("TODOAPI_TEST_DATABASE_URL", "sqlite+aiosqlite://")

SEED_USERS = [
    ("marcio@example.com", "mypass"),
    ("seconduser@example.com", "userTwoPass"),
]


def token_service(db: AsyncSession) -> TokenService:
    return TokenService(
        db, secret=settings.jwt_secret, algorithm=settings.jwt_algorithm
    )


@pytest_asyncio.fixture()
async def db_engine():
    """Per-test engine with the schema created up front and dropped after."""
    if TEST_DB_URL.startswith("sqlite"):
        # One shared connection, otherwise every session sees its own empty DB.
        engine = create_async_engine(
            TEST_DB_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(TEST_DB_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine):
    session = AsyncSession(db_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with the app's get_db overridden for testing."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def seed(db_session):
    """Two users with one token each, and one todo per user.

    The second user's todo is already completed (completedAt=333).
    Returns plain dicts so tests don't hold on to ORM objects.
    """
    tokens = token_service(db_session)

    users = []
    for email, password in SEED_USERS:
        user = User(email=email, password_hash=hash_password(password), tokens=[])
        db_session.add(user)
        await db_session.flush()
        token = await tokens.issue(user)
        users.append({
            "id": user.id,
            "email": email,
            "password": password,
            "token": token,
            "headers": {"x-auth": token},
        })

    todos = [
        Todo(text="first note", owner_id=users[0]["id"]),
        Todo(
            text="second note",
            completed=True,
            completed_at=333,
            owner_id=users[1]["id"],
        ),
    ]
    db_session.add_all(todos)
    await db_session.commit()

    return {
        "users": users,
        "todos": [
            {"id": t.id, "text": t.text, "owner_id": t.owner_id} for t in todos
        ],
    }
