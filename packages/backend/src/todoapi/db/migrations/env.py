"""Alembic environment for the users / user_tokens / todos schema.

Learn: The URL comes from TODOAPI_DATABASE_URL via settings, unless a
one-off target is passed on the command line:

    alembic -x dburl=sqlite+aiosqlite:///./todo.db upgrade head

SQLite cannot ALTER most constraints in place, so on that dialect
autogenerate renders batch operations (copy-and-swap tables).
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import create_async_engine

from todoapi.config import settings
from todoapi.db.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def database_url() -> str:
    x_args = context.get_x_argument(as_dictionary=True)
    return x_args.get("dburl", settings.database_url)


def _configure(**kwargs) -> None:
    url = make_url(database_url())
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=url.get_backend_name() == "sqlite",
        **kwargs,
    )


def migrate_offline() -> None:
    """Emit the SQL script instead of running it (``alembic upgrade --sql``)."""
    _configure(
        url=database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_online() -> None:
    engine = create_async_engine(database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    migrate_offline()
else:
    asyncio.run(migrate_online())
