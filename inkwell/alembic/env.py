"""Alembic environment for the blog_posts schema.

``inkwell db`` builds the Alembic config in code, so there is normally no
alembic.ini; the database URL comes from DATABASE_URL through
:func:`inkwell.config.get_settings` unless ``sqlalchemy.url`` is set.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from inkwell.config import get_settings
from inkwell.db.base import Base
from inkwell.db.models import Post  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_settings().database_url


def _migrate(connection: Connection | None = None) -> None:
    if connection is None:
        # Offline: emit SQL instead of executing it
        context.configure(
            url=database_url(),
            target_metadata=Base.metadata,
            literal_binds=True,
            dialect_opts={"paramstyle": "named"},
        )
    else:
        context.configure(
            connection=connection,
            target_metadata=Base.metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    engine = create_async_engine(database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _migrate()
else:
    asyncio.run(_migrate_online())
