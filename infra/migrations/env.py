# infra/migrations/env.py
"""
Alembic environment for the booking schema.

Tables come from app.models (availability_rules, services, appointments,
audit_logs). The DSN is always taken from settings.SQL_DSN so migrations
hit the same database as the API. On SQLite, ALTERs are rendered in batch
mode because the partial unique indexes on appointments cannot be altered
in place there.
"""
from __future__ import annotations

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from app.core.config import settings
from app import models

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = models.Base.metadata

config.set_main_option("sqlalchemy.url", settings.SQL_DSN)


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the booking DDL as SQL without connecting."""
    _configure(
        url=settings.SQL_DSN,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=settings.SQL_DSN.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    _configure(
        connection=connection,
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    # Alembic itself is sync: run it on the async connection via run_sync
    engine = create_async_engine(settings.SQL_DSN, poolclass=pool.NullPool)
    async with engine.connect() as conn:
        await conn.run_sync(do_run_migrations)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
