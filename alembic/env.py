"""Alembic environment running migrations through the async engine."""
import asyncio

from alembic import context
from sqlalchemy.engine import Connection

from api.shared.entities.registry import BaseEntity
from core.settings import SETTINGS
from infra.resources import DatabaseResource

target_metadata = BaseEntity.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=SETTINGS.DATABASE.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    database = await DatabaseResource(SETTINGS.DATABASE.DATABASE_URL).init()
    try:
        async with database.engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await database.shutdown()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
