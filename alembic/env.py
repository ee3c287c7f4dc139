"""Alembic environment for the NoteGuard schema (PostgreSQL only)."""
import asyncio
import os
import sys
from logging.config import fileConfig
from pathlib import Path
from urllib.parse import quote_plus

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT / "src"))

# real environment variables win over .env
load_dotenv(PROJECT_ROOT / ".env", override=False)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from noteguard.core.models import BaseModel  # noqa: E402

target_metadata = BaseModel.metadata


def database_url() -> str:
    """sqlalchemy.url from alembic.ini, then DATABASE_URL, then DB_* parts."""
    url = config.get_main_option("sqlalchemy.url") or os.environ.get("DATABASE_URL")
    if not url:
        password = os.environ.get("DB_PASSWORD") or os.environ.get("POSTGRES_PASSWORD")
        if not password:
            raise RuntimeError("Set DATABASE_URL or DB_* variables to run migrations")
        url = "postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}".format(
            user=quote_plus(os.environ.get("DB_USER", "noteguard")),
            password=quote_plus(password),
            host=os.environ.get("DB_HOST", "localhost"),
            port=os.environ.get("DB_PORT", "5432"),
            name=os.environ.get("DB_NAME", "noteguard"),
        )

    if not url.startswith("postgresql"):
        raise RuntimeError(f"Migrations target PostgreSQL only, got {url.split(':', 1)[0]}")
    # the app runs on asyncpg, so do the migrations
    return url.replace("postgresql://", "postgresql+asyncpg://", 1)


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


def run_migrations_offline() -> None:
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
