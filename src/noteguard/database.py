# Database engine and session dependency
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings, get_settings
from .core.models.base import BaseModel


def build_engine(settings: Settings) -> AsyncEngine:
    """Async engine for the configured URL (PostgreSQL in production, SQLite in tests)."""
    options = {"echo": settings.database_echo}
    if settings.database_url.startswith("postgresql"):
        # leases are short lived, a dead pooled connection shouldn't fail a request
        options.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    return create_async_engine(settings.database_url, **options)


engine = build_engine(get_settings())

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db_session():
    """One session per request."""
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables():
    """Create all tables (development only, production uses alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)


async def dispose_engine():
    await engine.dispose()
