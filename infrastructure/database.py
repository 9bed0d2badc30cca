"""
Database engine and session factory.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from core.config import settings
from infrastructure.models import Base


def _build_async_url(database_url: str) -> str:
    """Upgrade a sync driver URL to its async driver."""
    url = make_url(database_url)
    drivername = url.drivername

    if "+" in drivername:
        return database_url

    driver_map = {
        "postgresql": "postgresql+asyncpg",
        "postgres": "postgresql+asyncpg",
        "sqlite": "sqlite+aiosqlite",
    }

    if drivername not in driver_map:
        raise ValueError(f"Unsupported database driver: {drivername}. Use an async driver URL")

    async_driver = driver_map[drivername]
    return url.set(drivername=async_driver).render_as_string(hide_password=False)


def build_engine(database_url: str, *, echo: bool = False, **kwargs) -> AsyncEngine:
    return create_async_engine(_build_async_url(database_url), echo=echo, future=True, **kwargs)


engine = build_engine(settings.database.url, echo=settings.DEBUG)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
)


async def create_tables(bind: AsyncEngine = engine):
    """Create every mapped table (development and tests only; production uses Alembic)."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def isolated_session_factory() -> AsyncIterator[async_sessionmaker]:
    """Session factory on a throwaway engine, for code that runs its own event loop (Celery tasks)."""
    task_engine = build_engine(settings.database.url, poolclass=NullPool)
    try:
        yield async_sessionmaker(bind=task_engine, expire_on_commit=False)
    finally:
        await task_engine.dispose()
