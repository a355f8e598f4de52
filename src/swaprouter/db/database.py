"""Async database handle for the protocol fee store."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from swaprouter.config import get_settings
from swaprouter.db.models import Base

logger = logging.getLogger(__name__)


def async_database_url(url: str) -> str:
    """Force the aiosqlite driver onto plain sqlite URLs."""
    if url.startswith("sqlite://") and not url.startswith("sqlite+"):
        return "sqlite+aiosqlite://" + url[len("sqlite://"):]
    return url


class Database:
    """One engine plus its session factory.

    `session()` is a unit of work: it commits when the block exits cleanly
    and rolls back when it raises.
    """

    def __init__(self, url: str, echo: bool = False, **engine_options: Any):
        self.url = async_database_url(url)
        self.engine = create_async_engine(self.url, echo=echo, **engine_options)
        self._sessions = async_sessionmaker(
            bind=self.engine, expire_on_commit=False, autoflush=False
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._sessions() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            await session.commit()

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


_database: Optional[Database] = None


def get_database() -> Database:
    """Process-wide database for the configured URL, created on first use."""
    global _database
    if _database is None:
        settings = get_settings()
        _database = Database(
            settings.database_url, echo=settings.debug and not settings.is_production
        )
    return _database


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with get_database().session() as session:
        yield session


async def init_db() -> None:
    await get_database().create_tables()
    logger.info("Protocol fee tables ready")


async def close_db() -> None:
    global _database
    if _database is not None:
        await _database.dispose()
        _database = None
