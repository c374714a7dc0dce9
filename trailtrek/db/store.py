"""
SQL-backed key-value store.

Implements the KeyValueStore protocol on top of the cache_entries table,
so TrailCache can persist wallets' data in SQLite or PostgreSQL.

Usage:
    engine = create_engine("sqlite:///./trailtrek.db")
    await init_db(engine)
    store = SqlKeyValueStore(create_session_factory(engine))
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trailtrek.shared.repository import BaseRepository
from .models import CacheEntry

logger = logging.getLogger(__name__)


class CacheEntryRepository(BaseRepository[CacheEntry]):
    """Repository for cache rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, CacheEntry)

    async def upsert(self, key: str, value: str) -> CacheEntry:
        """Insert or overwrite the row for key."""
        entry = await self.get(key)
        if entry is None:
            return await self.create(key=key, value=value)
        return await self.update(entry, value=value)


class SqlKeyValueStore:
    """
    KeyValueStore backed by SQLAlchemy async sessions.

    Each operation runs in its own short transaction; the last write wins.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, key: str) -> Optional[str]:
        async with self.session_factory() as session:
            entry = await CacheEntryRepository(session).get(key)
            return entry.value if entry else None

    async def set(self, key: str, value: str) -> None:
        async with self.session_factory() as session:
            await CacheEntryRepository(session).upsert(key, value)
            await session.commit()
        logger.debug(f"Cache entry written: {key} ({len(value)} chars)")

    async def delete(self, key: str) -> None:
        async with self.session_factory() as session:
            repo = CacheEntryRepository(session)
            entry = await repo.get(key)
            if entry is not None:
                await repo.delete(entry)
                await session.commit()
