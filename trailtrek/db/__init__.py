"""
SQL persistence for the local cache.

Usage:
    from trailtrek.db import create_engine, create_session_factory, init_db, SqlKeyValueStore
"""
from .models import Base, CacheEntry
from .session import create_engine, create_session_factory, init_db, get_async_url
from .store import SqlKeyValueStore, CacheEntryRepository

__all__ = [
    "Base",
    "CacheEntry",
    "create_engine",
    "create_session_factory",
    "init_db",
    "get_async_url",
    "SqlKeyValueStore",
    "CacheEntryRepository",
]
