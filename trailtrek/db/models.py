"""
Cache Entry Model

One row per cache key; the value is the serialized JSON document
(e.g. a wallet's cached user data blob).
"""

from datetime import datetime

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CacheEntry(Base):
    """Key-value cache row."""

    __tablename__ = "cache_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<CacheEntry key={self.key} size={len(self.value or '')}>"
