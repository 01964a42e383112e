"""
Key-value entry model for the persistent store.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class KVEntryModel(Base):
    """SQLAlchemy ORM model for one key-value entry.

    ``value`` holds JSON text. ``expires_at`` is naive UTC; NULL never expires.
    """

    __tablename__ = "kv_entries"

    __table_args__ = (
        Index("ix_kv_entries_expires_at", "expires_at"),
    )

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<KVEntryModel(key='{self.key}', expires_at={self.expires_at})>"
