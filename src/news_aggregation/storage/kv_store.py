"""
Key-value store with per-key expirations, backed by SQLAlchemy.
"""

import json
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from news_aggregation.errors import StoreUnavailableError
from news_aggregation.logger import get_logger
from news_aggregation.models import KVEntryModel
from news_aggregation.storage.database import DatabaseManager
from news_aggregation.utils.time_utils import to_naive_utc, utcnow

logger = get_logger(__name__)


class KeyValueStore:
    """JSON values stored under string keys, each with an optional TTL.

    Expired keys read as absent. Reads take no locks. Every database failure is
    raised as StoreUnavailableError.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the store.

        Args:
            db_manager: DatabaseManager providing sessions
            clock: Optional callable returning the current aware UTC time
        """
        self.db_manager = db_manager
        self._clock = clock or utcnow

    def _now(self) -> datetime:
        return to_naive_utc(self._clock())

    def _expiry(self, ttl_seconds: Optional[int]) -> Optional[datetime]:
        if ttl_seconds is None:
            return None
        return self._now() + timedelta(seconds=ttl_seconds)

    def get(self, key: str) -> Optional[Any]:
        """Read a value.

        Args:
            key: Key to read

        Returns:
            Decoded JSON value, or None if absent or expired

        Raises:
            StoreUnavailableError: On database failure
        """
        now = self._now()
        try:
            with self.db_manager.session() as session:
                entry = session.get(KVEntryModel, key)
                if entry is None:
                    return None
                if entry.expires_at is not None and entry.expires_at <= now:
                    return None
                raw = entry.value
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to read {key!r}: {e}", {"key": key}) from e

        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding undecodable value under {key!r}")
            return None

    def put(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """Write a value, replacing any previous one.

        Args:
            key: Key to write
            value: JSON-serializable value
            ttl_seconds: Seconds until expiry (None never expires)

        Raises:
            StoreUnavailableError: On database failure
        """
        payload = json.dumps(value, ensure_ascii=False)
        try:
            with self.db_manager.session() as session:
                session.merge(
                    KVEntryModel(
                        key=key,
                        value=payload,
                        expires_at=self._expiry(ttl_seconds),
                        updated_at=self._now(),
                    )
                )
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to write {key!r}: {e}", {"key": key}) from e

    def delete(self, key: str) -> bool:
        """Delete a key.

        Args:
            key: Key to delete

        Returns:
            True if a key was deleted

        Raises:
            StoreUnavailableError: On database failure
        """
        try:
            with self.db_manager.session() as session:
                result = session.execute(delete(KVEntryModel).where(KVEntryModel.key == key))
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to delete {key!r}: {e}", {"key": key}) from e

    def keys(self, prefix: str = "") -> list[str]:
        """List live keys, optionally filtered by prefix.

        Args:
            prefix: Key prefix

        Returns:
            Sorted list of keys that have not expired
        """
        now = self._now()
        stmt = select(KVEntryModel.key).where(
            or_(KVEntryModel.expires_at.is_(None), KVEntryModel.expires_at > now)
        )
        if prefix:
            stmt = stmt.where(KVEntryModel.key.startswith(prefix, autoescape=True))
        try:
            with self.db_manager.session() as session:
                return sorted(session.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to list keys: {e}") from e

    def purge_expired(self) -> int:
        """Physically remove expired entries.

        Returns:
            Number of entries removed
        """
        now = self._now()
        try:
            with self.db_manager.session() as session:
                result = session.execute(
                    delete(KVEntryModel).where(
                        KVEntryModel.expires_at.is_not(None),
                        KVEntryModel.expires_at <= now,
                    )
                )
                removed = result.rowcount or 0
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to purge expired keys: {e}") from e

        if removed:
            logger.info(f"Purged {removed} expired keys")
        return removed

    def acquire_lock(self, key: str, owner: str, ttl_seconds: int) -> bool:
        """Try to take a lock stored under a key.

        An expired lock is treated as released, so a crashed holder blocks
        other runs for at most ttl_seconds.

        Args:
            key: Lock key
            owner: Token identifying the holder
            ttl_seconds: Lock lifetime

        Returns:
            True if the lock was acquired

        Raises:
            StoreUnavailableError: On database failure
        """
        now = self._now()
        try:
            with self.db_manager.session() as session:
                session.execute(
                    delete(KVEntryModel).where(
                        KVEntryModel.key == key,
                        KVEntryModel.expires_at.is_not(None),
                        KVEntryModel.expires_at <= now,
                    )
                )
                session.add(
                    KVEntryModel(
                        key=key,
                        value=json.dumps(owner),
                        expires_at=now + timedelta(seconds=ttl_seconds),
                        updated_at=now,
                    )
                )
                session.flush()
        except IntegrityError:
            logger.debug(f"Lock {key!r} is held by another owner")
            return False
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to acquire lock {key!r}: {e}", {"key": key}) from e

        return True

    def refresh_lock(self, key: str, owner: str, ttl_seconds: int) -> bool:
        """Extend a lock still held by owner.

        A lock that expired but was not taken over by another owner is
        extended as well.

        Args:
            key: Lock key
            owner: Token used when acquiring
            ttl_seconds: New lifetime, counted from now

        Returns:
            False if another owner holds the lock or it was removed

        Raises:
            StoreUnavailableError: On database failure
        """
        now = self._now()
        try:
            with self.db_manager.session() as session:
                result = session.execute(
                    update(KVEntryModel)
                    .where(
                        KVEntryModel.key == key,
                        KVEntryModel.value == json.dumps(owner),
                    )
                    .values(expires_at=now + timedelta(seconds=ttl_seconds), updated_at=now)
                )
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to refresh lock {key!r}: {e}", {"key": key}) from e

    def release_lock(self, key: str, owner: str) -> bool:
        """Release a lock if it is still held by owner.

        Args:
            key: Lock key
            owner: Token used when acquiring

        Returns:
            True if the lock was released
        """
        try:
            with self.db_manager.session() as session:
                result = session.execute(
                    delete(KVEntryModel).where(
                        KVEntryModel.key == key,
                        KVEntryModel.value == json.dumps(owner),
                    )
                )
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to release lock {key!r}: {e}", {"key": key}) from e
