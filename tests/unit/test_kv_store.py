"""Unit tests for the key-value store."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from news_aggregation.errors import StoreUnavailableError
from news_aggregation.models import KVEntryModel
from news_aggregation.storage.database import DatabaseManager, build_url
from news_aggregation.storage.kv_store import KeyValueStore


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 12, tzinfo=timezone.utc))


@pytest.fixture
def clocked_store(db_manager: DatabaseManager, clock: FakeClock) -> KeyValueStore:
    return KeyValueStore(db_manager, clock=clock)


class TestBuildUrl:
    """Tests for build_url."""

    def test_memory(self):
        assert build_url(":memory:") == "sqlite://"

    def test_url_passthrough(self):
        assert build_url("postgresql://user@host/db") == "postgresql://user@host/db"

    def test_file_path_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "store.db"

        assert build_url(str(path)) == f"sqlite:///{path}"
        assert path.parent.exists()


class TestKeyValueStore:
    """Tests for KeyValueStore."""

    def test_put_get_roundtrip(self, store: KeyValueStore):
        store.put("k", {"a": [1, 2], "text": "Açores"})

        assert store.get("k") == {"a": [1, 2], "text": "Açores"}

    def test_missing_key(self, store: KeyValueStore):
        assert store.get("missing") is None

    def test_put_replaces(self, store: KeyValueStore):
        store.put("k", 1)
        store.put("k", 2)

        assert store.get("k") == 2

    def test_expired_key_reads_absent(self, clocked_store: KeyValueStore, clock: FakeClock):
        clocked_store.put("k", "v", ttl_seconds=60)

        clock.advance(59)
        assert clocked_store.get("k") == "v"

        clock.advance(1)
        assert clocked_store.get("k") is None

    def test_no_ttl_never_expires(self, clocked_store: KeyValueStore, clock: FakeClock):
        clocked_store.put("k", "v")
        clock.advance(86400 * 365)

        assert clocked_store.get("k") == "v"

    def test_delete(self, store: KeyValueStore):
        store.put("k", "v")

        assert store.delete("k") is True
        assert store.delete("k") is False
        assert store.get("k") is None

    def test_keys_with_prefix(self, clocked_store: KeyValueStore, clock: FakeClock):
        clocked_store.put("news-b", 1)
        clocked_store.put("news-a", 1)
        clocked_store.put("news-old", 1, ttl_seconds=10)
        clocked_store.put("other", 1)
        clock.advance(20)

        assert clocked_store.keys("news-") == ["news-a", "news-b"]
        assert len(clocked_store.keys()) == 3

    def test_purge_expired(self, clocked_store: KeyValueStore, clock: FakeClock, db_manager: DatabaseManager):
        clocked_store.put("short", 1, ttl_seconds=10)
        clocked_store.put("long", 1, ttl_seconds=1000)
        clock.advance(20)

        assert clocked_store.purge_expired() == 1

        with db_manager.session() as session:
            assert session.get(KVEntryModel, "short") is None
            assert session.get(KVEntryModel, "long") is not None

    def test_undecodable_value_reads_absent(self, store: KeyValueStore, db_manager: DatabaseManager):
        with db_manager.session() as session:
            session.add(KVEntryModel(key="bad", value="{not json", updated_at=datetime(2024, 1, 1)))

        assert store.get("bad") is None

    def test_database_error_raises_store_unavailable(self, store: KeyValueStore):
        with patch.object(
            store.db_manager, "session", side_effect=OperationalError("SELECT", {}, Exception("disk I/O error"))
        ):
            with pytest.raises(StoreUnavailableError):
                store.get("k")
            with pytest.raises(StoreUnavailableError):
                store.put("k", "v")


class TestLocks:
    """Tests for store-backed locks."""

    def test_acquire_and_release(self, store: KeyValueStore):
        assert store.acquire_lock("lock", "owner-1", ttl_seconds=60) is True
        assert store.acquire_lock("lock", "owner-2", ttl_seconds=60) is False

        assert store.release_lock("lock", "owner-1") is True
        assert store.acquire_lock("lock", "owner-2", ttl_seconds=60) is True

    def test_release_by_other_owner_ignored(self, store: KeyValueStore):
        store.acquire_lock("lock", "owner-1", ttl_seconds=60)

        assert store.release_lock("lock", "owner-2") is False
        assert store.acquire_lock("lock", "owner-3", ttl_seconds=60) is False

    def test_expired_lock_can_be_taken(self, clocked_store: KeyValueStore, clock: FakeClock):
        clocked_store.acquire_lock("lock", "crashed", ttl_seconds=600)
        clock.advance(601)

        assert clocked_store.acquire_lock("lock", "next", ttl_seconds=600) is True
        assert clocked_store.release_lock("lock", "crashed") is False

    def test_refresh_extends_lock(self, clocked_store: KeyValueStore, clock: FakeClock):
        """Test that a refreshed lock outlives its original lifetime."""
        clocked_store.acquire_lock("lock", "owner-1", ttl_seconds=600)
        clock.advance(500)

        assert clocked_store.refresh_lock("lock", "owner-1", ttl_seconds=600) is True
        clock.advance(500)

        assert clocked_store.acquire_lock("lock", "owner-2", ttl_seconds=600) is False

    def test_refresh_after_takeover_fails(self, clocked_store: KeyValueStore, clock: FakeClock):
        """Test that an owner cannot refresh a lock another owner took over."""
        clocked_store.acquire_lock("lock", "slow", ttl_seconds=600)
        clock.advance(601)
        clocked_store.acquire_lock("lock", "next", ttl_seconds=600)

        assert clocked_store.refresh_lock("lock", "slow", ttl_seconds=600) is False
        assert clocked_store.release_lock("lock", "next") is True
