"""Shared test fixtures."""

from datetime import datetime, timezone

import pytest

from news_aggregation.config import Config, PipelineConfig, StoreConfig, set_config
from news_aggregation.models import NewsItem
from news_aggregation.storage.database import DatabaseManager
from news_aggregation.storage.kv_store import KeyValueStore
from news_aggregation.storage.repositories.collection_repo import CollectionRepository
from news_aggregation.utils.hash_utils import compute_item_id


@pytest.fixture(autouse=True)
def test_config():
    """Isolated configuration with an in-memory store."""
    config = Config(
        store=StoreConfig(path=":memory:"),
        pipeline=PipelineConfig(source_delay_seconds=0, category_delay_seconds=0, sources_file=None),
    )
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def db_manager():
    """Create an in-memory database manager."""
    manager = DatabaseManager(":memory:")
    manager.init_db()
    yield manager
    manager.close()


@pytest.fixture
def store(db_manager: DatabaseManager) -> KeyValueStore:
    return KeyValueStore(db_manager)


@pytest.fixture
def repository(store: KeyValueStore) -> CollectionRepository:
    return CollectionRepository(store)


@pytest.fixture
def make_item():
    """Factory for NewsItem with an id derived from its URL."""

    def _make(
        url: str = "https://example.com/a",
        published_at: datetime = datetime(2024, 5, 1, 10, tzinfo=timezone.utc),
        title: str = "Item",
        **kwargs,
    ) -> NewsItem:
        return NewsItem(
            id=compute_item_id(url),
            title=title,
            source=kwargs.pop("source", "example.com"),
            url=url,
            published_at=published_at,
            **kwargs,
        )

    return _make
