"""Storage layer modules for news aggregation."""

from news_aggregation.storage.database import DatabaseManager, build_url, create_store_engine, init_db
from news_aggregation.storage.kv_store import KeyValueStore
from news_aggregation.storage.repositories import CollectionRepository

__all__ = [
    "DatabaseManager",
    "KeyValueStore",
    "CollectionRepository",
    "build_url",
    "create_store_engine",
    "init_db",
]
