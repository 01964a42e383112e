"""Repository implementations for data access."""

from news_aggregation.storage.repositories.collection_repo import CollectionRepository

__all__ = [
    "CollectionRepository",
]
