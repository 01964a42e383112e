"""
Collection repository: the merged item list, per-item records and run metadata.
"""

from typing import Optional

from pydantic import ValidationError

from news_aggregation.config import StoreConfig, get_config
from news_aggregation.logger import get_logger
from news_aggregation.models import NewsItem, RunMetadata
from news_aggregation.storage.kv_store import KeyValueStore

logger = get_logger(__name__)


class CollectionRepository:
    """Typed access to the keys owned by the acquisition pipeline.

    The collection key is authoritative for listing. Per-item keys live longer
    and are a best-effort record of recently seen items.
    """

    def __init__(self, store: KeyValueStore, store_config: Optional[StoreConfig] = None):
        """Initialize repository.

        Args:
            store: KeyValueStore instance
            store_config: Optional key layout and TTL configuration
        """
        self.store = store
        self.config = store_config or get_config().store

    def item_key(self, item_id: str) -> str:
        """Key of a single item record."""
        return f"{self.config.item_key_prefix}{item_id}"

    def load_collection(self) -> list[NewsItem]:
        """Load the merged collection.

        Returns:
            Ordered items; empty if the key is absent or expired

        Raises:
            StoreUnavailableError: On database failure
        """
        records = self.store.get(self.config.collection_key)
        if not records:
            return []

        if not isinstance(records, list):
            logger.warning(f"Ignoring malformed collection under {self.config.collection_key!r}")
            return []

        items = []
        for record in records:
            try:
                items.append(NewsItem.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored item: {e.error_count()} validation errors")
        return items

    def save_collection(self, items: list[NewsItem], ttl_seconds: Optional[int] = None) -> None:
        """Replace the merged collection.

        Args:
            items: Ordered items
            ttl_seconds: Expiration (defaults to the configured collection TTL)
        """
        ttl = ttl_seconds or self.config.collection_ttl_seconds
        self.store.put(self.config.collection_key, [item.to_wire() for item in items], ttl)

    def save_item(self, item: NewsItem, ttl_seconds: Optional[int] = None) -> None:
        """Store one item under its own key.

        Args:
            item: Item to store
            ttl_seconds: Expiration (defaults to the configured item TTL)
        """
        ttl = ttl_seconds or self.config.item_ttl_seconds
        self.store.put(self.item_key(item.id), item.to_wire(), ttl)

    def load_item(self, item_id: str) -> Optional[NewsItem]:
        """Load one item record.

        Args:
            item_id: Item identifier

        Returns:
            NewsItem or None if absent, expired or invalid
        """
        record = self.store.get(self.item_key(item_id))
        if record is None:
            return None
        try:
            return NewsItem.model_validate(record)
        except ValidationError:
            logger.warning(f"Stored item {item_id} is invalid")
            return None

    def load_metadata(self) -> Optional[RunMetadata]:
        """Load the run metadata.

        Returns:
            RunMetadata or None if absent, expired or invalid
        """
        record = self.store.get(self.config.metadata_key)
        if record is None:
            return None
        try:
            return RunMetadata.model_validate(record)
        except ValidationError:
            logger.warning("Stored run metadata is invalid")
            return None

    def save_metadata(self, metadata: RunMetadata, ttl_seconds: Optional[int] = None) -> None:
        """Replace the run metadata as a single value.

        Args:
            metadata: Run metadata
            ttl_seconds: Expiration (defaults to the configured metadata TTL)
        """
        ttl = ttl_seconds or self.config.metadata_ttl_seconds
        self.store.put(self.config.metadata_key, metadata.to_wire(), ttl)

    def acquire_run_lock(self, owner: str, ttl_seconds: Optional[int] = None) -> bool:
        """Take the store-wide acquisition lock.

        Args:
            owner: Token identifying this run
            ttl_seconds: Lock lifetime (defaults to the configured lock TTL)

        Returns:
            True if the lock was acquired
        """
        ttl = ttl_seconds or self.config.lock_ttl_seconds
        return self.store.acquire_lock(self.config.lock_key, owner, ttl)

    def release_run_lock(self, owner: str) -> bool:
        """Release the acquisition lock held by owner."""
        return self.store.release_lock(self.config.lock_key, owner)

    def refresh_run_lock(self, owner: str, ttl_seconds: Optional[int] = None) -> bool:
        """Extend the acquisition lock held by owner.

        Returns:
            False if the lock is no longer held by owner
        """
        ttl = ttl_seconds or self.config.lock_ttl_seconds
        return self.store.refresh_lock(self.config.lock_key, owner, ttl)
