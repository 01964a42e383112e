"""
Bundled static snapshot, loaded once and memoized in an explicit cache.

The snapshot document is either a JSON list of content items or an object
``{"version": ..., "items": [...]}``. It may be a local file or an http(s) URL.
"""

import json
import threading
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from news_aggregation.config import get_config
from news_aggregation.errors import SnapshotUnavailableError
from news_aggregation.logger import get_logger
from news_aggregation.models import ContentItem, NewsItem, VideoItem, parse_content_item

logger = get_logger(__name__)


def read_snapshot_document(location: str, timeout_seconds: float = 10.0) -> Any:
    """Read and decode the raw snapshot document.

    Args:
        location: File path or http(s) URL
        timeout_seconds: Timeout for URL locations

    Returns:
        Decoded JSON document

    Raises:
        SnapshotUnavailableError: If the document cannot be read or decoded
    """
    try:
        if location.startswith(("http://", "https://")):
            response = httpx.get(location, timeout=timeout_seconds)
            response.raise_for_status()
            return response.json()

        with Path(location).open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError, httpx.HTTPError) as e:
        raise SnapshotUnavailableError(
            f"Snapshot {location} unavailable: {e}", {"location": location}
        ) from e


def parse_snapshot(document: Any) -> list[ContentItem]:
    """Parse a snapshot document into content items.

    Records that do not validate are skipped.

    Raises:
        SnapshotUnavailableError: If the document has no item list
    """
    if isinstance(document, dict):
        version = document.get("version")
        records = document.get("items")
        if version is not None:
            logger.debug(f"Snapshot version {version}")
    else:
        records = document

    if not isinstance(records, list):
        raise SnapshotUnavailableError("Snapshot document has no item list")

    items: list[ContentItem] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        try:
            items.append(parse_content_item(record))
        except (ValidationError, ValueError) as e:
            logger.warning(f"Skipping invalid snapshot record {record.get('id')!r}: {e}")
    return items


def load_snapshot_file(location: str) -> list[ContentItem]:
    """Read and parse a snapshot document."""
    return parse_snapshot(read_snapshot_document(location))


def news_from_snapshot(items: list[ContentItem]) -> list[NewsItem]:
    """News entries of a snapshot."""
    return [item for item in items if isinstance(item, NewsItem)]


def videos_from_snapshot(items: list[ContentItem]) -> list[VideoItem]:
    """Video entries of a snapshot."""
    return [item for item in items if isinstance(item, VideoItem)]


class SnapshotCache:
    """Memoizing loader for the bundled snapshot.

    The first successful load is kept until clear(). Concurrent callers share
    one in-flight load; a failed load is not cached.
    """

    def __init__(
        self,
        location: Optional[str] = None,
        loader: Optional[Callable[[str], list[ContentItem]]] = None,
    ):
        """Initialize cache.

        Args:
            location: Snapshot file path or URL (default from config)
            loader: Function loading a location (used by tests)
        """
        self.location = location or get_config().client.snapshot_path
        self._loader = loader or load_snapshot_file
        self._items: Optional[list[ContentItem]] = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._items is not None

    def get(self) -> list[ContentItem]:
        """Snapshot items, loading them on first use.

        Raises:
            SnapshotUnavailableError: If the snapshot cannot be loaded
        """
        with self._lock:
            if self._items is None:
                logger.info(f"Loading snapshot from {self.location}")
                self._items = self._loader(self.location)
                logger.info(f"Snapshot loaded: {len(self._items)} items")
            return self._items

    def clear(self) -> None:
        """Drop the cached snapshot; the next get() reloads it."""
        with self._lock:
            self._items = None
