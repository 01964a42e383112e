"""
Base class for source adapters.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional

from news_aggregation.core.fetcher import HttpFetcher
from news_aggregation.errors import AdapterParseError
from news_aggregation.logger import get_logger
from news_aggregation.models import RawItem, SourceDescriptor, SourceKind

logger = get_logger(__name__)


class SourceAdapter(ABC):
    """Retrieves one source and emits raw items.

    Adapters are stateless apart from their fetcher: each call to fetch() is
    independent and has no side effects beyond the HTTP request.
    """

    kind: SourceKind

    def __init__(self, fetcher: Optional[HttpFetcher] = None):
        """Initialize adapter.

        Args:
            fetcher: HttpFetcher used for network access
        """
        self.fetcher = fetcher or HttpFetcher()

    @abstractmethod
    def fetch(self, descriptor: SourceDescriptor) -> list[RawItem]:
        """Retrieve raw items for a source.

        Args:
            descriptor: Source to acquire

        Returns:
            Raw items; malformed entries are skipped

        Raises:
            AdapterFetchError: On network failure or non-2xx response
            AdapterParseError: If the document cannot be parsed at all
        """

    def _collect(
        self,
        entries: Iterable[Any],
        parse_entry: Callable[[Any], RawItem],
        descriptor: SourceDescriptor,
    ) -> list[RawItem]:
        """Parse entries one by one, skipping those that fail."""
        items = []
        skipped = 0
        for entry in entries:
            try:
                items.append(parse_entry(entry))
            except AdapterParseError as e:
                skipped += 1
                logger.debug(f"Skipping entry from {descriptor.label}: {e.message}")

        if skipped:
            logger.info(f"Skipped {skipped} malformed entries from {descriptor.label}")
        return items


def require_text(value: Any, field_name: str) -> str:
    """Return a stripped string field or raise AdapterParseError."""
    if value is None:
        raise AdapterParseError(f"Entry has no {field_name}")
    text = str(value).strip()
    if not text:
        raise AdapterParseError(f"Entry has an empty {field_name}")
    return text
