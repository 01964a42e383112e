"""Source adapters, one per source kind."""

from typing import Optional

from news_aggregation.core.adapters.api import ApiAdapter
from news_aggregation.core.adapters.base import SourceAdapter
from news_aggregation.core.adapters.feed import FeedAdapter
from news_aggregation.core.adapters.scrape import ScrapeAdapter
from news_aggregation.core.fetcher import HttpFetcher
from news_aggregation.models import SourceKind

_ADAPTER_CLASSES: dict[SourceKind, type[SourceAdapter]] = {
    SourceKind.FEED: FeedAdapter,
    SourceKind.SCRAPE: ScrapeAdapter,
    SourceKind.API: ApiAdapter,
}


def create_adapter(kind: SourceKind, fetcher: Optional[HttpFetcher] = None) -> SourceAdapter:
    """Create the adapter for a source kind.

    Args:
        kind: Source kind
        fetcher: Optional shared HttpFetcher

    Returns:
        SourceAdapter instance

    Raises:
        ValueError: If no adapter handles the kind
    """
    adapter_class = _ADAPTER_CLASSES.get(SourceKind(kind))
    if adapter_class is None:
        raise ValueError(f"No adapter for source kind: {kind!r}")
    return adapter_class(fetcher=fetcher)


class AdapterRegistry:
    """Adapters keyed by source kind, sharing one fetcher."""

    def __init__(
        self,
        fetcher: Optional[HttpFetcher] = None,
        adapters: Optional[dict[SourceKind, SourceAdapter]] = None,
    ):
        self.fetcher = fetcher or HttpFetcher()
        self._adapters: dict[SourceKind, SourceAdapter] = dict(adapters or {})

    def register(self, kind: SourceKind, adapter: SourceAdapter) -> None:
        """Use a specific adapter instance for a kind."""
        self._adapters[SourceKind(kind)] = adapter

    def get(self, kind: SourceKind) -> SourceAdapter:
        """Get (creating on first use) the adapter for a kind."""
        kind = SourceKind(kind)
        if kind not in self._adapters:
            self._adapters[kind] = create_adapter(kind, self.fetcher)
        return self._adapters[kind]


__all__ = [
    "SourceAdapter",
    "FeedAdapter",
    "ScrapeAdapter",
    "ApiAdapter",
    "AdapterRegistry",
    "create_adapter",
]
