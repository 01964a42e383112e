"""
Syndication feed adapter (RSS/Atom) built on feedparser.
"""

import feedparser

from news_aggregation.core.adapters.base import SourceAdapter, require_text
from news_aggregation.errors import AdapterParseError
from news_aggregation.logger import get_logger
from news_aggregation.models import RawItem, SourceDescriptor, SourceKind

logger = get_logger(__name__)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.8, */*;q=0.5"


class FeedAdapter(SourceAdapter):
    """Adapter for RSS and Atom feeds."""

    kind = SourceKind.FEED

    def fetch(self, descriptor: SourceDescriptor) -> list[RawItem]:
        document = self.fetcher.get(descriptor.base_url, accept=FEED_ACCEPT)
        return self.parse(document.content, descriptor)

    def parse(self, content: bytes, descriptor: SourceDescriptor) -> list[RawItem]:
        """Parse a feed document.

        Args:
            content: Raw feed bytes
            descriptor: Source the document came from

        Returns:
            Raw items, one per well-formed entry

        Raises:
            AdapterParseError: If the document is not a feed
        """
        parsed = feedparser.parse(content)
        entries = parsed.get("entries", [])

        if not entries and parsed.get("bozo"):
            error = parsed.get("bozo_exception")
            raise AdapterParseError(
                f"Unparseable feed from {descriptor.label}: {error}",
                {"url": descriptor.base_url},
            )

        logger.debug(f"Feed {descriptor.label} has {len(entries)} entries")
        return self._collect(entries, self._parse_entry, descriptor)

    def _parse_entry(self, entry) -> RawItem:
        title = require_text(entry.get("title"), "title")
        link = require_text(entry.get("link"), "link")

        published = (
            entry.get("published_parsed")
            or entry.get("updated_parsed")
            or entry.get("published")
            or entry.get("updated")
        )
        summary = entry.get("summary") or entry.get("description")

        return RawItem(title=title, link=link, published=published, summary=summary)
