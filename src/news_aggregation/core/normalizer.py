"""
Normalizer: turns raw adapter output into canonical news items.
"""

import re
from datetime import datetime
from html import unescape
from typing import Any, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup

from news_aggregation.errors import AdapterParseError
from news_aggregation.logger import get_logger
from news_aggregation.models import NewsItem, RawItem, SourceDescriptor
from news_aggregation.utils.hash_utils import compute_item_id
from news_aggregation.utils.time_utils import parse_datetime, to_utc, utcnow

logger = get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(value: Any) -> str:
    """Reduce markup to plain text.

    Strips tags, decodes entities and collapses whitespace.

    Args:
        value: Raw text or markup

    Returns:
        Plain text (empty for None)
    """
    if value is None:
        return ""

    text = str(value)
    if "<" in text:
        soup = BeautifulSoup(text, "html.parser")
        for element in soup(["script", "style", "noscript"]):
            element.decompose()
        text = soup.get_text(separator=" ")

    # Entities may be double-encoded in scraped markup
    text = unescape(unescape(text))
    return _WHITESPACE_RE.sub(" ", text).strip()


def resolve_url(link: str, base_url: str) -> str:
    """Resolve a link to a canonical absolute URL.

    Relative links are joined against the source base; scheme and host are
    lower-cased and the fragment is dropped.

    Raises:
        AdapterParseError: If the link is malformed or not an http(s) URL
    """
    try:
        absolute = urljoin(base_url, unescape(link.strip()))
        parts = urlsplit(absolute)
    except ValueError as e:
        # Unbalanced IPv6 brackets and similar
        raise AdapterParseError(f"Malformed link {link!r}: {e}") from e

    scheme = parts.scheme.lower()
    if scheme not in ("http", "https") or not parts.netloc:
        raise AdapterParseError(f"Link does not resolve to an http(s) URL: {link!r}")

    return urlunsplit((scheme, parts.netloc.lower(), parts.path or "/", parts.query, ""))


def derive_source(url: str) -> str:
    """Canonical source name: the URL host without a leading www."""
    host = urlsplit(url).hostname or ""
    if host.startswith("www."):
        host = host[4:]
    return host


class Normalizer:
    """Maps RawItem records to NewsItem."""

    def normalize(
        self,
        raw: RawItem,
        descriptor: SourceDescriptor,
        now: Optional[datetime] = None,
    ) -> NewsItem:
        """Normalize one raw item.

        Args:
            raw: Adapter output
            descriptor: Source the item came from
            now: Acquisition time used when the item has no usable date

        Returns:
            NewsItem with no tags

        Raises:
            AdapterParseError: If the title is empty or the link unusable
        """
        title = clean_text(raw.title)
        if not title:
            raise AdapterParseError("Item has an empty title", {"source": descriptor.label})

        if not raw.link:
            raise AdapterParseError("Item has no link", {"source": descriptor.label})
        url = resolve_url(raw.link, descriptor.base_url)

        published_at = parse_datetime(raw.published)
        if published_at is None:
            if raw.published:
                logger.debug(f"Unparseable date {raw.published!r} from {descriptor.label}")
            published_at = to_utc(now) if now else utcnow()

        return NewsItem(
            id=compute_item_id(url),
            title=title,
            source=derive_source(url),
            url=url,
            published_at=published_at,
            summary=clean_text(raw.summary),
        )
