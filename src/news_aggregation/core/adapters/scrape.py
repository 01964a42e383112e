"""
Markup scrape adapter driven by declarative extraction rules.
"""

import re
from functools import lru_cache
from typing import Optional

from news_aggregation.core.adapters.base import SourceAdapter, require_text
from news_aggregation.errors import AdapterParseError
from news_aggregation.logger import get_logger
from news_aggregation.models import ExtractionRule, RawItem, SourceDescriptor, SourceKind

logger = get_logger(__name__)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def _first_group(pattern: Optional[str], text: str) -> Optional[str]:
    if not pattern:
        return None
    match = _compile(pattern).search(text)
    if not match:
        return None
    return match.group(1)


class ScrapeAdapter(SourceAdapter):
    """Adapter for pages without a feed.

    Each match of the container pattern is one candidate entry; candidates
    without both a title and a link are skipped.
    """

    kind = SourceKind.SCRAPE

    def fetch(self, descriptor: SourceDescriptor) -> list[RawItem]:
        if descriptor.extraction is None:
            raise AdapterParseError(
                f"No extraction rule configured for {descriptor.label}",
                {"url": descriptor.base_url},
            )

        document = self.fetcher.get(descriptor.base_url, accept="text/html")
        items = self.extract(document.text, descriptor.extraction, descriptor)

        if not items:
            logger.warning(f"No items scraped from {descriptor.label}")
        return items

    def extract(self, html: str, rule: ExtractionRule, descriptor: SourceDescriptor) -> list[RawItem]:
        """Apply an extraction rule to markup.

        Args:
            html: Page markup
            rule: Extraction patterns
            descriptor: Source the page came from

        Returns:
            Raw items in page order
        """
        containers = [match.group(1) for match in _compile(rule.container).finditer(html)]
        logger.debug(f"{descriptor.label}: {len(containers)} containers matched")

        def parse_container(container: str) -> RawItem:
            title = require_text(_first_group(rule.title, container), "title")
            link = require_text(_first_group(rule.link, container), "link")
            return RawItem(
                title=title,
                link=link,
                published=_first_group(rule.date, container),
                summary=_first_group(rule.summary, container),
            )

        return self._collect(containers, parse_container, descriptor)
