"""
Structured JSON API adapter.
"""

import json
from typing import Any

from news_aggregation.core.adapters.base import SourceAdapter, require_text
from news_aggregation.errors import AdapterParseError
from news_aggregation.logger import get_logger
from news_aggregation.models import ApiFieldMap, RawItem, SourceDescriptor, SourceKind

logger = get_logger(__name__)


def resolve_path(document: Any, path: str) -> Any:
    """Follow a dot-separated path through nested dicts.

    Args:
        document: Decoded JSON document
        path: Dot-separated keys; empty returns the document itself

    Returns:
        The value at the path

    Raises:
        AdapterParseError: If a key along the path is missing
    """
    value = document
    for key in filter(None, path.split(".")):
        if not isinstance(value, dict) or key not in value:
            raise AdapterParseError(f"Path {path!r} not found in API response")
        value = value[key]
    return value


class ApiAdapter(SourceAdapter):
    """Adapter for JSON endpoints listing articles."""

    kind = SourceKind.API

    def fetch(self, descriptor: SourceDescriptor) -> list[RawItem]:
        document = self.fetcher.get(descriptor.base_url, accept="application/json")
        try:
            payload = json.loads(document.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise AdapterParseError(
                f"Invalid JSON from {descriptor.label}: {e}",
                {"url": descriptor.base_url},
            ) from e

        return self.parse(payload, descriptor)

    def parse(self, payload: Any, descriptor: SourceDescriptor) -> list[RawItem]:
        """Map decoded records to raw items.

        Args:
            payload: Decoded JSON document
            descriptor: Source the document came from

        Returns:
            Raw items, one per usable record

        Raises:
            AdapterParseError: If the record list cannot be located
        """
        fields = descriptor.api_fields or ApiFieldMap()
        records = resolve_path(payload, fields.items_path)
        if not isinstance(records, list):
            raise AdapterParseError(f"API response from {descriptor.label} is not a list of records")

        def parse_record(record: Any) -> RawItem:
            if not isinstance(record, dict):
                raise AdapterParseError("Record is not an object")
            return RawItem(
                title=require_text(record.get(fields.title), "title"),
                link=require_text(record.get(fields.url), "url"),
                published=record.get(fields.published_at),
                summary=record.get(fields.summary),
            )

        return self._collect(records, parse_record, descriptor)
