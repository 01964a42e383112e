"""Data models for news aggregation."""

from news_aggregation.models.item import (
    ContentItem,
    ContentKind,
    NewsItem,
    RawItem,
    RunMetadata,
    TriggerKind,
    VideoItem,
    parse_content_item,
)
from news_aggregation.models.source import (
    ApiFieldMap,
    ExtractionRule,
    SourceCategory,
    SourceDescriptor,
    SourceKind,
)
from news_aggregation.models.store import Base, KVEntryModel

__all__ = [
    "Base",
    "KVEntryModel",
    "ContentItem",
    "ContentKind",
    "NewsItem",
    "VideoItem",
    "RawItem",
    "RunMetadata",
    "TriggerKind",
    "parse_content_item",
    "ApiFieldMap",
    "ExtractionRule",
    "SourceCategory",
    "SourceDescriptor",
    "SourceKind",
]
