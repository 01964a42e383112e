"""
Content item models.

Items form a tagged union discriminated by ``kind``: the acquisition pipeline
produces news items, while the bundled snapshot may also carry videos.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from news_aggregation.utils.time_utils import to_utc


class ContentKind(str, Enum):
    """Discriminator values for content items."""

    NEWS = "news"
    VIDEO = "video"


class TriggerKind(str, Enum):
    """What started an acquisition run."""

    MANUAL = "manual"
    SCHEDULED = "scheduled"


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Serialize to the JSON wire shape."""
        return self.model_dump(mode="json", by_alias=True)


class ItemBase(WireModel):
    """Fields shared by every content item."""

    id: str = Field(..., min_length=1, description="Stable identifier derived from the URL")
    title: str = Field(..., min_length=1, description="Plain-text title")
    source: str = Field(..., description="Canonical source name (URL host)")
    url: str = Field(..., description="Absolute canonical URL")
    published_at: datetime = Field(..., description="Publication time (UTC)")
    summary: str = Field(default="", description="Plain-text summary")
    tags: list[str] = Field(default_factory=list, description="Topic labels")

    @field_validator("published_at")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        """Store publication times as aware UTC."""
        return to_utc(v)

    @field_validator("tags", mode="before")
    @classmethod
    def collapse_tags(cls, v: Any) -> list[str]:
        """Collapse duplicate tags; order is not significant."""
        if v is None:
            return []
        return sorted({str(tag) for tag in v if tag})

    @field_validator("summary", mode="before")
    @classmethod
    def default_summary(cls, v: Any) -> str:
        """Treat a missing summary as empty."""
        return v or ""


class NewsItem(ItemBase):
    """Canonical item produced by the acquisition pipeline."""

    kind: Literal["news"] = "news"


class VideoItem(ItemBase):
    """Video entry shipped with the bundled snapshot."""

    kind: Literal["video"] = "video"
    thumbnail: str = ""
    duration: str = ""
    channel: str = ""
    transcript: Optional[str] = None


ContentItem = Union[NewsItem, VideoItem]


def parse_content_item(data: dict) -> ContentItem:
    """Build the item variant named by the record's discriminator.

    Args:
        data: Item record; ``kind`` (or the legacy ``type`` key) selects the
            variant and defaults to news

    Returns:
        NewsItem or VideoItem

    Raises:
        pydantic.ValidationError: If the record does not fit the variant
        ValueError: If the discriminator names an unknown kind
    """
    record = dict(data)
    kind = record.pop("kind", None) or record.pop("type", None) or ContentKind.NEWS.value
    record.pop("type", None)

    if kind == ContentKind.NEWS.value:
        return NewsItem.model_validate(record)
    if kind == ContentKind.VIDEO.value:
        return VideoItem.model_validate(record)
    raise ValueError(f"Unknown content kind: {kind!r}")


@dataclass
class RawItem:
    """Item as emitted by a source adapter, before normalization."""

    title: Optional[str]
    link: Optional[str]
    published: Any = None
    summary: Optional[str] = None


class RunMetadata(WireModel):
    """Bookkeeping written once per completed merge."""

    last_fetch_at: datetime
    last_trigger_at: datetime
    trigger: TriggerKind = TriggerKind.MANUAL
    total_items: int = Field(default=0, ge=0)
    new_items_added: int = Field(default=0, ge=0)
    contributing_sources: list[str] = Field(default_factory=list)

    @field_validator("last_fetch_at", "last_trigger_at")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        """Store timestamps as aware UTC."""
        return to_utc(v)

    @field_validator("contributing_sources", mode="before")
    @classmethod
    def collapse_sources(cls, v: Any) -> list[str]:
        """Contributing sources form a set."""
        if v is None:
            return []
        return sorted(set(v))
