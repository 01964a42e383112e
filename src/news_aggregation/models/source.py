"""
Source descriptor models.

Descriptors are deployment configuration: they are frozen and never persisted.
"""

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SourceKind(str, Enum):
    """Adapter kind used to acquire a source."""

    FEED = "feed"
    SCRAPE = "scrape"
    API = "api"


class ExtractionRule(BaseModel):
    """Declarative markup extraction patterns for a scraped source.

    Every pattern is a regular expression whose first group captures the
    field. ``container`` is matched against the page; the other patterns are
    matched inside each container match.
    """

    model_config = ConfigDict(frozen=True)

    container: str
    title: str
    link: str
    date: Optional[str] = None
    summary: Optional[str] = None

    @field_validator("container", "title", "link", "date", "summary")
    @classmethod
    def validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        """Reject patterns that do not compile or capture nothing."""
        if v is None:
            return v
        try:
            compiled = re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid pattern {v!r}: {e}") from e
        if compiled.groups < 1:
            raise ValueError(f"Pattern {v!r} must capture the field in group 1")
        return v


class ApiFieldMap(BaseModel):
    """Field mapping for JSON API sources.

    ``items_path`` is a dot-separated path to the list of records; an empty
    path means the document itself is the list.
    """

    model_config = ConfigDict(frozen=True)

    items_path: str = "items"
    title: str = "title"
    url: str = "url"
    published_at: str = "publishedAt"
    summary: str = "summary"


class SourceDescriptor(BaseModel):
    """One configured upstream origin."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str = Field(..., min_length=1, description="Human-readable source label")
    base_url: str = Field(..., alias="url", description="Document URL and base for relative links")
    kind: SourceKind = Field(..., alias="type", description="Adapter kind")
    extraction: Optional[ExtractionRule] = Field(default=None, description="Scrape patterns")
    api_fields: Optional[ApiFieldMap] = Field(default=None, description="API field mapping")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Base URLs must be absolute http(s) URLs."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Source URL must be absolute http(s): {v!r}")
        return v

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v):
        """Accept the legacy ``rss`` spelling for feeds."""
        if isinstance(v, str) and v.lower() == "rss":
            return SourceKind.FEED
        return v


class SourceCategory(BaseModel):
    """Named, ordered group of sources."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    sources: tuple[SourceDescriptor, ...] = ()
