"""
Date and time helpers.

All timestamps handled by the pipeline are timezone-aware UTC. The store
persists naive UTC values, as SQLite has no timezone support.
"""

import re
import time
from datetime import datetime, timezone
from typing import Any, Optional

from feedparser.datetimes import _parse_date as _feedparser_parse_date

from news_aggregation.logger import get_logger

logger = get_logger(__name__)

DATE_FORMATS = [
    # ISO 8601 formats
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    # RFC 2822 format
    "%a, %d %b %Y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M:%S",
    "%a, %d %b %Y %H:%M:%S %Z",
    # Common formats
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%B %d, %Y",
]

# Ten or more digits: Unix seconds, or milliseconds past 1e11
_EPOCH_RE = re.compile(r"^\d{10,}(\.\d+)?$")
_EPOCH_MILLIS_THRESHOLD = 1e11


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to aware UTC (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert a datetime to naive UTC for storage."""
    return to_utc(dt).replace(tzinfo=None)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as ISO 8601 UTC with a trailing Z."""
    if dt is None:
        return None
    return to_utc(dt).isoformat().replace("+00:00", "Z")


def from_epoch(value: float) -> Optional[datetime]:
    """Convert Unix seconds (or milliseconds) to an aware UTC datetime.

    Returns None when the value is outside the platform's range.
    """
    if abs(value) > _EPOCH_MILLIS_THRESHOLD:
        value = value / 1000
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug(f"Epoch value out of range: {value}")
        return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a publication date in any of the formats sources use.

    Args:
        value: datetime, time.struct_time, Unix timestamp, or date string

    Returns:
        Aware UTC datetime, or None when the value cannot be parsed
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return to_utc(value)

    if isinstance(value, time.struct_time):
        return datetime(*value[:6], tzinfo=timezone.utc)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return from_epoch(value)

    date_str = str(value).strip()
    if not date_str:
        return None

    if _EPOCH_RE.match(date_str):
        return from_epoch(float(date_str))

    # feedparser understands RFC 822, W3C-DTF and many regional variants
    parsed = _feedparser_parse_date(date_str)
    if parsed:
        return datetime(*parsed[:6], tzinfo=timezone.utc)

    for fmt in DATE_FORMATS:
        try:
            return to_utc(datetime.strptime(date_str, fmt))
        except (ValueError, TypeError):
            continue

    # Retry without a trailing numeric offset
    date_str_clean = re.sub(r"\s*[+-]\d{2}:?\d{2}$", "", date_str)
    if date_str_clean != date_str:
        for fmt in DATE_FORMATS:
            try:
                return to_utc(datetime.strptime(date_str_clean, fmt))
            except (ValueError, TypeError):
                continue

    logger.debug(f"Failed to parse date: {date_str}")
    return None
