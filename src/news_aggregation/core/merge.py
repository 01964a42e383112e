"""
Merge engine: deduplicate incoming items against the stored collection.

Pure functions only; the store owns all persisted state.
"""

from typing import Iterable

from news_aggregation.models import NewsItem

MAX_COLLECTION_SIZE = 100


def merge_items(
    existing: list[NewsItem],
    incoming: Iterable[NewsItem],
    max_size: int = MAX_COLLECTION_SIZE,
) -> list[NewsItem]:
    """Merge freshly acquired items into the existing collection.

    An incoming item whose URL is already known is dropped; the first
    occurrence of a URL always wins. The result is ordered newest first
    (ties keep their original relative order) and truncated to max_size.

    Args:
        existing: Previously persisted collection
        incoming: Newly normalized items
        max_size: Collection cap

    Returns:
        New merged collection
    """
    if max_size < 0:
        raise ValueError("max_size must not be negative")

    seen = {item.url for item in existing}
    fresh = []
    for item in incoming:
        if item.url in seen:
            continue
        seen.add(item.url)
        fresh.append(item)

    merged = sorted([*existing, *fresh], key=lambda item: item.published_at, reverse=True)
    return merged[:max_size]


def count_new_items(existing: list[NewsItem], merged: list[NewsItem]) -> int:
    """Number of merged items that were not in the existing collection."""
    known = {item.id for item in existing}
    return sum(1 for item in merged if item.id not in known)
