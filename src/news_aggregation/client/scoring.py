"""
Relevance scoring for the presentation layer.

Scores are computed on demand from weight tables; the stored collection is
always ordered by publication time, never by score.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from news_aggregation.config import get_config
from news_aggregation.logger import get_logger
from news_aggregation.models import ContentItem, VideoItem

logger = get_logger(__name__)


@dataclass(frozen=True)
class Scoreboard:
    """Weight tables: tag -> points, content keyword -> points, source pattern -> points."""

    tags: dict[str, float] = field(default_factory=dict)
    content: dict[str, float] = field(default_factory=dict)
    sources: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "Scoreboard":
        def table(name: str) -> dict[str, float]:
            values = data.get(name) or {}
            return {str(key): float(points) for key, points in values.items()}

        return cls(tags=table("tags"), content=table("content"), sources=table("sources"))


def load_scoreboard(path: Optional[str] = None) -> Scoreboard:
    """Load a scoreboard from a JSON file.

    Args:
        path: JSON file (default from config)

    Returns:
        Scoreboard; empty when the file is missing or invalid
    """
    path = path or get_config().client.scoreboard_path

    try:
        with Path(path).open("r", encoding="utf-8") as f:
            return Scoreboard.from_dict(json.load(f))
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to load scoreboard {path}: {e}")
        return Scoreboard()


def _keyword_points(text: str, table: dict[str, float]) -> float:
    haystack = text.lower()
    return sum(points for keyword, points in table.items() if keyword.lower() in haystack)


def _pattern_points(values: list[str], table: dict[str, float]) -> float:
    return sum(
        points
        for pattern, points in table.items()
        if any(pattern in value for value in values if value)
    )


def score_item(item: ContentItem, scoreboard: Scoreboard) -> float:
    """Relevance score of an item.

    News: tag weights, plus content keywords in the summary, plus source
    patterns found in the source. Video: tag weights, plus keywords in the
    summary or transcript, plus patterns found in the channel or source.
    """
    score = sum(scoreboard.tags.get(tag, 0.0) for tag in item.tags)

    if isinstance(item, VideoItem):
        text = " ".join(part for part in (item.summary, item.transcript) if part)
        score += _keyword_points(text, scoreboard.content)
        score += _pattern_points([item.channel, item.source], scoreboard.sources)
    else:
        score += _keyword_points(item.summary, scoreboard.content)
        score += _pattern_points([item.source], scoreboard.sources)

    return score


def rank_items(items: list[ContentItem], scoreboard: Scoreboard) -> list[ContentItem]:
    """Items ordered by descending score, ties kept in input order."""
    return sorted(items, key=lambda item: score_item(item, scoreboard), reverse=True)
