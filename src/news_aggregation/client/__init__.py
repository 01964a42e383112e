"""Client-side retrieval with snapshot fallback."""

from news_aggregation.client.retrieval import (
    RetrievalClient,
    RetrievalOrigin,
    RetrievalResult,
    RetrievalState,
    ScrapeOutcome,
)
from news_aggregation.client.scoring import Scoreboard, load_scoreboard, rank_items, score_item
from news_aggregation.client.snapshot import (
    SnapshotCache,
    load_snapshot_file,
    news_from_snapshot,
    videos_from_snapshot,
)

__all__ = [
    "RetrievalClient",
    "RetrievalOrigin",
    "RetrievalResult",
    "RetrievalState",
    "ScrapeOutcome",
    "SnapshotCache",
    "load_snapshot_file",
    "news_from_snapshot",
    "videos_from_snapshot",
    "Scoreboard",
    "load_scoreboard",
    "score_item",
    "rank_items",
]
