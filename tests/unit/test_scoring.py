"""Unit tests for relevance scoring."""

import json
from datetime import datetime, timezone

import pytest

from news_aggregation.client.scoring import Scoreboard, load_scoreboard, rank_items, score_item
from news_aggregation.models import VideoItem


@pytest.fixture
def scoreboard():
    return Scoreboard(
        tags={"azores": 5, "climate": 2},
        content={"food forest": 3, "soil": 1},
        sources={"azores.gov.pt": 3, "Regeneration": 2},
    )


class TestScoreItem:
    """Tests for score_item."""

    def test_news_score(self, scoreboard: Scoreboard, make_item):
        item = make_item(
            source="azores.gov.pt",
            summary="A Food Forest on volcanic soil",
            tags=["azores", "climate", "unscored"],
        )

        assert score_item(item, scoreboard) == 5 + 2 + 3 + 1 + 3

    def test_news_title_not_scored(self, scoreboard: Scoreboard, make_item):
        item = make_item(title="Food forest", summary="")

        assert score_item(item, scoreboard) == 0

    def test_video_uses_transcript_and_channel(self, scoreboard: Scoreboard):
        video = VideoItem(
            id="v1",
            title="Video",
            source="youtube.com",
            url="https://youtube.com/v1",
            published_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
            transcript="We planted a food forest.",
            channel="Island Regeneration",
            tags=["azores"],
        )

        assert score_item(video, scoreboard) == 5 + 3 + 2

    def test_empty_scoreboard(self, make_item):
        assert score_item(make_item(tags=["azores"]), Scoreboard()) == 0


class TestRankItems:
    """Tests for rank_items."""

    def test_orders_by_score_keeping_ties(self, scoreboard: Scoreboard, make_item):
        plain_a = make_item("https://example.com/a")
        tagged = make_item("https://example.com/b", tags=["azores"])
        plain_c = make_item("https://example.com/c")

        ranked = rank_items([plain_a, tagged, plain_c], scoreboard)

        assert ranked == [tagged, plain_a, plain_c]


class TestLoadScoreboard:
    """Tests for load_scoreboard."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "scoreboard.json"
        path.write_text(json.dumps({"tags": {"azores": 5}, "sources": {"uac.pt": "2"}}), encoding="utf-8")

        scoreboard = load_scoreboard(str(path))

        assert scoreboard.tags == {"azores": 5.0}
        assert scoreboard.content == {}
        assert scoreboard.sources == {"uac.pt": 2.0}

    def test_missing_file_gives_empty_tables(self, tmp_path):
        assert load_scoreboard(str(tmp_path / "missing.json")) == Scoreboard()

    def test_invalid_file_gives_empty_tables(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[1, 2]", encoding="utf-8")

        assert load_scoreboard(str(path)) == Scoreboard()
