"""Unit tests for the client retrieval pipeline."""

import time

import httpx
import pytest

from news_aggregation.client.retrieval import (
    RetrievalClient,
    RetrievalOrigin,
    RetrievalState,
)
from news_aggregation.client.snapshot import SnapshotCache
from news_aggregation.errors import (
    ClientTimeoutError,
    ClientTransportError,
    SnapshotUnavailableError,
)
from news_aggregation.models import VideoItem

BASE_URL = "http://service.test"

LIVE_ITEM = {
    "id": "live-1",
    "title": "Live story",
    "source": "azores.gov.pt",
    "url": "https://azores.gov.pt/live-1",
    "publishedAt": "2024-05-03T09:00:00Z",
    "summary": "",
    "tags": ["azores"],
    "kind": "news",
}


def snapshot_items(make_item):
    return [
        make_item("https://example.com/snap", title="Snapshot story"),
        VideoItem(
            id="v1",
            title="Video",
            source="youtube.com",
            url="https://youtube.com/v1",
            published_at="2024-05-01T00:00:00Z",
        ),
    ]


def make_client(handler, snapshot=None, **kwargs) -> RetrievalClient:
    return RetrievalClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        snapshot=snapshot,
        **kwargs,
    )


def loader_response(items=None, **extra) -> httpx.Response:
    body = {"success": True, "count": len(items or []), "items": items or [], "source": "kv-store"}
    body.update(extra)
    return httpx.Response(200, json=body)


@pytest.fixture
def snapshot(make_item):
    calls = []

    def loader(location):
        calls.append(location)
        return snapshot_items(make_item)

    cache = SnapshotCache(location="bundled.json", loader=loader)
    cache.calls = calls
    return cache


@pytest.fixture
def missing_snapshot(tmp_path):
    return SnapshotCache(location=str(tmp_path / "missing.json"))


class TestLoad:
    """Tests for RetrievalClient.load."""

    def test_live_success(self, snapshot):
        client = make_client(
            lambda request: loader_response([LIVE_ITEM], lastTriggerAt="2024-05-03T10:00:00Z"),
            snapshot=snapshot,
        )

        result = client.load()

        assert result.origin == RetrievalOrigin.LIVE
        assert result.is_live is True
        assert [item.title for item in result.items] == ["Live story"]
        assert result.last_trigger_at.isoformat() == "2024-05-03T10:00:00+00:00"
        assert client.state == RetrievalState.READY
        assert client.history == [RetrievalState.IDLE, RetrievalState.ATTEMPTING_LIVE, RetrievalState.READY]
        assert snapshot.calls == []

    def test_empty_live_collection_is_not_a_fallback(self, snapshot):
        client = make_client(lambda request: loader_response([]), snapshot=snapshot)

        result = client.load()

        assert result.origin == RetrievalOrigin.LIVE
        assert result.count == 0

    def test_legacy_response_keys(self, snapshot):
        body = {"success": True, "news": [dict(LIVE_ITEM, type="news")], "lastCronRun": "2024-05-03T10:00:00Z"}
        client = make_client(lambda request: httpx.Response(200, json=body), snapshot=snapshot)

        result = client.load()

        assert result.count == 1
        assert result.last_trigger_at is not None

    def test_invalid_records_skipped(self, snapshot):
        client = make_client(lambda request: loader_response([LIVE_ITEM, {"title": "broken"}]), snapshot=snapshot)

        assert client.load().count == 1

    def test_server_error_falls_back(self, snapshot):
        client = make_client(lambda request: httpx.Response(500), snapshot=snapshot)

        result = client.load()

        assert result.origin == RetrievalOrigin.SNAPSHOT
        assert [item.title for item in result.items] == ["Snapshot story"]
        assert "HTTP 500" in result.error
        assert client.history == [
            RetrievalState.IDLE,
            RetrievalState.ATTEMPTING_LIVE,
            RetrievalState.FELL_BACK_TO_SNAPSHOT,
            RetrievalState.READY,
        ]

    def test_connection_error_falls_back(self, snapshot):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = make_client(handler, snapshot=snapshot).load()

        assert result.origin == RetrievalOrigin.SNAPSHOT

    def test_failure_body_falls_back(self, snapshot):
        client = make_client(
            lambda request: httpx.Response(200, json={"success": False, "error": "boom"}),
            snapshot=snapshot,
        )

        result = client.load()

        assert result.origin == RetrievalOrigin.SNAPSHOT
        assert "boom" in result.error

    def test_timeout_falls_back(self, snapshot):
        def slow(request):
            time.sleep(1.0)
            return loader_response([LIVE_ITEM])

        ticks = []
        client = make_client(slow, snapshot=snapshot, timeout_seconds=0.3, tick_interval_seconds=0.1)

        start = time.monotonic()
        result = client.load(on_tick=lambda elapsed, timeout: ticks.append((elapsed, timeout)))
        elapsed = time.monotonic() - start

        assert result.origin == RetrievalOrigin.SNAPSHOT
        assert "timed out" in result.error
        assert elapsed < 0.9
        assert ticks
        assert all(timeout == 0.3 for _, timeout in ticks)

    def test_offline_skips_live_service(self, snapshot):
        requests = []

        def handler(request):
            requests.append(request)
            return loader_response([LIVE_ITEM])

        client = make_client(handler, snapshot=snapshot, offline=True)

        result = client.load()

        assert requests == []
        assert result.origin == RetrievalOrigin.OFFLINE
        assert client.history == [RetrievalState.IDLE, RetrievalState.OFFLINE_BYPASSED, RetrievalState.READY]

    def test_offline_from_config(self, snapshot, test_config):
        test_config.client.offline = True

        client = make_client(lambda request: loader_response([LIVE_ITEM]), snapshot=snapshot)

        assert client.load().origin == RetrievalOrigin.OFFLINE

    def test_snapshot_loaded_once(self, snapshot):
        client = make_client(lambda request: httpx.Response(503), snapshot=snapshot)

        client.load()
        client.load()

        assert snapshot.calls == ["bundled.json"]

    def test_missing_snapshot_fails(self, missing_snapshot):
        client = make_client(lambda request: httpx.Response(503), snapshot=missing_snapshot)

        with pytest.raises(SnapshotUnavailableError):
            client.load()

        assert client.state == RetrievalState.FAILED

    def test_offline_missing_snapshot_fails(self, missing_snapshot):
        client = make_client(lambda request: loader_response(), snapshot=missing_snapshot, offline=True)

        with pytest.raises(SnapshotUnavailableError):
            client.load()

        assert client.history[-1] == RetrievalState.FAILED


class TestRefresh:
    """Tests for RetrievalClient.refresh."""

    def test_refresh_success(self, snapshot):
        client = make_client(lambda request: loader_response([LIVE_ITEM]), snapshot=snapshot)

        assert client.refresh().count == 1
        assert client.state == RetrievalState.READY

    def test_refresh_does_not_fall_back(self, snapshot):
        client = make_client(lambda request: httpx.Response(500), snapshot=snapshot)

        with pytest.raises(ClientTransportError):
            client.refresh()

        assert client.state == RetrievalState.FAILED
        assert snapshot.calls == []

    def test_refresh_timeout(self, snapshot):
        def slow(request):
            time.sleep(1.0)
            return loader_response()

        client = make_client(slow, snapshot=snapshot, timeout_seconds=0.2, tick_interval_seconds=0.05)

        with pytest.raises(ClientTimeoutError):
            client.refresh()


class TestServiceHelpers:
    """Tests for trigger, health and info requests."""

    def test_trigger_scrape(self, snapshot):
        def handler(request):
            assert request.method == "POST"
            assert request.url.path == "/news-scraper"
            return httpx.Response(
                200,
                json={"success": True, "count": 5, "newItems": 2, "timestamp": "2024-05-03T10:00:00Z"},
            )

        outcome = make_client(handler, snapshot=snapshot).trigger_scrape()

        assert outcome.success is True
        assert outcome.count == 5
        assert outcome.new_items == 2
        assert outcome.timestamp is not None

    def test_trigger_scrape_conflict_reported(self, snapshot):
        client = make_client(
            lambda request: httpx.Response(409, json={"success": False, "error": "busy"}),
            snapshot=snapshot,
        )

        outcome = client.trigger_scrape()

        assert outcome.success is False
        assert "409" in outcome.error

    def test_scrape_latest_loads_after_trigger(self, snapshot):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={"success": True, "count": 1, "newItems": 1})
            return loader_response([LIVE_ITEM])

        outcome, result = make_client(handler, snapshot=snapshot).scrape_latest()

        assert outcome.success is True
        assert result.origin == RetrievalOrigin.LIVE

    def test_scrape_latest_stops_on_failed_trigger(self, snapshot):
        outcome, result = make_client(lambda request: httpx.Response(500), snapshot=snapshot).scrape_latest()

        assert outcome.success is False
        assert result is None

    def test_check_health(self, snapshot):
        healthy = make_client(lambda request: httpx.Response(200, json={"status": "healthy"}), snapshot=snapshot)
        down = make_client(lambda request: httpx.Response(503), snapshot=snapshot)

        assert healthy.check_health() is True
        assert down.check_health() is False

    def test_get_info(self, snapshot):
        client = make_client(lambda request: httpx.Response(200, json={"message": "ok"}), snapshot=snapshot)

        assert client.get_info() == {"message": "ok"}

    def test_get_info_unreachable(self, snapshot):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        assert make_client(handler, snapshot=snapshot).get_info() is None
