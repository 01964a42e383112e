"""Unit tests for the HTTP service."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from news_aggregation.core.adapters import AdapterRegistry
from news_aggregation.core.pipeline import AcquisitionPipeline
from news_aggregation.errors import AdapterFetchError, StoreUnavailableError
from news_aggregation.models import RawItem, RunMetadata, SourceCategory, SourceDescriptor, SourceKind
from news_aggregation.storage.repositories.collection_repo import CollectionRepository
from news_aggregation.web import create_app, get_services

SOURCE = SourceDescriptor(label="Regional News", url="https://news.example/feed", type="feed")
BROKEN = SourceDescriptor(label="Broken", url="https://broken.example/feed", type="feed")


class StubAdapter:
    def fetch(self, descriptor: SourceDescriptor) -> list[RawItem]:
        if descriptor.label == "Broken":
            raise AdapterFetchError("HTTP 500", url=descriptor.base_url, status_code=500)
        return [
            RawItem(title="Azores story", link="/a", published="2024-05-02T10:00:00Z"),
            RawItem(title="Older story", link="/b", published="2024-05-01T10:00:00Z"),
        ]


@pytest.fixture
def pipeline(repository: CollectionRepository) -> AcquisitionPipeline:
    return AcquisitionPipeline(
        repository=repository,
        categories=(
            SourceCategory(name="Regional", sources=(SOURCE,)),
            SourceCategory(name="Other", sources=(BROKEN,)),
        ),
        registry=AdapterRegistry(adapters={SourceKind.FEED: StubAdapter()}),
        source_delay_seconds=0,
        category_delay_seconds=0,
    )


@pytest.fixture
def app(pipeline: AcquisitionPipeline):
    app = create_app(pipeline=pipeline)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


class TestSystemEndpoints:
    """Tests for service info and health."""

    def test_info(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.get_json()
        assert data["message"] == "News aggregation service is running"
        assert "GET /news-loader" in data["endpoints"]
        assert data["scheduler"] == {"initialized": False, "running": False}

    def test_health(self, client):
        response = client.get("/health")

        data = response.get_json()
        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["timestamp"].endswith("Z")
        assert data["uptime"] >= 0

    def test_cors_headers(self, client):
        response = client.get("/health")

        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert "POST" in response.headers["Access-Control-Allow-Methods"]
        assert response.headers["Access-Control-Allow-Headers"] == "Content-Type"

    def test_unknown_route_is_json(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.get_json()["success"] is False


class TestNewsEndpoints:
    """Tests for retrieval, trigger and status."""

    def test_loader_empty_store(self, client):
        response = client.get("/news-loader")

        assert response.status_code == 200
        assert response.get_json() == {
            "success": True,
            "count": 0,
            "items": [],
            "lastTriggerAt": None,
            "source": "kv-store",
        }

    def test_loader_returns_stored_collection(self, client, repository: CollectionRepository, make_item):
        item = make_item(tags=["azores"])
        repository.save_collection([item])
        repository.save_metadata(
            RunMetadata(
                last_fetch_at=datetime(2024, 5, 1, 12, 1, tzinfo=timezone.utc),
                last_trigger_at=datetime(2024, 5, 1, 12, tzinfo=timezone.utc),
            )
        )

        data = client.get("/news-loader").get_json()

        assert data["count"] == 1
        assert data["items"][0]["url"] == item.url
        assert data["items"][0]["publishedAt"] == "2024-05-01T10:00:00Z"
        assert data["items"][0]["tags"] == ["azores"]
        assert data["lastTriggerAt"] == "2024-05-01T12:00:00Z"

    def test_loader_does_not_call_sources(self, client, pipeline: AcquisitionPipeline):
        with patch.object(pipeline, "acquire") as acquire:
            client.get("/news-loader")

        acquire.assert_not_called()

    def test_loader_store_failure_is_503(self, client, repository: CollectionRepository):
        with patch.object(repository, "load_collection", side_effect=StoreUnavailableError("down")):
            response = client.get("/news-loader")

        assert response.status_code == 503
        assert response.get_json() == {"success": False, "error": "down"}

    def test_scraper_runs_pipeline(self, client):
        response = client.post("/news-scraper")

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["count"] == 2
        assert data["newItems"] == 2
        assert data["failedSources"] == ["Broken"]

        loaded = client.get("/news-loader").get_json()
        assert [item["title"] for item in loaded["items"]] == ["Azores story", "Older story"]
        assert loaded["lastTriggerAt"] is not None

    def test_scraper_ignores_body(self, client):
        response = client.post("/news-scraper", json={"anything": True})

        assert response.status_code == 200

    def test_scraper_conflict_when_locked(self, client, repository: CollectionRepository):
        repository.acquire_run_lock("other")

        response = client.post("/news-scraper")

        assert response.status_code == 409
        assert response.get_json()["success"] is False

    def test_status_before_first_run(self, client):
        data = client.get("/news-status").get_json()

        assert data["success"] is True
        assert data["running"] is False
        assert data["metadata"]["lastFetchAt"] is None
        assert data["metadata"]["totalItems"] == 0

    def test_status_after_run(self, client):
        client.post("/news-scraper")

        metadata = client.get("/news-status").get_json()["metadata"]

        assert metadata["trigger"] == "manual"
        assert metadata["totalItems"] == 2
        assert metadata["contributingSources"] == ["news.example"]


class TestDiagnosticsEndpoints:
    """Tests for source probes."""

    def test_test_scraper_requires_name(self, client):
        response = client.post("/test-scraper", json={})

        assert response.status_code == 400
        assert response.get_json()["error"] == "scraperName is required"

    def test_test_scraper_unknown_source(self, client):
        response = client.post("/test-scraper", json={"scraperName": "Nope"})

        assert response.status_code == 404

    def test_test_scraper_probes_without_storing(self, client, repository: CollectionRepository):
        response = client.post("/test-scraper", json={"scraperName": "regional news"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["scraperName"] == "regional news"
        assert data["result"]["summary"]["items"] == 2
        assert len(data["result"]["samples"]["Regional News"]) == 2
        assert repository.load_collection() == []

    def test_test_scraping_all_categories(self, client):
        response = client.post("/test-scraping", json={})

        assert response.status_code == 200
        summary = response.get_json()["testResult"]["summary"]
        assert summary["sources"] == 2
        assert summary["failed"] == 1

    def test_test_scraping_selected_category(self, client):
        response = client.post(
            "/test-scraping",
            json={"enableVerboseLogging": False, "testSpecificSources": ["regional"]},
        )

        result = response.get_json()["testResult"]
        assert result["summary"]["sources"] == 1
        assert "samples" not in result

    def test_test_scraping_rejects_bad_list(self, client):
        response = client.post("/test-scraping", json={"testSpecificSources": "regional"})

        assert response.status_code == 400


class TestCreateApp:
    """Tests for create_app wiring."""

    def test_services_registered(self, app, pipeline: AcquisitionPipeline):
        services = get_services(app)

        assert services.pipeline is pipeline
        assert services.repository is pipeline.repository

    def test_builds_pipeline_from_config(self):
        app = create_app(db_path=":memory:")

        services = get_services(app)
        assert len(services.pipeline.categories) == 3
        services.db_manager.close()
