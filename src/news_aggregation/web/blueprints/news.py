"""
News API blueprint: retrieval, manual trigger and run status.
"""

from news_aggregation.logger import get_logger
from news_aggregation.models import TriggerKind
from news_aggregation.utils.time_utils import isoformat
from news_aggregation.web.blueprints.base import ServiceBlueprint
from news_aggregation.web.serializers import item_to_dict, json_response, metadata_to_dict

logger = get_logger(__name__)

RETRIEVAL_SOURCE = "kv-store"


class NewsBlueprint(ServiceBlueprint):
    """Endpoints over the merged collection."""

    name = "news"

    def _register_routes(self) -> None:
        self.blueprint.add_url_rule("/news-loader", view_func=self._load, methods=["GET"])
        self.blueprint.add_url_rule("/news-scraper", view_func=self._scrape, methods=["POST"])
        self.blueprint.add_url_rule("/news-status", view_func=self._status, methods=["GET"])

    def _load(self):
        """Serve the stored collection.

        Read-only: no upstream calls and no locking, so it returns whatever
        the last run committed, even while a run is in progress.
        """
        repository = self.services.repository
        items = repository.load_collection()
        metadata = repository.load_metadata()

        logger.debug(f"Serving {len(items)} stored items")
        return json_response(
            {
                "success": True,
                "count": len(items),
                "items": [item_to_dict(item) for item in items],
                "lastTriggerAt": isoformat(metadata.last_trigger_at) if metadata else None,
                "source": RETRIEVAL_SOURCE,
            }
        )

    def _scrape(self):
        """Run the acquisition pipeline now.

        The request body is ignored. RunInProgressError and
        StoreUnavailableError are mapped to 409 and 503 by the app's error
        handlers.
        """
        logger.info("Manual acquisition triggered via API")
        result = self.services.pipeline.run(TriggerKind.MANUAL)

        return json_response(
            {
                "success": True,
                "message": f"Stored {result.item_count} items",
                "count": result.item_count,
                "newItems": result.new_items,
                "timestamp": isoformat(result.timestamp),
                "failedSources": [outcome.label for outcome in result.failed_sources],
            }
        )

    def _status(self):
        """Run metadata, with defaults before the first run."""
        metadata = self.services.repository.load_metadata()
        return json_response(
            {
                "success": True,
                "running": self.services.pipeline.is_running,
                "metadata": metadata_to_dict(metadata),
            }
        )
