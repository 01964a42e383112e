"""
System API blueprint: service info and health.
"""

from news_aggregation import __version__
from news_aggregation.utils.time_utils import isoformat, utcnow
from news_aggregation.web.blueprints.base import ServiceBlueprint
from news_aggregation.web.scheduler_manager import get_scheduler_manager
from news_aggregation.web.serializers import json_response

ENDPOINTS = {
    "GET /": "Service info",
    "GET /health": "Health check",
    "GET /news-loader": "Stored items (read-only, no upstream calls)",
    "GET /news-status": "Run metadata",
    "POST /news-scraper": "Run acquisition now",
    "POST /test-scraper": "Probe one source by label (nothing stored)",
    "POST /test-scraping": "Probe source categories (nothing stored)",
}


class SystemBlueprint(ServiceBlueprint):
    """Service information endpoints."""

    name = "system"

    def _register_routes(self) -> None:
        self.blueprint.add_url_rule("/", view_func=self._info, methods=["GET"])
        self.blueprint.add_url_rule("/health", view_func=self._health, methods=["GET"])

    def _info(self):
        return json_response(
            {
                "message": "News aggregation service is running",
                "version": __version__,
                "endpoints": ENDPOINTS,
                "scheduler": get_scheduler_manager().get_stats(),
            }
        )

    def _health(self):
        now = utcnow()
        return json_response(
            {
                "status": "healthy",
                "timestamp": isoformat(now),
                "uptime": round((now - self.services.started_at).total_seconds(), 3),
            }
        )
