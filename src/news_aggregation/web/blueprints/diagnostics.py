"""
Diagnostics API blueprint: probe sources without storing anything.
"""

from news_aggregation.logger import get_logger
from news_aggregation.utils.time_utils import isoformat, utcnow
from news_aggregation.web.blueprints.base import ServiceBlueprint
from news_aggregation.web.serializers import error_response, json_response

logger = get_logger(__name__)


class DiagnosticsBlueprint(ServiceBlueprint):
    """Development endpoints for checking extraction rules."""

    name = "diagnostics"

    def _register_routes(self) -> None:
        self.blueprint.add_url_rule("/test-scraper", view_func=self._test_source, methods=["POST"])
        self.blueprint.add_url_rule("/test-scraping", view_func=self._test_categories, methods=["POST"])

    def _test_source(self):
        """Probe one source: ``{"scraperName": "<label>"}``."""
        body = self._json_body()
        label = body.get("scraperName")
        if not label or not isinstance(label, str):
            return error_response("scraperName is required", status=400)

        report = self.services.diagnostics.probe_source(label)
        if report is None:
            return error_response(f"Unknown source: {label}", status=404)

        return json_response(
            {
                "success": True,
                "scraperName": label,
                "timestamp": isoformat(utcnow()),
                "result": report.to_dict(verbose=True),
            }
        )

    def _test_categories(self):
        """Probe categories: ``{"enableVerboseLogging": bool, "testSpecificSources": [names]}``."""
        body = self._json_body()
        verbose = bool(body.get("enableVerboseLogging", True))
        names = body.get("testSpecificSources") or []
        if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
            return error_response("testSpecificSources must be a list of category names", status=400)

        logger.info(f"Probing {'all categories' if not names else ', '.join(names)}")
        report = self.services.diagnostics.probe_categories(names, verbose=verbose)

        return json_response(
            {
                "success": True,
                "testResult": report.to_dict(verbose=verbose),
            }
        )
