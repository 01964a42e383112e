"""API blueprints."""

from news_aggregation.web.blueprints.base import AppServices, ServiceBlueprint
from news_aggregation.web.blueprints.diagnostics import DiagnosticsBlueprint
from news_aggregation.web.blueprints.news import NewsBlueprint
from news_aggregation.web.blueprints.system import SystemBlueprint

__all__ = [
    "AppServices",
    "ServiceBlueprint",
    "NewsBlueprint",
    "SystemBlueprint",
    "DiagnosticsBlueprint",
]
