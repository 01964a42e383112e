"""
Base class for API blueprints.

Blueprints are classes that receive the application services at construction
and register their routes on a flask.Blueprint.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from flask import Blueprint, request

from news_aggregation.core.diagnostics import SourceDiagnostics
from news_aggregation.core.pipeline import AcquisitionPipeline
from news_aggregation.storage.database import DatabaseManager
from news_aggregation.storage.repositories.collection_repo import CollectionRepository
from news_aggregation.utils.time_utils import utcnow


@dataclass
class AppServices:
    """Components shared by the blueprints of one application."""

    db_manager: DatabaseManager
    repository: CollectionRepository
    pipeline: AcquisitionPipeline
    diagnostics: SourceDiagnostics
    started_at: datetime = field(default_factory=utcnow)


class ServiceBlueprint(ABC):
    """Blueprint bound to the application services."""

    name: str

    def __init__(self, services: AppServices, url_prefix: Optional[str] = None):
        """Initialize the blueprint.

        Args:
            services: Application services
            url_prefix: Optional URL prefix for all routes
        """
        self.services = services
        self.blueprint = Blueprint(self.name, __name__, url_prefix=url_prefix)
        self._register_routes()

    @abstractmethod
    def _register_routes(self) -> None:
        """Register routes on self.blueprint."""

    @staticmethod
    def _json_body() -> dict[str, Any]:
        """Request JSON body, or an empty dict when absent or not an object."""
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}
