"""
Flask application serving the merged collection and the acquisition triggers.
"""

from typing import Optional

from flask import Flask
from werkzeug.exceptions import HTTPException

from news_aggregation.config import get_config
from news_aggregation.core.factories import create_diagnostics, create_pipeline
from news_aggregation.core.pipeline import AcquisitionPipeline
from news_aggregation.errors import AggregationError, RunInProgressError, StoreUnavailableError
from news_aggregation.logger import get_logger
from news_aggregation.storage.database import DatabaseManager
from news_aggregation.web.blueprints import (
    AppServices,
    DiagnosticsBlueprint,
    NewsBlueprint,
    SystemBlueprint,
)
from news_aggregation.web.scheduler_manager import SchedulerManager
from news_aggregation.web.serializers import error_response

logger = get_logger(__name__)

SERVICES_KEY = "news_aggregation"


def create_app(
    db_path: Optional[str] = None,
    debug: bool = False,
    pipeline: Optional[AcquisitionPipeline] = None,
    enable_scheduler: bool = False,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        db_path: Store path or URL (default from config)
        debug: Enable debug mode
        pipeline: Optional pre-built pipeline (its repository is used for reads)
        enable_scheduler: Start the scheduled trigger with the app

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    config = get_config()
    app.config["DEBUG"] = debug or config.web.debug
    app.json.sort_keys = False

    if pipeline is None:
        db_manager = DatabaseManager(db_path)
        db_manager.init_db()
        pipeline = create_pipeline(db_manager)
    else:
        db_manager = pipeline.repository.store.db_manager

    services = AppServices(
        db_manager=db_manager,
        repository=pipeline.repository,
        pipeline=pipeline,
        diagnostics=create_diagnostics(pipeline),
    )
    app.extensions[SERVICES_KEY] = services

    # ========================================================================
    # Blueprints
    # ========================================================================

    app.register_blueprint(SystemBlueprint(services).blueprint)
    app.register_blueprint(NewsBlueprint(services).blueprint)
    app.register_blueprint(DiagnosticsBlueprint(services).blueprint)

    # ========================================================================
    # Scheduler
    # ========================================================================

    scheduler_manager = SchedulerManager(app)
    if enable_scheduler and config.scheduler.enabled:
        scheduler_manager.initialize_scheduler(pipeline)
        scheduler_manager.start_scheduler()

    # ========================================================================
    # CORS
    # ========================================================================

    cors_origin = config.web.cors_origin

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = cors_origin
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    # ========================================================================
    # Error Handlers
    # ========================================================================

    @app.errorhandler(RunInProgressError)
    def run_in_progress(e: RunInProgressError):
        logger.info(f"Rejected trigger: {e.message}")
        return error_response(e.message, status=409)

    @app.errorhandler(StoreUnavailableError)
    def store_unavailable(e: StoreUnavailableError):
        logger.error(f"Store unavailable: {e.message}")
        return error_response(e.message, status=503)

    @app.errorhandler(AggregationError)
    def aggregation_error(e: AggregationError):
        logger.error(f"{type(e).__name__}: {e.message}")
        return error_response(e.message, status=500)

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return error_response(e.description or e.name, status=e.code or 500)

    @app.errorhandler(Exception)
    def server_error(e: Exception):
        logger.exception(f"Server error: {e}")
        return error_response("Internal server error", status=500)

    logger.info(f"Web app created with store: {db_manager.db_path}")

    return app


def get_services(app: Flask) -> AppServices:
    """Services registered on an application by create_app."""
    return app.extensions[SERVICES_KEY]
