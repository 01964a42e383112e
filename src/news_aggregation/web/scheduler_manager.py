"""
Scheduler manager for the Flask application.

Keeps the acquisition scheduler in the application's extensions instead of a
module-level global.
"""

from typing import Optional

from flask import Flask, current_app

from news_aggregation.core.pipeline import AcquisitionPipeline
from news_aggregation.core.scheduler import AcquisitionScheduler
from news_aggregation.logger import get_logger

logger = get_logger(__name__)

EXTENSION_KEY = "scheduler_manager"


class SchedulerManager:
    """Owns the AcquisitionScheduler of one application."""

    def __init__(self, app: Optional[Flask] = None):
        """Initialize scheduler manager.

        Args:
            app: Optional Flask application instance
        """
        self._scheduler: Optional[AcquisitionScheduler] = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Register the manager on a Flask application."""
        app.extensions[EXTENSION_KEY] = self

    def get_scheduler(self) -> Optional[AcquisitionScheduler]:
        """Get the scheduler, or None if not initialized."""
        return self._scheduler

    def initialize_scheduler(
        self,
        pipeline: AcquisitionPipeline,
        interval_minutes: Optional[int] = None,
    ) -> AcquisitionScheduler:
        """Create the scheduler for a pipeline.

        Args:
            pipeline: Pipeline run by the scheduler
            interval_minutes: Override the configured interval

        Returns:
            AcquisitionScheduler instance
        """
        if self._scheduler is not None:
            logger.warning("Scheduler already initialized")
            return self._scheduler

        from news_aggregation.core.factories import create_scheduler

        self._scheduler = create_scheduler(pipeline, interval_minutes=interval_minutes)
        logger.info("Scheduler initialized")
        return self._scheduler

    def start_scheduler(self) -> bool:
        """Start the scheduler if not already running.

        Returns:
            True if started or already running
        """
        if self._scheduler is None:
            logger.error("Cannot start scheduler: not initialized")
            return False

        if not self._scheduler.is_running():
            self._scheduler.start()
        return True

    def stop_scheduler(self, wait: bool = True) -> bool:
        """Stop the scheduler if running.

        Args:
            wait: Whether to wait for a running job to complete

        Returns:
            True if stopped or not running
        """
        if self._scheduler is not None and self._scheduler.is_running():
            self._scheduler.stop(wait=wait)
        return True

    def get_stats(self) -> dict:
        """Scheduler statistics as a dict."""
        if self._scheduler is None:
            return {"initialized": False, "running": False}

        stats = self._scheduler.get_stats()
        status = self._scheduler.get_job_status()
        return {
            "initialized": True,
            "running": self._scheduler.is_running(),
            "nextRunTime": status.next_run_time.isoformat() if status and status.next_run_time else None,
            "totalExecutions": stats.total_executions,
            "successfulExecutions": stats.successful_executions,
            "failedExecutions": stats.failed_executions,
            "skippedExecutions": stats.skipped_executions,
            "lastError": status.last_error if status else None,
            "uptimeSeconds": stats.uptime_seconds,
        }


def get_scheduler_manager(app: Optional[Flask] = None) -> SchedulerManager:
    """Get the scheduler manager of an application (current app by default)."""
    app = app or current_app
    manager = app.extensions.get(EXTENSION_KEY)
    if manager is None:
        manager = SchedulerManager(app)
    return manager
