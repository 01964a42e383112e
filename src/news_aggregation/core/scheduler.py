"""
Scheduler for periodic acquisition runs.

Uses APScheduler to trigger the acquisition pipeline at a fixed interval.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MISSED, JobEvent
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from news_aggregation.config import get_config
from news_aggregation.core.pipeline import AcquisitionPipeline, RunResult
from news_aggregation.errors import RunInProgressError, StoreUnavailableError
from news_aggregation.logger import get_logger
from news_aggregation.models import TriggerKind

logger = get_logger(__name__)

ACQUISITION_JOB_ID = "acquisition"


@dataclass
class JobStatus:
    """Status of the scheduled acquisition job."""

    job_id: str
    name: str
    next_run_time: Optional[datetime]
    is_active: bool
    trigger: str
    last_result: Optional[RunResult] = None
    last_error: Optional[str] = None


@dataclass
class SchedulerStats:
    """Statistics for scheduled runs."""

    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    skipped_executions: int = 0
    missed_executions: int = 0
    last_execution_time: Optional[datetime] = None
    uptime_seconds: float = 0.0


class AcquisitionScheduler:
    """Runs the acquisition pipeline on a fixed interval."""

    def __init__(
        self,
        pipeline: AcquisitionPipeline,
        interval_minutes: Optional[int] = None,
    ):
        """Initialize scheduler.

        Args:
            pipeline: Pipeline to run
            interval_minutes: Run interval (default from config)
        """
        config = get_config().scheduler

        self.pipeline = pipeline
        self.interval_minutes = interval_minutes or config.interval_minutes
        self.misfire_grace_time = config.misfire_grace_time
        self.coalesce = config.coalesce

        # One worker: runs never overlap
        self.scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=1)},
            timezone=config.timezone,
        )

        self.stats = SchedulerStats()
        self.start_time: Optional[datetime] = None
        self._last_result: Optional[RunResult] = None
        self._last_error: Optional[str] = None

        self.scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._on_job_missed, EVENT_JOB_MISSED)

    def start(self) -> None:
        """Add the acquisition job and start the scheduler."""
        if self.scheduler.running:
            logger.warning("Scheduler is already running")
            return

        self.scheduler.add_job(
            func=self.run_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=ACQUISITION_JOB_ID,
            name="Scheduled acquisition",
            replace_existing=True,
            max_instances=1,
            coalesce=self.coalesce,
            misfire_grace_time=self.misfire_grace_time,
        )
        self.scheduler.start()
        self.start_time = datetime.now()
        logger.info(f"Scheduler started (every {self.interval_minutes} minutes)")

    def stop(self, wait: bool = True) -> None:
        """Stop the scheduler.

        Args:
            wait: Whether to wait for a running job to complete
        """
        if not self.scheduler.running:
            logger.warning("Scheduler is not running")
            return

        self.scheduler.shutdown(wait=wait)
        if self.start_time:
            self.stats.uptime_seconds = (datetime.now() - self.start_time).total_seconds()
        logger.info("Scheduler stopped")

    def is_running(self) -> bool:
        """Check if the scheduler is running."""
        return self.scheduler.running

    def pause(self) -> bool:
        """Pause the acquisition job."""
        try:
            self.scheduler.pause_job(ACQUISITION_JOB_ID)
        except JobLookupError:
            logger.warning("Acquisition job not found")
            return False
        logger.info("Paused scheduled acquisition")
        return True

    def resume(self) -> bool:
        """Resume the acquisition job."""
        try:
            self.scheduler.resume_job(ACQUISITION_JOB_ID)
        except JobLookupError:
            logger.warning("Acquisition job not found")
            return False
        logger.info("Resumed scheduled acquisition")
        return True

    def run_job(self) -> Optional[RunResult]:
        """Execute one scheduled run.

        A run that collides with another is skipped; store failures are
        recorded and the next interval tries again.

        Returns:
            RunResult, or None if the run was skipped or failed
        """
        self.stats.total_executions += 1
        self.stats.last_execution_time = datetime.now()

        try:
            result = self.pipeline.run(TriggerKind.SCHEDULED)
        except RunInProgressError as e:
            self.stats.skipped_executions += 1
            logger.info(f"Skipping scheduled run: {e.message}")
            return None
        except StoreUnavailableError as e:
            self.stats.failed_executions += 1
            self._last_error = e.message
            logger.error(f"Scheduled run failed: {e.message}")
            return None

        self.stats.successful_executions += 1
        self._last_result = result
        self._last_error = None
        logger.info(f"Scheduled run stored {result.item_count} items ({result.new_items} new)")
        return result

    def get_job_status(self) -> Optional[JobStatus]:
        """Status of the acquisition job, or None if it is not scheduled."""
        job = self.scheduler.get_job(ACQUISITION_JOB_ID)
        if job is None:
            return None

        next_run_time = getattr(job, "next_run_time", None)
        return JobStatus(
            job_id=job.id,
            name=job.name,
            next_run_time=next_run_time,
            is_active=next_run_time is not None,
            trigger=str(job.trigger),
            last_result=self._last_result,
            last_error=self._last_error,
        )

    def get_stats(self) -> SchedulerStats:
        """Get scheduler statistics."""
        if self.start_time and self.scheduler.running:
            self.stats.uptime_seconds = (datetime.now() - self.start_time).total_seconds()
        return self.stats

    def _on_job_executed(self, event: JobEvent) -> None:
        logger.debug(f"Job {event.job_id} executed")

    def _on_job_error(self, event: JobEvent) -> None:
        exception = getattr(event, "exception", None)
        if exception:
            self.stats.failed_executions += 1
            self._last_error = f"{type(exception).__name__}: {exception}"
            logger.error(f"Job {event.job_id} failed: {self._last_error}")

    def _on_job_missed(self, event: JobEvent) -> None:
        self.stats.missed_executions += 1
        logger.warning(f"Job {event.job_id} missed its run time")
