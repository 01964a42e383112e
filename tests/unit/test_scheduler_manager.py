"""Unit tests for the application scheduler manager."""

from unittest.mock import MagicMock

import pytest
from flask import Flask

from news_aggregation.core.scheduler import AcquisitionScheduler
from news_aggregation.web.scheduler_manager import SchedulerManager, get_scheduler_manager


@pytest.fixture
def app():
    return Flask(__name__)


@pytest.fixture
def manager(app):
    manager = SchedulerManager(app)
    yield manager
    manager.stop_scheduler(wait=False)


class TestSchedulerManager:
    """Tests for SchedulerManager."""

    def test_registered_on_app(self, app, manager: SchedulerManager):
        assert get_scheduler_manager(app) is manager

    def test_get_creates_manager(self, app):
        manager = get_scheduler_manager(app)

        assert app.extensions["scheduler_manager"] is manager

    def test_uninitialized(self, manager: SchedulerManager):
        assert manager.get_scheduler() is None
        assert manager.start_scheduler() is False
        assert manager.stop_scheduler() is True
        assert manager.get_stats() == {"initialized": False, "running": False}

    def test_initialize_once(self, manager: SchedulerManager):
        pipeline = MagicMock()

        scheduler = manager.initialize_scheduler(pipeline, interval_minutes=10)

        assert isinstance(scheduler, AcquisitionScheduler)
        assert scheduler.interval_minutes == 10
        assert manager.initialize_scheduler(pipeline) is scheduler
        assert manager.get_scheduler() is scheduler

    def test_start_stop(self, manager: SchedulerManager):
        manager.initialize_scheduler(MagicMock(), interval_minutes=10)

        assert manager.start_scheduler() is True
        stats = manager.get_stats()
        assert stats["initialized"] is True
        assert stats["running"] is True
        assert stats["nextRunTime"] is not None

        assert manager.stop_scheduler(wait=False) is True
        assert manager.get_scheduler().is_running() is False
