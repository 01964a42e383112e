"""
Client retrieval pipeline.

Obtains the item list for the presentation layer: the live service under a
time bound first, then the bundled snapshot. An offline switch skips the live
service entirely.

State machine::

    IDLE -> OFFLINE_BYPASSED -> READY                      (offline switch)
    IDLE -> ATTEMPTING_LIVE -> READY                       (live success)
    IDLE -> ATTEMPTING_LIVE -> FELL_BACK_TO_SNAPSHOT -> READY
    any snapshot failure -> FAILED
    refresh(): ATTEMPTING_LIVE -> READY | FAILED           (no fallback)
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from news_aggregation.client.snapshot import SnapshotCache, news_from_snapshot
from news_aggregation.config import get_config
from news_aggregation.errors import (
    ClientError,
    ClientTimeoutError,
    ClientTransportError,
    SnapshotUnavailableError,
)
from news_aggregation.logger import get_logger
from news_aggregation.models import NewsItem
from news_aggregation.utils.time_utils import parse_datetime

logger = get_logger(__name__)

TickCallback = Callable[[float, float], None]


class RetrievalState(str, Enum):
    """States of the retrieval pipeline."""

    IDLE = "idle"
    ATTEMPTING_LIVE = "attempting_live"
    FELL_BACK_TO_SNAPSHOT = "fell_back_to_snapshot"
    OFFLINE_BYPASSED = "offline_bypassed"
    READY = "ready"
    FAILED = "failed"


class RetrievalOrigin(str, Enum):
    """Where a result's items came from."""

    LIVE = "live"
    SNAPSHOT = "snapshot"
    OFFLINE = "offline"


@dataclass
class RetrievalResult:
    """Items obtained by one retrieval."""

    items: list[NewsItem]
    origin: RetrievalOrigin
    last_trigger_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self.origin == RetrievalOrigin.LIVE

    @property
    def count(self) -> int:
        return len(self.items)


@dataclass
class ScrapeOutcome:
    """Response of a manual trigger request."""

    success: bool
    count: int = 0
    new_items: int = 0
    timestamp: Optional[datetime] = None
    error: Optional[str] = None


class RetrievalClient:
    """Retrieval pipeline against one aggregation service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        tick_interval_seconds: Optional[float] = None,
        offline: Optional[bool] = None,
        snapshot: Optional[SnapshotCache] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize client.

        Args:
            base_url: Aggregation service URL
            timeout_seconds: Bound on every live request
            tick_interval_seconds: Interval between on_tick calls
            offline: Skip the live service and use the snapshot
            snapshot: SnapshotCache for the bundled snapshot
            transport: Optional httpx transport (used by tests)
        """
        config = get_config().client

        self.base_url = (base_url or config.base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or config.timeout_seconds
        self.tick_interval_seconds = tick_interval_seconds or config.tick_interval_seconds
        self.offline = config.offline if offline is None else offline
        self.snapshot = snapshot or SnapshotCache()
        self.transport = transport

        self._state = RetrievalState.IDLE
        self._history: list[RetrievalState] = [RetrievalState.IDLE]
        self._state_lock = threading.Lock()

    @property
    def state(self) -> RetrievalState:
        return self._state

    @property
    def history(self) -> list[RetrievalState]:
        """States entered so far, starting with IDLE."""
        return list(self._history)

    def _transition(self, state: RetrievalState) -> None:
        with self._state_lock:
            logger.debug(f"Retrieval state {self._state.value} -> {state.value}")
            self._state = state
            self._history.append(state)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def load(self, on_tick: Optional[TickCallback] = None) -> RetrievalResult:
        """Obtain items, falling back to the snapshot.

        Args:
            on_tick: Called with (elapsed, timeout) while waiting on the live service

        Returns:
            RetrievalResult from the live service or the snapshot

        Raises:
            SnapshotUnavailableError: If the snapshot is needed and cannot be loaded
        """
        if self.offline:
            self._transition(RetrievalState.OFFLINE_BYPASSED)
            logger.info("Offline mode: using the bundled snapshot")
            return self._from_snapshot(RetrievalOrigin.OFFLINE)

        self._transition(RetrievalState.ATTEMPTING_LIVE)
        try:
            result = self.fetch_live(on_tick)
        except ClientError as e:
            logger.warning(f"Live service unavailable, using snapshot: {e.message}")
            self._transition(RetrievalState.FELL_BACK_TO_SNAPSHOT)
            return self._from_snapshot(RetrievalOrigin.SNAPSHOT, error=e.message)

        self._transition(RetrievalState.READY)
        return result

    def refresh(self, on_tick: Optional[TickCallback] = None) -> RetrievalResult:
        """Re-read the live service without falling back.

        Args:
            on_tick: Called with (elapsed, timeout) while waiting

        Returns:
            RetrievalResult from the live service

        Raises:
            ClientTimeoutError: If the time bound elapses
            ClientTransportError: On connection failure or a bad response
        """
        self._transition(RetrievalState.ATTEMPTING_LIVE)
        try:
            result = self.fetch_live(on_tick)
        except ClientError as e:
            logger.error(f"Refresh failed: {e.message}")
            self._transition(RetrievalState.FAILED)
            raise

        self._transition(RetrievalState.READY)
        return result

    def fetch_live(self, on_tick: Optional[TickCallback] = None) -> RetrievalResult:
        """Read the stored collection from the live service, time-bounded.

        Raises:
            ClientTimeoutError: If the time bound elapses
            ClientTransportError: On connection failure or a bad response
        """
        data = self._bounded_request("GET", "/news-loader", on_tick)
        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else None
            raise ClientTransportError(f"Service reported failure: {error or 'malformed response'}")

        records = data.get("items", data.get("news"))
        if not isinstance(records, list):
            raise ClientTransportError("Response has no item list")

        items = []
        for record in records:
            try:
                items.append(NewsItem.model_validate(_strip_discriminator(record)))
            except (ValidationError, TypeError) as e:
                logger.warning(f"Skipping invalid item from service: {e}")

        last_trigger_at = parse_datetime(data.get("lastTriggerAt") or data.get("lastCronRun"))
        logger.info(f"Loaded {len(items)} items from the live service")
        return RetrievalResult(items=items, origin=RetrievalOrigin.LIVE, last_trigger_at=last_trigger_at)

    def _from_snapshot(self, origin: RetrievalOrigin, error: Optional[str] = None) -> RetrievalResult:
        try:
            items = news_from_snapshot(self.snapshot.get())
        except SnapshotUnavailableError as e:
            logger.error(f"Snapshot unavailable: {e.message}")
            self._transition(RetrievalState.FAILED)
            raise

        self._transition(RetrievalState.READY)
        logger.info(f"Loaded {len(items)} items from the snapshot")
        return RetrievalResult(items=items, origin=origin, error=error)

    # ------------------------------------------------------------------
    # Bounded requests
    # ------------------------------------------------------------------

    def _bounded_request(
        self,
        method: str,
        path: str,
        on_tick: Optional[TickCallback] = None,
    ) -> Any:
        """Run one request on a worker thread and wait at most timeout_seconds.

        On deadline the HTTP client is closed, releasing its connections, and
        ClientTimeoutError is raised without waiting for the worker.
        """
        client = httpx.Client(timeout=self.timeout_seconds, transport=self.transport)
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="retrieval")
        future = executor.submit(self._request, client, method, f"{self.base_url}{path}")

        start = time.monotonic()
        deadline = start + self.timeout_seconds
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    future.cancel()
                    raise ClientTimeoutError(self.timeout_seconds)
                try:
                    return future.result(timeout=min(self.tick_interval_seconds, remaining))
                except FutureTimeoutError:
                    if on_tick is not None:
                        on_tick(time.monotonic() - start, self.timeout_seconds)
        finally:
            executor.shutdown(wait=False)
            client.close()

    def _request(self, client: httpx.Client, method: str, url: str) -> Any:
        try:
            response = client.request(method, url, headers={"Accept": "application/json"})
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise ClientTimeoutError(self.timeout_seconds) from e
        except httpx.HTTPStatusError as e:
            raise ClientTransportError(
                f"Service returned HTTP {e.response.status_code}",
                {"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise ClientTransportError(f"Unable to reach the service: {e}") from e
        except ValueError as e:
            raise ClientTransportError(f"Malformed response body: {e}") from e

    # ------------------------------------------------------------------
    # Service helpers
    # ------------------------------------------------------------------

    def trigger_scrape(self, on_tick: Optional[TickCallback] = None) -> ScrapeOutcome:
        """Ask the service to run acquisition now.

        Returns:
            ScrapeOutcome; failures are reported, not raised
        """
        try:
            data = self._bounded_request("POST", "/news-scraper", on_tick)
        except ClientError as e:
            logger.error(f"Triggering acquisition failed: {e.message}")
            return ScrapeOutcome(success=False, error=e.message)

        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else "malformed response"
            return ScrapeOutcome(success=False, error=error or "Unknown error")

        return ScrapeOutcome(
            success=True,
            count=int(data.get("count") or 0),
            new_items=int(data.get("newItems") or 0),
            timestamp=parse_datetime(data.get("timestamp")),
        )

    def scrape_latest(
        self, on_tick: Optional[TickCallback] = None
    ) -> tuple[ScrapeOutcome, Optional[RetrievalResult]]:
        """Trigger acquisition, then load the updated collection.

        Returns:
            Tuple of (trigger outcome, load result or None if the trigger failed)
        """
        outcome = self.trigger_scrape(on_tick)
        if not outcome.success:
            return outcome, None
        return outcome, self.load(on_tick)

    def check_health(self) -> bool:
        """Whether the service reports itself healthy."""
        try:
            data = self._bounded_request("GET", "/health")
        except ClientError as e:
            logger.warning(f"Health check failed: {e.message}")
            return False
        return isinstance(data, dict) and data.get("status") == "healthy"

    def get_info(self) -> Optional[dict]:
        """Service info document, or None if unreachable."""
        try:
            data = self._bounded_request("GET", "/")
        except ClientError as e:
            logger.warning(f"Failed to get service info: {e.message}")
            return None
        return data if isinstance(data, dict) else None


def _strip_discriminator(record: Any) -> Any:
    if isinstance(record, dict):
        record = {k: v for k, v in record.items() if k != "type"}
    return record
