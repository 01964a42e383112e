"""
Acquisition pipeline: fetch every source, normalize, tag, merge and persist.

Runs are serialized twice: an in-process lock keeps concurrent threads of one
service apart, and a lock key in the store keeps separate processes apart.
The store lock is refreshed after every source and checked before the
collection is written; a run that lost it writes nothing.
"""

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from news_aggregation.config import get_config
from news_aggregation.core.adapters import AdapterRegistry
from news_aggregation.core.merge import count_new_items, merge_items
from news_aggregation.core.normalizer import Normalizer
from news_aggregation.core.sources import get_source_categories
from news_aggregation.core.tagger import Tagger
from news_aggregation.errors import AdapterError, AdapterParseError, RunInProgressError, StoreUnavailableError
from news_aggregation.logger import get_logger
from news_aggregation.models import NewsItem, RunMetadata, SourceCategory, SourceDescriptor, TriggerKind
from news_aggregation.storage.repositories.collection_repo import CollectionRepository
from news_aggregation.utils.time_utils import isoformat, utcnow

logger = get_logger(__name__)


@dataclass
class SourceOutcome:
    """Result of acquiring one source."""

    label: str
    category: str
    kind: str
    success: bool
    item_count: int = 0
    skipped_count: int = 0
    error: Optional[str] = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "category": self.category,
            "kind": self.kind,
            "success": self.success,
            "itemCount": self.item_count,
            "skippedCount": self.skipped_count,
            "error": self.error,
            "durationSeconds": round(self.duration_seconds, 3),
        }


@dataclass
class RunResult:
    """Summary of a completed acquisition run."""

    item_count: int
    new_items: int
    timestamp: datetime
    trigger: TriggerKind
    sources: list[SourceOutcome] = field(default_factory=list)

    @property
    def failed_sources(self) -> list[SourceOutcome]:
        return [outcome for outcome in self.sources if not outcome.success]

    def to_dict(self) -> dict:
        return {
            "count": self.item_count,
            "newItems": self.new_items,
            "timestamp": isoformat(self.timestamp),
            "trigger": self.trigger.value,
            "sources": [outcome.to_dict() for outcome in self.sources],
        }


class AcquisitionPipeline:
    """Acquire all configured sources and merge them into the collection."""

    def __init__(
        self,
        repository: CollectionRepository,
        categories: Optional[tuple[SourceCategory, ...]] = None,
        registry: Optional[AdapterRegistry] = None,
        normalizer: Optional[Normalizer] = None,
        tagger: Optional[Tagger] = None,
        max_collection_size: Optional[int] = None,
        source_delay_seconds: Optional[float] = None,
        category_delay_seconds: Optional[float] = None,
        lock_ttl_seconds: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize pipeline.

        Args:
            repository: CollectionRepository for persisted state
            categories: Source categories (defaults to the configured ones)
            registry: AdapterRegistry selecting adapters by source kind
            normalizer: Normalizer instance
            tagger: Tagger instance
            max_collection_size: Collection cap
            source_delay_seconds: Pause after each source
            category_delay_seconds: Pause after each category
            lock_ttl_seconds: Lifetime of the store run lock
            sleep: Sleep function used for the pauses
            clock: Callable returning the current aware UTC time
        """
        config = get_config().pipeline

        self.repository = repository
        self.categories = categories if categories is not None else get_source_categories()
        self.registry = registry or AdapterRegistry()
        self.normalizer = normalizer or Normalizer()
        self.tagger = tagger or Tagger()
        self.max_collection_size = (
            config.max_collection_size if max_collection_size is None else max_collection_size
        )
        self.source_delay_seconds = (
            config.source_delay_seconds if source_delay_seconds is None else source_delay_seconds
        )
        self.category_delay_seconds = (
            config.category_delay_seconds if category_delay_seconds is None else category_delay_seconds
        )
        self.lock_ttl_seconds = lock_ttl_seconds
        self._sleep = sleep
        self._clock = clock

        self._run_lock = threading.Lock()
        self._lock_owner: Optional[str] = None

    @property
    def is_running(self) -> bool:
        """Whether this process is currently executing a run."""
        return self._run_lock.locked()

    def fetch_source(
        self,
        descriptor: SourceDescriptor,
        category: str = "",
        now: Optional[datetime] = None,
    ) -> tuple[list[NewsItem], SourceOutcome]:
        """Acquire, normalize and tag one source.

        Adapter failures are contained: they produce an empty contribution and
        an unsuccessful outcome.

        Args:
            descriptor: Source to acquire
            category: Category name, for reporting
            now: Acquisition time for undated items

        Returns:
            Tuple of (items, outcome)
        """
        now = now or self._clock()
        start = time.monotonic()
        outcome = SourceOutcome(
            label=descriptor.label,
            category=category,
            kind=descriptor.kind.value,
            success=False,
        )

        try:
            raw_items = self.registry.get(descriptor.kind).fetch(descriptor)
        except AdapterError as e:
            outcome.error = e.message
            outcome.duration_seconds = time.monotonic() - start
            logger.warning(f"Source {descriptor.label} failed: {e.message}")
            return [], outcome

        items = []
        for raw in raw_items:
            try:
                item = self.normalizer.normalize(raw, descriptor, now=now)
            except AdapterParseError as e:
                outcome.skipped_count += 1
                logger.debug(f"Dropping item from {descriptor.label}: {e.message}")
                continue

            tags = self.tagger.tag_texts(item.title, item.summary)
            items.append(item.model_copy(update={"tags": sorted(tags)}))

        outcome.success = True
        outcome.item_count = len(items)
        outcome.duration_seconds = time.monotonic() - start
        logger.info(
            f"Source {descriptor.label}: {len(items)} items "
            f"({outcome.skipped_count} dropped) in {outcome.duration_seconds:.2f}s"
        )
        return items, outcome

    def acquire(self, now: Optional[datetime] = None) -> tuple[list[NewsItem], list[SourceOutcome]]:
        """Acquire every configured source, sequentially and with pauses.

        Args:
            now: Acquisition time for undated items

        Returns:
            Tuple of (items in acquisition order, per-source outcomes)
        """
        now = now or self._clock()
        items: list[NewsItem] = []
        outcomes: list[SourceOutcome] = []

        for category in self.categories:
            logger.info(f"Acquiring category {category.name} ({len(category.sources)} sources)")
            for descriptor in category.sources:
                source_items, outcome = self.fetch_source(descriptor, category.name, now)
                items.extend(source_items)
                outcomes.append(outcome)
                self._refresh_lock()
                if self.source_delay_seconds > 0:
                    self._sleep(self.source_delay_seconds)

            if self.category_delay_seconds > 0:
                self._sleep(self.category_delay_seconds)

        failed = sum(1 for outcome in outcomes if not outcome.success)
        logger.info(f"Acquired {len(items)} items from {len(outcomes)} sources ({failed} failed)")
        return items, outcomes

    def run(self, trigger: TriggerKind = TriggerKind.MANUAL) -> RunResult:
        """Execute one acquisition run.

        Args:
            trigger: What started the run

        Returns:
            RunResult for the run

        Raises:
            RunInProgressError: If another run holds the lock or takes it over
            StoreUnavailableError: If the collection cannot be read or written
        """
        trigger = TriggerKind(trigger)
        if not self._run_lock.acquire(blocking=False):
            raise RunInProgressError("An acquisition run is already in progress")

        try:
            owner = uuid4().hex
            if not self.repository.acquire_run_lock(owner, self.lock_ttl_seconds):
                raise RunInProgressError("An acquisition run is already in progress in another process")

            self._lock_owner = owner
            try:
                return self._run_locked(trigger)
            finally:
                self._lock_owner = None
                try:
                    self.repository.release_run_lock(owner)
                except StoreUnavailableError as e:
                    logger.error(f"Failed to release run lock: {e.message}")
        finally:
            self._run_lock.release()

    def _refresh_lock(self) -> None:
        """Extend the store lock of the current run, if there is one."""
        if self._lock_owner is None:
            return

        try:
            if not self.repository.refresh_run_lock(self._lock_owner, self.lock_ttl_seconds):
                logger.warning("Run lock was taken over by another run")
        except StoreUnavailableError as e:
            logger.error(f"Failed to refresh run lock: {e.message}")

    def _run_locked(self, trigger: TriggerKind) -> RunResult:
        started_at = self._clock()
        logger.info(f"Starting {trigger.value} acquisition run")

        incoming, outcomes = self.acquire(now=started_at)

        existing = self.repository.load_collection()
        merged = merge_items(existing, incoming, self.max_collection_size)
        new_items = count_new_items(existing, merged)

        if self._lock_owner and not self.repository.refresh_run_lock(self._lock_owner, self.lock_ttl_seconds):
            raise RunInProgressError("Run lock expired and was taken by another run; collection not written")

        self.repository.save_collection(merged)

        # The collection is committed; later writes only log their failures
        saved = 0
        for item in merged:
            try:
                self.repository.save_item(item)
                saved += 1
            except StoreUnavailableError as e:
                logger.error(f"Failed to store item {item.id}: {e.message}")

        finished_at = self._clock()
        metadata = RunMetadata(
            last_fetch_at=finished_at,
            last_trigger_at=started_at,
            trigger=trigger,
            total_items=len(merged),
            new_items_added=new_items,
            contributing_sources=[item.source for item in merged],
        )
        try:
            self.repository.save_metadata(metadata)
        except StoreUnavailableError as e:
            logger.error(f"Failed to store run metadata: {e.message}")

        logger.info(
            f"Run complete: {len(merged)} items ({new_items} new), "
            f"{saved} item records written"
        )
        return RunResult(
            item_count=len(merged),
            new_items=new_items,
            timestamp=finished_at,
            trigger=trigger,
            sources=outcomes,
        )
