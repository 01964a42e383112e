"""
Source diagnostics: probe sources without persisting anything.
"""

import time
from dataclasses import dataclass, field
from typing import Iterable, Optional

from news_aggregation.core.pipeline import AcquisitionPipeline, SourceOutcome
from news_aggregation.core.sources import find_source
from news_aggregation.logger import get_logger
from news_aggregation.models import NewsItem
from news_aggregation.utils.time_utils import isoformat

logger = get_logger(__name__)

SAMPLE_SIZE = 3


@dataclass
class ProbeReport:
    """Outcome of probing one or more sources."""

    outcomes: list[SourceOutcome] = field(default_factory=list)
    samples: dict[str, list[NewsItem]] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def total_items(self) -> int:
        return sum(outcome.item_count for outcome in self.outcomes)

    @property
    def successful(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.successful

    def summary(self) -> dict:
        return {
            "sources": len(self.outcomes),
            "successful": self.successful,
            "failed": self.failed,
            "items": self.total_items,
            "durationSeconds": round(self.duration_seconds, 3),
        }

    def to_dict(self, verbose: bool = False) -> dict:
        data = {
            "summary": self.summary(),
            "sources": [outcome.to_dict() for outcome in self.outcomes],
        }
        if verbose:
            data["samples"] = {
                label: [
                    {
                        "title": item.title,
                        "url": item.url,
                        "publishedAt": isoformat(item.published_at),
                        "tags": item.tags,
                    }
                    for item in items
                ]
                for label, items in self.samples.items()
            }
        return data


class SourceDiagnostics:
    """Runs the acquire-normalize-tag path for selected sources."""

    def __init__(self, pipeline: AcquisitionPipeline):
        """Initialize diagnostics.

        Args:
            pipeline: Pipeline whose sources and adapters are probed
        """
        self.pipeline = pipeline

    def probe_source(self, label: str) -> Optional[ProbeReport]:
        """Probe a single source by label.

        Args:
            label: Source label (case-insensitive)

        Returns:
            ProbeReport, or None if no source has that label
        """
        descriptor = find_source(label, self.pipeline.categories)
        if descriptor is None:
            logger.warning(f"Unknown source: {label}")
            return None

        category = next(
            c.name for c in self.pipeline.categories if descriptor in c.sources
        )
        start = time.monotonic()
        items, outcome = self.pipeline.fetch_source(descriptor, category)

        report = ProbeReport(outcomes=[outcome], duration_seconds=time.monotonic() - start)
        report.samples[descriptor.label] = items[:SAMPLE_SIZE]
        return report

    def probe_categories(
        self,
        names: Optional[Iterable[str]] = None,
        verbose: bool = False,
    ) -> ProbeReport:
        """Probe every source in the selected categories.

        Args:
            names: Category names to probe (all when empty)
            verbose: Log sample items for each source

        Returns:
            ProbeReport covering every probed source
        """
        wanted = {name.lower() for name in names or []}
        start = time.monotonic()
        report = ProbeReport()

        for category in self.pipeline.categories:
            if wanted and category.name.lower() not in wanted:
                continue

            for descriptor in category.sources:
                items, outcome = self.pipeline.fetch_source(descriptor, category.name)
                report.outcomes.append(outcome)
                report.samples[descriptor.label] = items[:SAMPLE_SIZE]

                if verbose:
                    for item in items[:SAMPLE_SIZE]:
                        logger.info(f"  [{descriptor.label}] {item.title} <{item.url}>")

        report.duration_seconds = time.monotonic() - start
        summary = report.summary()
        logger.info(
            f"Probe finished: {summary['successful']}/{summary['sources']} sources ok, "
            f"{summary['items']} items in {summary['durationSeconds']}s"
        )
        return report
