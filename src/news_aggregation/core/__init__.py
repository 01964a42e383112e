"""Core acquisition components."""

from news_aggregation.core.adapters import AdapterRegistry, create_adapter
from news_aggregation.core.diagnostics import ProbeReport, SourceDiagnostics
from news_aggregation.core.factories import (
    create_diagnostics,
    create_pipeline,
    create_repository,
    create_scheduler,
)
from news_aggregation.core.fetcher import FetchedDocument, HttpFetcher, create_fetcher
from news_aggregation.core.merge import MAX_COLLECTION_SIZE, count_new_items, merge_items
from news_aggregation.core.normalizer import Normalizer
from news_aggregation.core.pipeline import AcquisitionPipeline, RunResult, SourceOutcome
from news_aggregation.core.scheduler import AcquisitionScheduler
from news_aggregation.core.sources import DEFAULT_CATEGORIES, get_source_categories
from news_aggregation.core.tagger import Tagger

__all__ = [
    "AdapterRegistry",
    "create_adapter",
    "HttpFetcher",
    "FetchedDocument",
    "create_fetcher",
    "Normalizer",
    "Tagger",
    "MAX_COLLECTION_SIZE",
    "merge_items",
    "count_new_items",
    "AcquisitionPipeline",
    "RunResult",
    "SourceOutcome",
    "AcquisitionScheduler",
    "SourceDiagnostics",
    "ProbeReport",
    "DEFAULT_CATEGORIES",
    "get_source_categories",
    "create_pipeline",
    "create_repository",
    "create_diagnostics",
    "create_scheduler",
]
