"""
Factory functions wiring core components from the configuration.

Usage:
    from news_aggregation.core.factories import create_pipeline

    with DatabaseManager() as db:
        db.init_db()
        pipeline = create_pipeline(db)
        pipeline.run()
"""

from typing import Optional

import httpx

from news_aggregation.config import Config, get_config
from news_aggregation.core.adapters import AdapterRegistry
from news_aggregation.core.diagnostics import SourceDiagnostics
from news_aggregation.core.fetcher import HttpFetcher
from news_aggregation.core.normalizer import Normalizer
from news_aggregation.core.pipeline import AcquisitionPipeline
from news_aggregation.core.scheduler import AcquisitionScheduler
from news_aggregation.core.sources import get_source_categories
from news_aggregation.core.tagger import Tagger
from news_aggregation.storage.database import DatabaseManager
from news_aggregation.storage.kv_store import KeyValueStore
from news_aggregation.storage.repositories.collection_repo import CollectionRepository


def create_repository(db_manager: DatabaseManager, config: Optional[Config] = None) -> CollectionRepository:
    """Create a CollectionRepository over a database.

    Args:
        db_manager: DatabaseManager instance
        config: Optional configuration (global config when omitted)

    Returns:
        CollectionRepository instance
    """
    config = config or get_config()
    return CollectionRepository(KeyValueStore(db_manager), store_config=config.store)


def create_pipeline(
    db_manager: DatabaseManager,
    config: Optional[Config] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> AcquisitionPipeline:
    """Create a configured AcquisitionPipeline.

    Args:
        db_manager: DatabaseManager instance
        config: Optional configuration
        transport: Optional httpx transport for the adapters

    Returns:
        AcquisitionPipeline instance
    """
    config = config or get_config()
    registry = AdapterRegistry(fetcher=HttpFetcher(transport=transport))

    return AcquisitionPipeline(
        repository=create_repository(db_manager, config),
        categories=get_source_categories(config),
        registry=registry,
        normalizer=Normalizer(),
        tagger=Tagger(),
        max_collection_size=config.pipeline.max_collection_size,
        source_delay_seconds=config.pipeline.source_delay_seconds,
        category_delay_seconds=config.pipeline.category_delay_seconds,
        lock_ttl_seconds=config.store.lock_ttl_seconds,
    )


def create_diagnostics(pipeline: AcquisitionPipeline) -> SourceDiagnostics:
    """Create SourceDiagnostics for a pipeline."""
    return SourceDiagnostics(pipeline)


def create_scheduler(
    pipeline: AcquisitionPipeline,
    interval_minutes: Optional[int] = None,
) -> AcquisitionScheduler:
    """Create an AcquisitionScheduler for a pipeline.

    Args:
        pipeline: Pipeline to run
        interval_minutes: Override the configured interval

    Returns:
        AcquisitionScheduler instance
    """
    return AcquisitionScheduler(pipeline, interval_minutes=interval_minutes)
