"""
Command line interface for news aggregation.

Usage:
    news-aggregation serve [--host HOST] [--port PORT] [--no-scheduler]
    news-aggregation run [--db PATH]
    news-aggregation probe [--source LABEL | --category NAME ...] [--verbose]
    news-aggregation load [--base-url URL] [--offline] [--timeout SECONDS]
    news-aggregation purge [--db PATH]
"""

import argparse
import json
import sys
from typing import Optional

from news_aggregation.config import get_config, load_config_from_yaml, set_config
from news_aggregation.errors import AggregationError, RunInProgressError
from news_aggregation.logger import get_logger, setup_logger
from news_aggregation.models import TriggerKind

logger = get_logger(__name__)


def _cmd_serve(args: argparse.Namespace) -> int:
    from news_aggregation.web.app import create_app
    from news_aggregation.web.scheduler_manager import get_scheduler_manager

    config = get_config()
    app = create_app(db_path=args.db, debug=args.debug, enable_scheduler=not args.no_scheduler)
    try:
        app.run(
            host=args.host or config.web.host,
            port=args.port or config.web.port,
            debug=args.debug or config.web.debug,
            use_reloader=False,
        )
    finally:
        get_scheduler_manager(app).stop_scheduler(wait=False)
    return 0


def _cmd_run(args: argparse.Namespace) -> int:
    from news_aggregation.core.factories import create_pipeline
    from news_aggregation.storage.database import DatabaseManager

    with DatabaseManager(args.db) as db_manager:
        db_manager.init_db()
        pipeline = create_pipeline(db_manager)
        try:
            result = pipeline.run(TriggerKind.MANUAL)
        except RunInProgressError as e:
            print(f"Skipped: {e.message}")
            return 2

    print(f"Stored {result.item_count} items ({result.new_items} new)")
    for outcome in result.sources:
        status = "ok" if outcome.success else f"FAILED: {outcome.error}"
        print(f"  {outcome.label:<40} {outcome.item_count:>4} items  {status}")
    return 0


def _cmd_probe(args: argparse.Namespace) -> int:
    from news_aggregation.core.factories import create_diagnostics, create_pipeline
    from news_aggregation.storage.database import DatabaseManager

    # Probing never writes; an in-memory store satisfies the pipeline
    with DatabaseManager(":memory:") as db_manager:
        diagnostics = create_diagnostics(create_pipeline(db_manager))

        if args.source:
            report = diagnostics.probe_source(args.source)
            if report is None:
                print(f"Unknown source: {args.source}", file=sys.stderr)
                return 1
        else:
            report = diagnostics.probe_categories(args.category, verbose=args.verbose)

    print(json.dumps(report.to_dict(verbose=args.verbose), indent=2, ensure_ascii=False))
    return 0 if report.failed == 0 else 1


def _cmd_load(args: argparse.Namespace) -> int:
    from news_aggregation.client.retrieval import RetrievalClient
    from news_aggregation.client.snapshot import SnapshotCache

    client = RetrievalClient(
        base_url=args.base_url,
        timeout_seconds=args.timeout,
        offline=True if args.offline else None,
        snapshot=SnapshotCache(args.snapshot),
    )

    def on_tick(elapsed: float, timeout: float) -> None:
        print(f"  waiting for service... {elapsed:.0f}s / {timeout:.0f}s", file=sys.stderr)

    result = client.load(on_tick=on_tick)
    print(f"{result.count} items from {result.origin.value}")
    if result.error:
        print(f"  (live service: {result.error})")
    for item in result.items[: args.limit]:
        print(f"  {item.published_at:%Y-%m-%d}  {item.source:<25} {item.title}")
    return 0


def _cmd_purge(args: argparse.Namespace) -> int:
    from news_aggregation.storage.database import DatabaseManager
    from news_aggregation.storage.kv_store import KeyValueStore

    with DatabaseManager(args.db) as db_manager:
        db_manager.init_db()
        removed = KeyValueStore(db_manager).purge_expired()

    print(f"Removed {removed} expired keys")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(prog="news-aggregation", description="News aggregation service")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", help="Bind host")
    serve.add_argument("--port", type=int, help="Bind port")
    serve.add_argument("--db", help="Store path or URL")
    serve.add_argument("--debug", action="store_true", help="Enable debug mode")
    serve.add_argument("--no-scheduler", action="store_true", help="Disable the scheduled trigger")
    serve.set_defaults(func=_cmd_serve)

    run = subparsers.add_parser("run", help="Run one acquisition and store the result")
    run.add_argument("--db", help="Store path or URL")
    run.set_defaults(func=_cmd_run)

    probe = subparsers.add_parser("probe", help="Probe sources without storing anything")
    probe.add_argument("--source", help="Source label")
    probe.add_argument("--category", action="append", default=[], help="Category name (repeatable)")
    probe.add_argument("--verbose", action="store_true", help="Show sample items")
    probe.set_defaults(func=_cmd_probe)

    load = subparsers.add_parser("load", help="Retrieve items as a client would")
    load.add_argument("--base-url", help="Service URL")
    load.add_argument("--timeout", type=float, help="Live request time bound in seconds")
    load.add_argument("--offline", action="store_true", help="Use the bundled snapshot only")
    load.add_argument("--snapshot", help="Snapshot file or URL")
    load.add_argument("--limit", type=int, default=20, help="Items to print")
    load.set_defaults(func=_cmd_load)

    purge = subparsers.add_parser("purge", help="Remove expired keys from the store")
    purge.add_argument("--db", help="Store path or URL")
    purge.set_defaults(func=_cmd_purge)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.config:
        set_config(load_config_from_yaml(args.config))
    setup_logger(level=args.log_level)

    try:
        return args.func(args)
    except AggregationError as e:
        logger.error(f"{type(e).__name__}: {e.message}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
