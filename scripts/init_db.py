#!/usr/bin/env python3
"""
Initialize the news-aggregation store.

This script creates the key-value table.
"""

from news_aggregation.storage.database import init_db


def main() -> None:
    """Initialize the store."""
    import argparse

    parser = argparse.ArgumentParser(description="Initialize news-aggregation store")
    parser.add_argument("--db", help="Store path or SQLAlchemy URL (default from config)")
    parser.add_argument(
        "--drop", action="store_true", help="Drop existing tables before creating new ones"
    )
    args = parser.parse_args()

    print("Initializing store...")
    init_db(db_path=args.db, drop_all=args.drop)
    print("Store initialized successfully!")


if __name__ == "__main__":
    main()
