"""
News Aggregation - feed and page aggregation service with an offline-tolerant client.

This package acquires items from syndication feeds, scraped pages and JSON APIs,
normalizes and tags them, merges them into a bounded collection kept in a
key-value store with expirations, and serves the collection to clients that
fall back to a bundled snapshot when the service is unreachable.
"""

__version__ = "0.1.0"
