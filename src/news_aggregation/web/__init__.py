"""HTTP trigger and retrieval endpoints."""

from news_aggregation.web.app import create_app, get_services

__all__ = ["create_app", "get_services"]
