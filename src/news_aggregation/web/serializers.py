"""
Serialization helpers for JSON API responses.
"""

from typing import Any, Optional

from flask import jsonify

from news_aggregation.models import NewsItem, RunMetadata
from news_aggregation.utils.time_utils import isoformat


def json_response(payload: dict, status: int = 200) -> tuple:
    """JSON response with a status code.

    Args:
        payload: Response body
        status: HTTP status code

    Returns:
        Flask response tuple
    """
    return jsonify(payload), status


def error_response(error: str, status: int = 500, details: Optional[dict] = None) -> tuple:
    """Error payload ``{success: false, error}``.

    Args:
        error: Human-readable error message
        status: HTTP status code
        details: Optional extra context

    Returns:
        Flask response tuple
    """
    payload: dict[str, Any] = {"success": False, "error": error}
    if details:
        payload["details"] = details
    return json_response(payload, status)


def item_to_dict(item: NewsItem) -> dict:
    """Convert an item to its camelCase wire shape."""
    return item.to_wire()


def metadata_to_dict(metadata: Optional[RunMetadata]) -> dict:
    """Convert run metadata to a dict, with defaults when none is stored."""
    if metadata is None:
        return {
            "lastFetchAt": None,
            "lastTriggerAt": None,
            "trigger": None,
            "totalItems": 0,
            "newItemsAdded": 0,
            "contributingSources": [],
        }

    return {
        "lastFetchAt": isoformat(metadata.last_fetch_at),
        "lastTriggerAt": isoformat(metadata.last_trigger_at),
        "trigger": metadata.trigger.value,
        "totalItems": metadata.total_items,
        "newItemsAdded": metadata.new_items_added,
        "contributingSources": list(metadata.contributing_sources),
    }
