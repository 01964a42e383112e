"""
Exception hierarchy for news aggregation.

Adapter errors are contained per source by the pipeline, store errors fail
the triggering run only, and client errors drive the retrieval fallback.
"""

from typing import Optional


class AggregationError(Exception):
    """Base exception for news aggregation."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Error payload for API responses and logs."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class AdapterError(AggregationError):
    """A source adapter could not produce items."""


class AdapterFetchError(AdapterError):
    """Network failure, timeout, non-2xx response or oversize document."""

    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None):
        super().__init__(message, {"url": url, "status_code": status_code})
        self.url = url
        self.status_code = status_code


class AdapterParseError(AdapterError):
    """A document or a single entry could not be parsed."""


class StoreUnavailableError(AggregationError):
    """The key-value store could not be read or written."""


class RunInProgressError(AggregationError):
    """Another acquisition run currently holds the run lock."""


class ClientError(AggregationError):
    """Base class for client retrieval errors."""


class ClientTimeoutError(ClientError):
    """The live request exceeded its time bound."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"Request timed out after {timeout_seconds:g}s",
            {"timeout_seconds": timeout_seconds},
        )
        self.timeout_seconds = timeout_seconds


class ClientTransportError(ClientError):
    """Connection failure, non-2xx status or malformed response body."""


class SnapshotUnavailableError(ClientError):
    """The bundled snapshot could not be loaded."""
