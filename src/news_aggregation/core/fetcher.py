"""
HTTP fetcher for source adapters, with bounded documents and retry logic.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx

from news_aggregation.config import get_config
from news_aggregation.errors import AdapterFetchError
from news_aggregation.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FetchStats:
    """Statistics for HTTP fetches made by one fetcher."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_bytes: int = 0
    total_time_seconds: float = 0.0
    errors_by_type: dict = field(default_factory=dict)

    def add_success(self, size: int, elapsed: float) -> None:
        """Record a successful request."""
        self.total_requests += 1
        self.successful_requests += 1
        self.total_bytes += size
        self.total_time_seconds += elapsed

    def add_failure(self, error: str, elapsed: float) -> None:
        """Record a failed request."""
        self.total_requests += 1
        self.failed_requests += 1
        self.total_time_seconds += elapsed
        error_type = error.split(":")[0] if error else "unknown"
        self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


@dataclass
class FetchedDocument:
    """Body and headers of a fetched upstream document."""

    url: str
    status_code: int
    content: bytes
    content_type: str = ""
    encoding: str = "utf-8"

    @property
    def text(self) -> str:
        """Body decoded with the response charset."""
        try:
            return self.content.decode(self.encoding, errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")


class HttpFetcher:
    """Fetches upstream documents for the adapters."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        user_agent: Optional[str] = None,
        max_document_bytes: Optional[int] = None,
        retry_delay_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize fetcher.

        Args:
            timeout_seconds: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            user_agent: User-Agent header for HTTP requests
            max_document_bytes: Largest accepted response body
            retry_delay_seconds: Base delay between attempts
            transport: Optional httpx transport (used by tests)
            sleep: Sleep function used between attempts
        """
        config = get_config().fetcher

        self.timeout_seconds = timeout_seconds or config.timeout_seconds
        self.max_retries = config.max_retries if max_retries is None else max_retries
        self.user_agent = user_agent or config.user_agent
        self.max_document_bytes = max_document_bytes or config.max_document_bytes
        self.retry_delay_seconds = (
            config.retry_delay_seconds if retry_delay_seconds is None else retry_delay_seconds
        )
        self.follow_redirects = config.follow_redirects
        self.max_redirects = config.max_redirects
        self.transport = transport
        self._sleep = sleep

        self.stats = FetchStats()

    def get(self, url: str, accept: Optional[str] = None) -> FetchedDocument:
        """Fetch a URL.

        Args:
            url: URL to fetch
            accept: Optional Accept header

        Returns:
            FetchedDocument with a body of at most max_document_bytes

        Raises:
            AdapterFetchError: On timeout, network error, non-2xx status or
                oversize body, after retries are exhausted
        """
        start_time = time.monotonic()
        last_error: Optional[str] = None
        status_code: Optional[int] = None

        for attempt in range(self.max_retries + 1):
            try:
                document = self._fetch_http(url, accept=accept)
                elapsed = time.monotonic() - start_time
                self.stats.add_success(len(document.content), elapsed)
                logger.debug(f"Fetched {url} ({len(document.content)} bytes) in {elapsed:.2f}s")
                return document

            except httpx.TimeoutException as e:
                last_error = f"Timeout: {e}"
                logger.warning(f"Timeout fetching {url} (attempt {attempt + 1}/{self.max_retries + 1})")

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                last_error = f"HTTP {status_code}: {e}"

                # Don't retry client errors (4xx)
                if 400 <= status_code < 500:
                    logger.error(f"Client error fetching {url}: {last_error}")
                    break

                logger.warning(f"HTTP error fetching {url} (attempt {attempt + 1})")

            except httpx.RequestError as e:
                last_error = f"Request error: {e}"
                logger.warning(f"Network error fetching {url} (attempt {attempt + 1})")

            except AdapterFetchError as e:
                # Oversize documents will not shrink on retry
                last_error = e.message
                break

            if attempt < self.max_retries:
                self._sleep(self.retry_delay_seconds * (attempt + 1))

        self.stats.add_failure(last_error or "Unknown error", time.monotonic() - start_time)
        raise AdapterFetchError(last_error or "Unknown error", url=url, status_code=status_code)

    def _fetch_http(self, url: str, accept: Optional[str] = None) -> FetchedDocument:
        """Fetch URL with HTTP client, reading at most max_document_bytes.

        Raises:
            httpx.TimeoutException: On timeout
            httpx.HTTPStatusError: On HTTP error
            httpx.RequestError: On network error
            AdapterFetchError: If the body exceeds max_document_bytes
        """
        headers = {"User-Agent": self.user_agent}
        if accept:
            headers["Accept"] = accept

        with httpx.Client(
            timeout=self.timeout_seconds,
            follow_redirects=self.follow_redirects,
            max_redirects=self.max_redirects,
            transport=self.transport,
        ) as client:
            with client.stream("GET", url, headers=headers) as response:
                response.raise_for_status()

                declared = response.headers.get("Content-Length")
                if declared and declared.isdigit() and int(declared) > self.max_document_bytes:
                    raise AdapterFetchError(
                        f"Document too large: {declared} bytes",
                        url=url,
                        status_code=response.status_code,
                    )

                body = bytearray()
                for chunk in response.iter_bytes():
                    body.extend(chunk)
                    if len(body) > self.max_document_bytes:
                        raise AdapterFetchError(
                            f"Document too large: more than {self.max_document_bytes} bytes",
                            url=url,
                            status_code=response.status_code,
                        )

            return FetchedDocument(
                url=str(response.url),
                status_code=response.status_code,
                content=bytes(body),
                content_type=response.headers.get("Content-Type", ""),
                encoding=response.encoding or "utf-8",
            )


def create_fetcher(transport: Optional[httpx.BaseTransport] = None) -> HttpFetcher:
    """Create a configured HttpFetcher instance.

    Args:
        transport: Optional httpx transport

    Returns:
        Configured HttpFetcher instance
    """
    return HttpFetcher(transport=transport)
