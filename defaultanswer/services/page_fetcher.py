"""Page fetching for analysis.

The fetcher never raises for network problems. Every attempt resolves to a
``FetchOutcome`` carrying either the HTML or a failure reason plus a coarse
error type, so the analyzer can map it straight onto an analysis status.
"""

import re
import time
from typing import Protocol

import httpx
import logfire
from pydantic import BaseModel

from defaultanswer.constants import (
    ANALYSIS_USER_AGENT,
    BLOCKING_HTTP_STATUSES,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
)
from defaultanswer.models.signal_models import FetchDiagnostics, FetchErrorType

DNS_ERROR_RE = re.compile(
    r"ENOTFOUND|dns|name or service not known|nodename nor servname|"
    r"getaddrinfo|name resolution",
    re.I,
)


class FetchOutcome(BaseModel):
    """Result of one fetch attempt."""

    url: str
    final_url: str | None = None
    status: int | None = None
    ok: bool = False
    content_type: str | None = None
    bytes: int | None = None
    html: str | None = None
    failure_reason: str | None = None
    error_type: FetchErrorType | None = None
    duration_ms: int | None = None
    retry_after: str | None = None

    def diagnostics(self) -> FetchDiagnostics:
        return FetchDiagnostics(
            requested_url=self.url,
            final_url=self.final_url,
            status=self.status,
            ok=self.ok,
            error_type=self.error_type,
            content_type=self.content_type,
            bytes=self.bytes,
            duration_ms=self.duration_ms,
            retry_after=self.retry_after,
        )


class PageFetcher(Protocol):
    """Protocol for fetching page content."""

    async def fetch(self, url: str, timeout: float | None = None) -> FetchOutcome:
        """Fetch HTML content from URL.

        Args:
            url: The URL to fetch
            timeout: Optional per-call timeout in seconds

        Returns:
            FetchOutcome with either ``html`` or ``failure_reason`` set
        """
        ...


def classify_status(status: int | None) -> FetchErrorType:
    if status in BLOCKING_HTTP_STATUSES:
        return "blocked"
    return "unknown"


def classify_exception(exc: Exception) -> FetchErrorType:
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if isinstance(exc, httpx.InvalidURL):
        return "invalid_url"
    if DNS_ERROR_RE.search(str(exc)):
        return "dns"
    return "unknown"


class HttpxPageFetcher:
    """Fetch pages with httpx, identifying as the analysis bot."""

    DEFAULT_HEADERS = {
        "User-Agent": ANALYSIS_USER_AGENT,
        "Accept": "text/html,application/xhtml+xml",
    }

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the page fetcher.

        Args:
            timeout: Default HTTP timeout in seconds
            headers: Optional custom headers (defaults to the analysis bot headers)
            transport: Optional httpx transport (used by tests)
        """
        self._timeout = timeout
        self._headers = headers or self.DEFAULT_HEADERS.copy()
        self._transport = transport

    async def fetch(self, url: str, timeout: float | None = None) -> FetchOutcome:
        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=timeout or self._timeout,
                follow_redirects=True,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            duration_ms = int((time.perf_counter() - started) * 1000)
            error_type = classify_exception(e)
            logfire.warning(
                "Page fetch failed",
                url=url,
                error_type=error_type,
                error=str(e),
                duration_ms=duration_ms,
            )
            return FetchOutcome(
                url=url,
                failure_reason=str(e) or type(e).__name__,
                error_type=error_type,
                duration_ms=duration_ms,
            )

        duration_ms = int((time.perf_counter() - started) * 1000)
        outcome = FetchOutcome(
            url=url,
            final_url=str(response.url),
            status=response.status_code,
            ok=response.is_success,
            content_type=response.headers.get("content-type"),
            retry_after=response.headers.get("retry-after"),
            duration_ms=duration_ms,
        )
        if not response.is_success:
            error_type = classify_status(response.status_code)
            logfire.info(
                "Page fetch returned error status",
                url=url,
                status_code=response.status_code,
                error_type=error_type,
            )
            return outcome.model_copy(
                update={
                    "failure_reason": f"HTTP {response.status_code}",
                    "error_type": error_type,
                }
            )

        logfire.info(
            "Page fetched (httpx)",
            url=url,
            status_code=response.status_code,
            content_length=len(response.content),
            response_time_ms=duration_ms,
        )
        return outcome.model_copy(
            update={"html": response.text, "bytes": len(response.content)}
        )
