"""Tests for the httpx page fetcher."""

import httpx
import pytest

from defaultanswer.constants import ANALYSIS_USER_AGENT
from defaultanswer.services.page_fetcher import (
    FetchOutcome,
    HttpxPageFetcher,
    classify_exception,
    classify_status,
)


class TestHttpxPageFetcher:
    """Test HttpxPageFetcher.fetch()."""

    @pytest.mark.asyncio
    async def test_successful_fetch(self, respx_mock, mock_logfire):
        html = "<html><head><title>Acme</title></head><body>Hi</body></html>"
        respx_mock.get("https://acme.com").mock(
            return_value=httpx.Response(
                200, text=html, headers={"content-type": "text/html; charset=utf-8"}
            )
        )

        outcome = await HttpxPageFetcher().fetch("https://acme.com")

        assert outcome.ok is True
        assert outcome.status == 200
        assert outcome.html == html
        assert outcome.bytes == len(html.encode("utf-8"))
        assert outcome.content_type.startswith("text/html")
        assert outcome.failure_reason is None
        request = respx_mock.calls.last.request
        assert request.headers["User-Agent"] == ANALYSIS_USER_AGENT

    @pytest.mark.asyncio
    async def test_forbidden_is_blocked(self, respx_mock, mock_logfire):
        respx_mock.get("https://acme.com").mock(
            return_value=httpx.Response(403, headers={"retry-after": "120"})
        )

        outcome = await HttpxPageFetcher().fetch("https://acme.com")

        assert outcome.ok is False
        assert outcome.html is None
        assert outcome.status == 403
        assert outcome.error_type == "blocked"
        assert outcome.failure_reason == "HTTP 403"
        assert outcome.retry_after == "120"

    @pytest.mark.asyncio
    async def test_not_found_is_unknown(self, respx_mock, mock_logfire):
        respx_mock.get("https://acme.com/missing").mock(return_value=httpx.Response(404))

        outcome = await HttpxPageFetcher().fetch("https://acme.com/missing")

        assert outcome.error_type == "unknown"
        assert outcome.failure_reason == "HTTP 404"

    @pytest.mark.asyncio
    async def test_timeout(self, respx_mock, mock_logfire):
        respx_mock.get("https://slow.example.com").mock(
            side_effect=httpx.ConnectTimeout("Request timed out")
        )

        outcome = await HttpxPageFetcher().fetch("https://slow.example.com")

        assert outcome.ok is False
        assert outcome.status is None
        assert outcome.error_type == "timeout"
        assert outcome.failure_reason == "Request timed out"
        mock_logfire.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_dns_failure(self, respx_mock, mock_logfire):
        respx_mock.get("https://nowhere.invalid").mock(
            side_effect=httpx.ConnectError("[Errno -2] Name or service not known")
        )

        outcome = await HttpxPageFetcher().fetch("https://nowhere.invalid")

        assert outcome.error_type == "dns"

    @pytest.mark.asyncio
    async def test_follows_redirects(self, respx_mock, mock_logfire):
        respx_mock.get("http://acme.com").mock(
            return_value=httpx.Response(301, headers={"location": "https://acme.com/"})
        )
        respx_mock.get("https://acme.com/").mock(return_value=httpx.Response(200, text="ok"))

        outcome = await HttpxPageFetcher().fetch("http://acme.com")

        assert outcome.ok is True
        assert outcome.final_url == "https://acme.com/"


class TestClassification:
    def test_classify_status(self):
        assert classify_status(403) == "blocked"
        assert classify_status(429) == "blocked"
        assert classify_status(500) == "unknown"
        assert classify_status(None) == "unknown"

    def test_classify_exception(self):
        assert classify_exception(httpx.ReadTimeout("slow")) == "timeout"
        assert classify_exception(httpx.InvalidURL("bad")) == "invalid_url"
        assert classify_exception(httpx.ConnectError("getaddrinfo failed")) == "dns"
        assert classify_exception(httpx.ConnectError("refused")) == "unknown"

    def test_diagnostics_mirror_outcome(self):
        outcome = FetchOutcome(url="https://acme.com", status=429, error_type="blocked")

        diagnostics = outcome.diagnostics()

        assert diagnostics.requested_url == "https://acme.com"
        assert diagnostics.status == 429
        assert diagnostics.ok is False
        assert diagnostics.error_type == "blocked"
