"""Shared pytest fixtures and configuration.

Fixture Categories:
1. HTML pages: strong_homepage_html, weak_homepage_html, js_shell_html, build_page
2. Fakes: fake_fetcher (in-memory PageFetcher)
3. Infrastructure: mock_supabase_client, mock_settings, mock_logfire, test_client
"""

import os
from contextlib import contextmanager
from unittest.mock import MagicMock, Mock

import pytest
from hypothesis import HealthCheck, settings as hypothesis_settings

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

# The autouse belief-tracker reset is function scoped; property tests do not
# touch the tracker.
hypothesis_settings.register_profile(
    "defaultanswer",
    suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
)
hypothesis_settings.load_profile("defaultanswer")

from defaultanswer.config import Settings
from defaultanswer.services.page_fetcher import FetchOutcome
from defaultanswer.services.report_service import reset_belief_tracker

# Neutral filler: no pricing words, digits, definitions or contact hints.
FILLER_SENTENCE = (
    "Forecasts refresh every morning with the latest delivery data from the team."
)


def make_page(
    *,
    head: str = "",
    body: str = "",
    filler: int = 300,
) -> str:
    """Wrap head/body markup, padded with enough visible text to count as a full snapshot."""
    padding = "\n".join(f"<p>{FILLER_SENTENCE}</p>" for _ in range(filler))
    return f"<html><head>{head}</head><body>{body}\n{padding}</body></html>"


@pytest.fixture
def build_page():
    """Factory for padded HTML pages."""
    return make_page


@pytest.fixture
def strong_homepage_html():
    """Homepage that passes every check (score 100)."""
    return make_page(
        head=(
            "<title>Acme | Project analytics for engineering teams</title>"
            '<meta name="description" content="Acme gives engineering teams '
            'project analytics and delivery forecasts.">'
            '<link rel="canonical" href="https://acme.com/">'
            '<script type="application/ld+json">'
            '{"@context": "https://schema.org", "@type": "Organization", "name": "Acme"}'
            "</script>"
        ),
        body=(
            "<h1>Project analytics for engineering teams</h1>"
            "<p>Acme is a project analytics platform for engineering teams.</p>"
            "<h2>Features</h2><p>Delivery forecasts and cycle time reports.</p>"
            "<h2>How it works</h2>"
            "<ol><li>Connect your repositories</li><li>Review the forecast</li></ol>"
            "<h2>Pricing</h2><p>Starter plan at $29/month.</p>"
            "<h2>Frequently asked questions</h2><p>Answers for new teams.</p>"
            '<a href="/about">About</a>'
            '<a href="mailto:hello@acme.com">Email us</a>'
            '<a href="/contact">Contact</a>'
        ),
    )


@pytest.fixture
def weak_homepage_html():
    """Full-size homepage with generic headings and no trust or commercial signals."""
    return make_page(head="<title>Welcome</title>", body="<h1>Welcome</h1>")


@pytest.fixture
def js_shell_html():
    """Client-rendered shell with an empty root element."""
    return (
        "<html><head><title>App</title></head>"
        '<body><div id="root"></div>'
        '<script src="/static/js/main.chunk.js"></script></body></html>'
    )


class FakePageFetcher:
    """In-memory PageFetcher: maps URLs to HTML or to failed outcomes."""

    def __init__(self, pages: dict[str, str] | None = None, failures: dict | None = None):
        self.pages = pages or {}
        self.failures = failures or {}
        self.calls: list[str] = []

    async def fetch(self, url: str, timeout: float | None = None) -> FetchOutcome:
        self.calls.append(url)
        if url in self.failures:
            return self.failures[url]
        html = self.pages.get(url)
        if html is None:
            return FetchOutcome(
                url=url,
                status=404,
                ok=False,
                failure_reason="HTTP 404",
                error_type="unknown",
            )
        return FetchOutcome(
            url=url,
            final_url=url,
            status=200,
            ok=True,
            content_type="text/html",
            bytes=len(html.encode("utf-8")),
            html=html,
            duration_ms=12,
        )


@pytest.fixture
def fake_fetcher():
    """Factory for FakePageFetcher instances."""
    return FakePageFetcher


@pytest.fixture(autouse=True)
def _reset_belief_tracker():
    """Every test starts with a fresh process-wide belief tracker."""
    reset_belief_tracker()
    yield
    reset_belief_tracker()


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query chains all resolve to ``execute_result``."""
    client = MagicMock()
    table = MagicMock()
    execute_result = MagicMock()
    execute_result.data = []

    # Every builder method returns the same table mock so arbitrary
    # select().eq().is_().order().limit() chains end at execute().
    for method in ("select", "eq", "neq", "is_", "order", "limit", "insert", "upsert", "update"):
        getattr(table, method).return_value = table
    table.execute.return_value = execute_result

    client.table.return_value = table
    client.execute_result = execute_result
    return client


def _patch_settings(monkeypatch, settings: Settings) -> None:
    for target in (
        "defaultanswer.config.get_settings",
        "defaultanswer.db.client.get_settings",
        "defaultanswer.services.analyzer.get_settings",
        "defaultanswer.services.report_service.get_settings",
        "defaultanswer.services.sweep_runner.get_settings",
        "defaultanswer.api.health.get_settings",
        "defaultanswer.api.reports.get_settings",
        "defaultanswer.api.sweep.get_settings",
        "defaultanswer.main.get_settings",
        "defaultanswer.logging_config.get_settings",
        "defaultanswer.cli.main.get_settings",
    ):
        monkeypatch.setattr(target, lambda: settings)


@pytest.fixture
def mock_settings(monkeypatch):
    """Settings without Supabase (in-memory beliefs, no history)."""
    settings = Settings(
        _env_file=None,
        supabase_url=None,
        supabase_service_key=None,
        pydantic_ai_gateway_api_key="paig_test_key",
        env="local",
        logfire_token=None,
        admin_token="test-admin-token",
        sentry_dsn=None,
    )
    _patch_settings(monkeypatch, settings)
    return settings


@pytest.fixture
def mock_settings_with_history(monkeypatch):
    """Settings with Supabase configured."""
    settings = Settings(
        _env_file=None,
        supabase_url="https://test.supabase.co",
        supabase_service_key="test-service-key",
        pydantic_ai_gateway_api_key="paig_test_key",
        env="local",
        logfire_token=None,
        admin_token="test-admin-token",
        sentry_dsn=None,
    )
    _patch_settings(monkeypatch, settings)
    return settings


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Replace Logfire calls with mocks.

    Returns the mock namespace so tests can assert on logged events.
    """
    import logfire

    @contextmanager
    def mock_span(*args, **kwargs):
        yield MagicMock()

    mocks = MagicMock()
    mocks.span = mock_span
    for attr in (
        "debug",
        "info",
        "warning",
        "error",
        "configure",
        "instrument_fastapi",
        "instrument_pydantic",
        "instrument_pydantic_ai",
    ):
        mock = Mock()
        setattr(mocks, attr, mock)
        monkeypatch.setattr(logfire, attr, mock)
    monkeypatch.setattr(logfire, "span", mock_span)
    return mocks


@pytest.fixture
def test_client(mock_settings, mock_logfire):
    """FastAPI TestClient for E2E tests."""
    from fastapi.testclient import TestClient

    from defaultanswer.main import app

    with TestClient(app) as client:
        yield client
