"""Analysis orchestration: fetch, extract, score.

``analyze_url`` evaluates the homepage snapshot only. ``analyze_url_multi_page``
additionally visits pricing/about/contact/features pages on the same host and
scores the union of their signals. Neither raises for network or parse
problems; failures come back as sentinel analyses.
"""

import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from urllib.parse import urljoin, urlparse

import logfire

from defaultanswer.config import get_settings
from defaultanswer.models.analysis_models import AnalysisResult
from defaultanswer.models.signal_models import (
    ExtractedSignals,
    FetchDiagnostics,
    PageScanMetadata,
    ScannedPage,
)
from defaultanswer.services import scorer
from defaultanswer.services.page_fetcher import HttpxPageFetcher, PageFetcher
from defaultanswer.services.signal_extractor import (
    extract_domain,
    extract_page_data,
    parse_html,
    skeleton_signals,
    unique_strings,
)

HOMEPAGE_LABEL = "Homepage HTML snapshot"

# Checked first, in this order
COMMON_PATHS = {
    "pricing": ("/pricing", "/plans", "/purchase", "/subscribe"),
    "about": ("/about", "/about-us", "/company", "/team"),
    "contact": ("/contact", "/contact-us", "/support"),
    "features": ("/features", "/solutions"),
}
LINK_KEYWORDS = ("pricing", "plans", "about", "contact", "support", "features", "solutions")


@dataclass
class PageResult:
    url: str
    path: str
    extracted: ExtractedSignals


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_input_url(raw: str) -> str | None:
    """
    Trim and add ``https://`` when no scheme is given.

    Returns None when the input cannot be a web address (empty, contains
    whitespace, non-http scheme or a host without a dot).
    """
    value = (raw or "").strip()
    if not value or re.search(r"\s", value):
        return None
    if not re.match(r"^https?://", value, re.I):
        if "://" in value:
            return None
        value = f"https://{value}"
    try:
        host = urlparse(value).hostname
    except ValueError:
        return None
    if not host or "." not in host:
        return None
    return value


def _fetcher(fetcher: PageFetcher | None) -> PageFetcher:
    if fetcher is not None:
        return fetcher
    return HttpxPageFetcher(timeout=get_settings().fetch_timeout_seconds)


async def _analyze_homepage(
    raw_url: str,
    fetcher: PageFetcher | None,
    fetched_at: str | None,
) -> tuple[AnalysisResult, str | None]:
    fetched_at = fetched_at or utc_now_iso()
    url = normalize_input_url(raw_url)
    if url is None:
        logfire.warning("Rejected invalid URL", url=raw_url)
        analysis = scorer.error_analysis(
            skeleton_signals(raw_url, fetched_at),
            "Invalid URL",
            FetchDiagnostics(requested_url=raw_url, error_type="invalid_url"),
        )
        return analysis, None

    outcome = await _fetcher(fetcher).fetch(url)
    diagnostics = outcome.diagnostics()
    if outcome.html is None:
        reason = outcome.failure_reason or "fetch failed"
        analysis = scorer.error_analysis(
            skeleton_signals(url, fetched_at), reason, diagnostics
        )
        logfire.info(
            "Homepage fetch failed",
            url=url,
            status=outcome.status,
            error_type=outcome.error_type,
            analysis_status=analysis.analysis_status,
        )
        return analysis, None

    html = outcome.html
    snapshot_quality = scorer.classify_snapshot_quality(html, outcome.bytes)
    try:
        extracted = extract_page_data(html, url, fetched_at).model_copy(
            update={"evaluated_page": HOMEPAGE_LABEL, "evaluated_url": url}
        )
        if snapshot_quality == "ok":
            extracted = extracted.model_copy(
                update={
                    "page_scan": PageScanMetadata(
                        scanned_pages=[ScannedPage(url=url, path="/", status="success")],
                        total_scanned=1,
                        success_count=1,
                        error_count=0,
                        scan_depth="homepage-only",
                    )
                }
            )
        analysis = scorer.score(
            extracted,
            snapshot_quality=snapshot_quality,
            fetch_diagnostics=diagnostics,
        )
    except Exception as e:
        logfire.error("Analysis failed", url=url, error=str(e), error_type=type(e).__name__)
        analysis = scorer.error_analysis(skeleton_signals(url, fetched_at), str(e), diagnostics)
        return analysis, None

    return analysis, html


async def analyze_url(
    url: str,
    *,
    fetcher: PageFetcher | None = None,
    fetched_at: str | None = None,
) -> AnalysisResult:
    """Analyze the homepage snapshot of ``url``."""
    start_time = time.time()
    analysis, _ = await _analyze_homepage(url, fetcher, fetched_at)
    logfire.info(
        "Homepage analysis completed",
        url=url,
        score=analysis.score,
        analysis_status=analysis.analysis_status,
        response_time_ms=(time.time() - start_time) * 1000,
    )
    return analysis


# =============================================================================
# Multi-page scan
# =============================================================================


def find_pages_to_analyze(html: str, base_url: str, max_pages: int) -> list[str]:
    """
    Candidate sub-pages: common paths first, then keyword-matching same-host links.

    Reserves one slot for the homepage.
    """
    parsed = urlparse(base_url)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    domain = extract_domain(base_url)

    candidates: list[str] = []
    for paths in COMMON_PATHS.values():
        candidates.extend(f"{origin}{path}" for path in paths)

    soup = parse_html(html)
    for a in soup.find_all("a", href=True):
        href = (a["href"] or "").strip()
        if not href or href.startswith(("#", "mailto:", "tel:", "javascript:")):
            continue
        absolute = urljoin(base_url, href)
        if extract_domain(absolute) != domain:
            continue
        path = urlparse(absolute).path.lower()
        text = a.get_text(" ", strip=True).lower()
        if any(keyword in path or keyword in text for keyword in LINK_KEYWORDS):
            candidates.append(absolute)

    return unique_strings(candidates)[: max(0, max_pages - 1)]


def aggregate_page_results(pages: list[PageResult]) -> ExtractedSignals:
    """
    OR the page-level signals together on top of the homepage signals.

    Evidence gets a "found on" note per signal naming the contributing
    pages (the homepage as ``homepage``).
    """
    homepage = pages[0].extracted
    sources: dict[str, list[str]] = {
        "pricing": [],
        "faq": [],
        "about": [],
        "contact": [],
        "schema": [],
    }
    contact_evidence = list(homepage.contact_evidence)
    schema_types = list(homepage.schema_types)
    updates: dict = {}

    for page in pages:
        extracted = page.extracted
        name = "homepage" if page.path == "/" else page.path
        if extracted.has_pricing and name not in sources["pricing"]:
            updates["has_pricing"] = True
            sources["pricing"].append(name)
        if extracted.has_faq and name not in sources["faq"]:
            updates["has_faq"] = True
            sources["faq"].append(name)
        if extracted.has_about and name not in sources["about"]:
            updates["has_about"] = True
            sources["about"].append(name)
        if extracted.has_contact_signals and name not in sources["contact"]:
            updates["has_contact"] = True
            updates["has_contact_signals"] = True
            sources["contact"].append(name)
            contact_evidence.extend(extracted.contact_evidence)
        if extracted.has_schema_json_ld and name not in sources["schema"]:
            updates["has_schema"] = True
            updates["has_schema_json_ld"] = True
            sources["schema"].append(name)
            schema_types.extend(extracted.schema_types)

    updates["contact_evidence"] = unique_strings(contact_evidence)
    updates["schema_types"] = unique_strings(schema_types)

    if homepage.evidence is not None:
        evidence = homepage.evidence
        evidence_updates: dict = {}
        if sources["pricing"]:
            evidence_updates["pricing_evidence"] = [
                *evidence.pricing_evidence,
                f"Found on: {', '.join(sources['pricing'])}",
            ]
        if sources["faq"]:
            evidence_updates["faq_evidence"] = evidence.faq_evidence.model_copy(
                update={
                    "indirect_faq_links": [
                        *evidence.faq_evidence.indirect_faq_links,
                        f"FAQ found on: {', '.join(sources['faq'])}",
                    ]
                }
            )
        if sources["contact"]:
            evidence_updates["contact_evidence"] = [
                *evidence.contact_evidence,
                f"Contact info found on: {', '.join(sources['contact'])}",
            ]
        updates["evidence"] = evidence.model_copy(update=evidence_updates)

    return homepage.model_copy(update=updates)


async def analyze_url_multi_page(
    url: str,
    *,
    fetcher: PageFetcher | None = None,
    fetched_at: str | None = None,
    max_pages: int | None = None,
) -> AnalysisResult:
    """
    Analyze the homepage plus relevant sub-pages of the same host.

    Falls back to the homepage-only result when the homepage analysis is not
    ``ok``. Sub-page failures are recorded in the scan metadata and skipped.
    """
    start_time = time.time()
    settings = get_settings()
    max_pages = max_pages or settings.max_scan_pages
    fetcher = _fetcher(fetcher)

    homepage_analysis, homepage_html = await _analyze_homepage(url, fetcher, fetched_at)
    if homepage_analysis.analysis_status != "ok" or homepage_html is None:
        return homepage_analysis

    base_url = homepage_analysis.extracted.evaluated_url or url
    pages = [PageResult(url=base_url, path="/", extracted=homepage_analysis.extracted)]
    scanned = [ScannedPage(url=base_url, path="/", status="success")]

    for page_url in find_pages_to_analyze(homepage_html, base_url, max_pages):
        path = urlparse(page_url).path or "/"
        outcome = await fetcher.fetch(page_url, timeout=settings.page_fetch_timeout_seconds)
        if not outcome.html:
            scanned.append(
                ScannedPage(
                    url=page_url,
                    path=path,
                    status="error",
                    error=outcome.failure_reason or "Empty response",
                )
            )
            continue
        try:
            extracted = extract_page_data(outcome.html, page_url, homepage_analysis.extracted.fetched_at)
        except Exception as e:
            logfire.warning("Sub-page extraction failed", url=page_url, error=str(e))
            scanned.append(ScannedPage(url=page_url, path=path, status="error", error=str(e)))
            continue
        pages.append(PageResult(url=page_url, path=path, extracted=extracted))
        scanned.append(ScannedPage(url=page_url, path=path, status="success"))
        if len(pages) >= max_pages:
            break

    success_count = sum(1 for page in scanned if page.status == "success")
    metadata = PageScanMetadata(
        scanned_pages=scanned,
        total_scanned=len(scanned),
        success_count=success_count,
        error_count=len(scanned) - success_count,
        scan_depth="multi-page" if len(scanned) > 1 else "homepage-only",
    )
    plural = "s" if len(pages) > 1 else ""
    aggregated = aggregate_page_results(pages).model_copy(
        update={
            "page_scan": metadata,
            "evaluated_page": f"{len(pages)} page{plural} analyzed",
            "evaluated_url": base_url,
        }
    )
    analysis = scorer.score(
        aggregated,
        snapshot_quality=homepage_analysis.snapshot_quality or "ok",
        fetch_diagnostics=homepage_analysis.fetch_diagnostics,
    )
    logfire.info(
        "Multi-page analysis completed",
        url=base_url,
        pages_analyzed=len(pages),
        pages_failed=metadata.error_count,
        score=analysis.score,
        response_time_ms=(time.time() - start_time) * 1000,
    )
    return analysis
