"""
Report assembly and history bookkeeping around one analysis.

``generate_report`` runs the analysis, derives readiness, coverage and the
first fix, then records the scan: a summary and full record in Supabase
when configured, and a belief update in whichever belief store is active.
History is best effort; a storage failure is logged and the report is
still returned.
"""

import uuid

import logfire

from defaultanswer.config import get_settings
from defaultanswer.db import repository
from defaultanswer.models.analysis_models import AnalysisResult
from defaultanswer.models.belief_models import BeliefState
from defaultanswer.models.report_models import Report
from defaultanswer.models.scan_models import ScanDelta
from defaultanswer.services import scorer
from defaultanswer.services.analyzer import (
    analyze_url,
    analyze_url_multi_page,
    normalize_input_url,
    utc_now_iso,
)
from defaultanswer.services.belief_state import (
    BeliefStateStoreError,
    BeliefStateTracker,
    InMemoryBeliefStore,
    belief_params_from_analysis,
)
from defaultanswer.services.fix_plan import decide_what_to_fix_first
from defaultanswer.services.page_fetcher import PageFetcher
from defaultanswer.services.scan_differ import (
    build_scan_record,
    build_scan_summary,
    compute_scan_delta,
)
from defaultanswer.services.signal_extractor import extract_domain

_belief_tracker: BeliefStateTracker | None = None


def get_belief_tracker() -> BeliefStateTracker:
    """Get or create the process-wide tracker (Supabase-backed when configured)."""
    global _belief_tracker
    if _belief_tracker is None:
        if get_settings().history_configured:
            store = repository.SupabaseBeliefStore()
        else:
            store = InMemoryBeliefStore()
        _belief_tracker = BeliefStateTracker(store)
    return _belief_tracker


def reset_belief_tracker() -> None:
    """Drop the global tracker (primarily for testing)."""
    global _belief_tracker
    _belief_tracker = None


def new_report_id() -> str:
    return uuid.uuid4().hex


def assemble_report(
    analysis: AnalysisResult,
    *,
    url: str,
    report_id: str,
) -> Report:
    """Readiness, coverage and first-fix decision for an analysis."""
    readiness = scorer.get_readiness_classification(analysis)
    coverage = scorer.build_coverage(analysis)
    decision = decide_what_to_fix_first(
        analysis.fix_plan, analysis.score, readiness.label, analysis.extracted
    )
    return Report(
        report_id=report_id,
        url=url,
        domain=analysis.extracted.domain or extract_domain(url),
        analysis=analysis,
        readiness=readiness,
        coverage=coverage,
        fix_decision=decision,
    )


def _record_history(report: Report, user_id: str | None) -> tuple[ScanDelta | None, bool]:
    summary = build_scan_summary(
        report.analysis,
        url=report.url,
        report_id=report.report_id,
        user_id=user_id,
        coverage=report.coverage,
    )
    previous = repository.fetch_last_scan(
        summary.normalized_url, user_id, exclude_report_id=report.report_id
    )
    delta = compute_scan_delta(summary, previous) if previous else None

    repository.upsert_scan_summary(summary)
    repository.save_scan_record(build_scan_record(report.url, report.analysis))
    repository.save_stored_report(
        report.report_id, report.url, report.domain, report.analysis, user_id
    )
    return delta, True


def _update_belief(report: Report, timestamp: str) -> BeliefState | None:
    diagnostics = report.analysis.fetch_diagnostics
    if not report.domain or (diagnostics and diagnostics.error_type == "invalid_url"):
        return None
    params = belief_params_from_analysis(
        report.analysis,
        domain=report.domain,
        report_id=report.report_id,
        timestamp=timestamp,
    )
    return get_belief_tracker().upsert(params).current


async def generate_report(
    url: str,
    *,
    multi_page: bool = False,
    report_id: str | None = None,
    user_id: str | None = None,
    fetcher: PageFetcher | None = None,
) -> Report:
    """
    Analyze ``url`` and record the scan.

    Args:
        url: Site URL as typed by the user
        multi_page: Also evaluate pricing/about/contact/features pages
        report_id: Caller-supplied identity; replays of the same id do not
            add belief history
        user_id: Scopes scan history to one user (anonymous when None)
        fetcher: Optional page fetcher (defaults to httpx)

    Returns:
        Report with the delta against the previous scan when history is on
    """
    report_id = report_id or new_report_id()
    timestamp = utc_now_iso()
    target = normalize_input_url(url) or url

    if multi_page:
        analysis = await analyze_url_multi_page(url, fetcher=fetcher, fetched_at=timestamp)
    else:
        analysis = await analyze_url(url, fetcher=fetcher, fetched_at=timestamp)

    report = assemble_report(analysis, url=target, report_id=report_id)
    updates: dict = {}

    if get_settings().history_configured:
        try:
            updates["delta"], updates["persisted"] = _record_history(report, user_id)
        except Exception as e:
            logfire.error(
                "Failed to record scan history",
                report_id=report_id,
                url=target,
                error=str(e),
                error_type=type(e).__name__,
            )

    try:
        updates["belief"] = _update_belief(report, timestamp)
    except BeliefStateStoreError as e:
        logfire.error(
            "Failed to update belief state",
            report_id=report_id,
            domain=report.domain,
            error=str(e),
        )

    logfire.info(
        "Report generated",
        report_id=report_id,
        url=target,
        score=analysis.score,
        analysis_status=analysis.analysis_status,
        fix_decision=report.fix_decision.kind,
        persisted=updates.get("persisted", False),
    )
    return report.model_copy(update=updates)
