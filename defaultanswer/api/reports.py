"""Report endpoints: analyze a site, inspect history and the current belief.

Analysis never fails on network or parse problems (those come back as
``blocked``/``error``/``snapshot_incomplete`` reports with a negative
score), so the only errors here are bad input and missing history.
"""

import logging

from fastapi import APIRouter, HTTPException, Query

from defaultanswer.config import get_settings
from defaultanswer.db.repository import (
    fetch_latest_scans,
    fetch_recent_scans,
    get_stored_report,
)
from defaultanswer.models.belief_models import BeliefState
from defaultanswer.models.report_models import (
    AnalyzeRequest,
    HistoryDiffResponse,
    Report,
    StoredReport,
)
from defaultanswer.models.scan_models import ScanSummary
from defaultanswer.services.analyzer import normalize_input_url
from defaultanswer.services.report_service import generate_report, get_belief_tracker
from defaultanswer.services.scan_differ import diff_scans, normalize_url

logger = logging.getLogger(__name__)
router = APIRouter()


def _require_history() -> None:
    if not get_settings().history_configured:
        raise HTTPException(status_code=404, detail="Scan history is not configured")


def _require_url(url: str) -> str:
    normalized = normalize_input_url(url)
    if normalized is None:
        raise HTTPException(status_code=400, detail="Invalid URL")
    return normalized


@router.post("/analyze", response_model=Report)
async def analyze(request: AnalyzeRequest) -> Report:
    """Analyze a site and record the scan."""
    report = await generate_report(
        request.url,
        multi_page=request.multi_page,
        report_id=request.report_id,
        user_id=request.user_id,
    )
    logger.info(
        "Analyzed %s: score=%s status=%s",
        report.url,
        report.analysis.score,
        report.analysis.analysis_status,
    )
    return report


@router.get("/history/list", response_model=list[ScanSummary])
def history_list(
    url: str,
    user_id: str | None = None,
    limit: int = Query(default=10, ge=1, le=50),
) -> list[ScanSummary]:
    """Recent scan summaries for a URL, newest first."""
    _require_history()
    target = _require_url(url)
    return fetch_recent_scans(normalize_url(target), user_id, limit)


@router.get("/history/diff", response_model=HistoryDiffResponse)
def history_diff(url: str) -> HistoryDiffResponse:
    """Compare the two most recent full scan records for a URL."""
    _require_history()
    target = _require_url(url)
    records = fetch_latest_scans(target, limit=2)
    if not records:
        raise HTTPException(status_code=404, detail="No scans recorded for this URL")

    current = records[0]
    previous = records[1] if len(records) > 1 else None
    return HistoryDiffResponse(
        url=target,
        current=current,
        previous=previous,
        diff=diff_scans(previous, current),
    )


@router.get("/beliefs/{domain}", response_model=BeliefState)
def get_belief(domain: str) -> BeliefState:
    """Current belief state for a domain."""
    state = get_belief_tracker().store.get(domain.strip().lower())
    if state is None:
        raise HTTPException(status_code=404, detail="No belief recorded for this domain")
    return state


@router.get("/reports/{report_id}", response_model=StoredReport)
def get_report(report_id: str) -> StoredReport:
    """Stored analysis for a report id."""
    _require_history()
    stored = get_stored_report(report_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return stored
