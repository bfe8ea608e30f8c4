"""Repository functions for scan history, stored reports, beliefs and sweeps."""

from datetime import datetime, timezone
from typing import Optional

import logfire

from defaultanswer.constants import DEFAULT_RECENT_SCANS_LIMIT
from defaultanswer.db.client import get_supabase_client
from defaultanswer.db.query_executor import timed_query
from defaultanswer.models.analysis_models import AnalysisResult
from defaultanswer.models.belief_models import BeliefState
from defaultanswer.models.report_models import StoredReport
from defaultanswer.models.scan_models import ScanRecord, ScanSummary
from defaultanswer.models.sweep_models import SweepResultRow
from defaultanswer.services.belief_state import BeliefStateStoreError, belief_key


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Scan summaries (report_scans)
# =============================================================================


def upsert_scan_summary(summary: ScanSummary) -> ScanSummary:
    """
    Store a compact scan summary, one row per report_id.

    A replayed report overwrites its own row instead of adding a new one.

    Returns:
        The stored row (with ``id`` and ``created_at`` filled by the database)

    Raises:
        ValueError: If the insert returns no row
    """
    supabase = get_supabase_client()
    data = summary.model_dump(mode="json", exclude={"id", "created_at"})

    with timed_query(
        "upsert_scan_summary",
        normalized_url=summary.normalized_url,
        report_id=summary.report_id,
    ):
        result = (
            supabase.table("report_scans")
            .upsert(data, on_conflict="report_id")
            .execute()
        )

    if not result.data:
        raise ValueError("Failed to store scan summary")
    return ScanSummary(**result.data[0])


def _scans_query(normalized_url: str, user_id: str | None):
    query = (
        get_supabase_client()
        .table("report_scans")
        .select("*")
        .eq("normalized_url", normalized_url)
    )
    if user_id:
        return query.eq("user_id", user_id)
    return query.is_("user_id", "null")


def fetch_last_scan(
    normalized_url: str,
    user_id: str | None = None,
    exclude_report_id: str | None = None,
) -> Optional[ScanSummary]:
    """
    Most recent summary for a URL, scoped to the user (or anonymous scans).

    ``exclude_report_id`` skips the row of the report being recorded, so a
    replay is compared with the scan before it.
    """
    query = _scans_query(normalized_url, user_id)
    if exclude_report_id:
        query = query.neq("report_id", exclude_report_id)

    with timed_query("fetch_last_scan", normalized_url=normalized_url):
        result = (
            query
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )

    if not result.data:
        return None
    return ScanSummary(**result.data[0])


def fetch_recent_scans(
    normalized_url: str,
    user_id: str | None = None,
    limit: int = DEFAULT_RECENT_SCANS_LIMIT,
) -> list[ScanSummary]:
    """Newest-first summaries for a URL."""
    with timed_query("fetch_recent_scans", normalized_url=normalized_url, limit=limit):
        result = (
            _scans_query(normalized_url, user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )

    return [ScanSummary(**row) for row in result.data or []]


# =============================================================================
# Full scan records (defaultanswer_scans)
# =============================================================================


def save_scan_record(record: ScanRecord) -> ScanRecord:
    """
    Insert a full scan record.

    Raises:
        ValueError: If the insert returns no row
    """
    supabase = get_supabase_client()
    data = record.model_dump(mode="json", exclude={"id", "created_at"})

    with timed_query("save_scan_record", url=record.url, hash=record.hash):
        result = supabase.table("defaultanswer_scans").insert(data).execute()

    if not result.data:
        raise ValueError("Failed to save scan record")
    return ScanRecord(**result.data[0])


def fetch_latest_scans(url: str, limit: int = 2) -> list[ScanRecord]:
    """Newest-first full records for a URL (current first, then previous)."""
    supabase = get_supabase_client()

    with timed_query("fetch_latest_scans", url=url, limit=limit):
        result = (
            supabase.table("defaultanswer_scans")
            .select("*")
            .eq("url", url)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )

    return [ScanRecord(**row) for row in result.data or []]


# =============================================================================
# Stored reports (stored_reports)
# =============================================================================


def save_stored_report(
    report_id: str,
    url: str,
    domain: str,
    analysis: AnalysisResult,
    user_id: str | None = None,
) -> str:
    """
    Upsert the latest full report for a domain.

    One row per (domain, user_id); a newer report replaces the older one.

    Returns:
        The stored report_id

    Raises:
        ValueError: If the upsert returns no row
    """
    supabase = get_supabase_client()
    data = {
        "report_id": report_id,
        "url": url,
        "domain": domain.lower(),
        "user_id": user_id,
        "score": analysis.score,
        "analysis_status": analysis.analysis_status,
        "payload": analysis.model_dump(mode="json"),
        "updated_at": _now_iso(),
    }

    with timed_query("save_stored_report", report_id=report_id, domain=domain):
        result = (
            supabase.table("stored_reports")
            .upsert(data, on_conflict="domain,user_id")
            .execute()
        )

    if not result.data:
        raise ValueError("Failed to save stored report")
    return result.data[0].get("report_id", report_id)


def get_stored_report(report_id: str) -> Optional[StoredReport]:
    """Stored report by report_id, or None."""
    supabase = get_supabase_client()

    with timed_query("get_stored_report", report_id=report_id):
        result = (
            supabase.table("stored_reports")
            .select("*")
            .eq("report_id", report_id)
            .limit(1)
            .execute()
        )

    if not result.data:
        return None
    return StoredReport(**result.data[0])


# =============================================================================
# Belief states (belief_states)
# =============================================================================


class SupabaseBeliefStore:
    """
    ``BeliefStore`` backed by the ``belief_states`` table.

    The whole record is stored as JSON under ``state``; ``key`` is the
    prefixed lowercase domain. Database errors surface as
    ``BeliefStateStoreError``.
    """

    table = "belief_states"

    def get(self, domain: str) -> BeliefState | None:
        key = belief_key(domain)
        try:
            with timed_query("get_belief_state", key=key):
                result = (
                    get_supabase_client()
                    .table(self.table)
                    .select("*")
                    .eq("key", key)
                    .limit(1)
                    .execute()
                )
        except Exception as e:
            raise BeliefStateStoreError(f"Failed to read belief state for {domain}") from e

        if not result.data:
            return None
        return BeliefState(**result.data[0]["state"])

    def put(self, state: BeliefState) -> None:
        key = belief_key(state.domain)
        data = {
            "key": key,
            "domain": state.domain.lower(),
            "state": state.model_dump(mode="json"),
            "updated_at": state.last_updated,
        }
        try:
            with timed_query("put_belief_state", key=key, history_len=len(state.history)):
                result = (
                    get_supabase_client()
                    .table(self.table)
                    .upsert(data, on_conflict="key")
                    .execute()
                )
        except Exception as e:
            raise BeliefStateStoreError(f"Failed to persist belief state for {state.domain}") from e

        if not result.data:
            raise BeliefStateStoreError(f"Belief state upsert returned no row for {state.domain}")


# =============================================================================
# Sweeps (ai_sweeps, ai_sweep_results)
# =============================================================================


def create_sweep(
    *,
    label: str,
    prompt_set_version: str,
    category: str,
    brand_name: str,
    domain: str,
    models: dict[str, str],
) -> str:
    """
    Create a sweep run row.

    Returns:
        Sweep ID

    Raises:
        ValueError: If the insert returns no row
    """
    supabase = get_supabase_client()
    data = {
        "label": label,
        "prompt_set_version": prompt_set_version,
        "category": category,
        "brand_name": brand_name,
        "domain": domain,
        "models": models,
        "created_at": _now_iso(),
    }

    with timed_query("create_sweep", label=label, prompt_set_version=prompt_set_version):
        result = supabase.table("ai_sweeps").insert(data).execute()

    if not result.data:
        raise ValueError("Failed to create sweep")

    sweep_id = result.data[0]["id"]
    logfire.info("Sweep created", sweep_id=sweep_id, label=label, models=models)
    return sweep_id


def insert_sweep_result(row: SweepResultRow) -> None:
    """
    Store one sweep result row.

    Raises:
        ValueError: If the insert returns no row
    """
    supabase = get_supabase_client()
    data = row.model_dump(mode="json")

    with timed_query(
        "insert_sweep_result",
        sweep_id=row.sweep_id,
        provider=row.provider,
        prompt_key=row.prompt_key,
    ):
        result = supabase.table("ai_sweep_results").insert(data).execute()

    if not result.data:
        raise ValueError("Failed to insert sweep result")


def fetch_sweep_results(sweep_id: str) -> list[SweepResultRow]:
    supabase = get_supabase_client()

    with timed_query("fetch_sweep_results", sweep_id=sweep_id):
        result = (
            supabase.table("ai_sweep_results")
            .select("*")
            .eq("sweep_id", sweep_id)
            .order("created_at")
            .execute()
        )

    return [SweepResultRow(**row) for row in result.data or []]
