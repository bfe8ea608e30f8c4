"""Database client and repository layer."""

from defaultanswer.db.query_executor import timed_query
from defaultanswer.db.repository import (
    SupabaseBeliefStore,
    create_sweep,
    fetch_last_scan,
    fetch_latest_scans,
    fetch_recent_scans,
    fetch_sweep_results,
    get_stored_report,
    insert_sweep_result,
    save_scan_record,
    save_stored_report,
    upsert_scan_summary,
)

__all__ = [
    "timed_query",
    "SupabaseBeliefStore",
    "create_sweep",
    "fetch_last_scan",
    "fetch_latest_scans",
    "fetch_recent_scans",
    "fetch_sweep_results",
    "get_stored_report",
    "insert_sweep_result",
    "save_scan_record",
    "save_stored_report",
    "upsert_scan_summary",
]
