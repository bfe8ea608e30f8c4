"""Timing and logging for Supabase calls.

Every repository function wraps its round trip in ``timed_query`` so the
start, duration and failure of each table operation show up in Logfire
with the same shape.
"""

import time
from contextlib import contextmanager
from typing import Any, Generator

import logfire


@contextmanager
def timed_query(
    operation_name: str,
    **log_context: Any,
) -> Generator[None, None, None]:
    """
    Time a database operation and log its outcome.

    Exceptions raised inside the block are logged with their type and
    re-raised unchanged.

    Args:
        operation_name: Name of the operation (e.g., "upsert_scan_summary")
        **log_context: Fields added to every log record

    Example:
        with timed_query("fetch_last_scan", normalized_url=url):
            result = client.table("report_scans").select("*").eq("normalized_url", url).execute()
    """
    started = time.perf_counter()
    logfire.debug(f"Starting {operation_name}", operation=operation_name, **log_context)

    try:
        yield
    except Exception as e:
        logfire.error(
            f"{operation_name} failed",
            operation=operation_name,
            error=str(e),
            error_type=type(e).__name__,
            response_time_ms=(time.perf_counter() - started) * 1000,
            **log_context,
        )
        raise

    logfire.info(
        f"{operation_name} completed",
        operation=operation_name,
        response_time_ms=(time.perf_counter() - started) * 1000,
        **log_context,
    )
