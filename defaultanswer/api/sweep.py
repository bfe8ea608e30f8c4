"""Admin sweep endpoints, guarded by a shared token header."""

import logging
import secrets

from fastapi import APIRouter, Header, HTTPException

from defaultanswer.config import get_settings
from defaultanswer.db.repository import fetch_sweep_results
from defaultanswer.models.sweep_models import SweepRequest, SweepResultRow, SweepSummary
from defaultanswer.services.sweep_runner import SweepConfigurationError, SweepRunner

logger = logging.getLogger(__name__)
router = APIRouter()


def verify_admin_token(token: str | None) -> None:
    expected = get_settings().admin_token
    if not expected:
        raise HTTPException(status_code=500, detail="Admin token is not configured")
    if not token or not secrets.compare_digest(token, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post("/run", response_model=SweepSummary)
async def run_sweep(
    request: SweepRequest,
    x_admin_token: str | None = Header(default=None),
) -> SweepSummary:
    """Run the prompt set against the enabled providers and store every row."""
    verify_admin_token(x_admin_token)
    if not get_settings().history_configured:
        raise HTTPException(status_code=400, detail="Supabase is required to store sweeps")

    try:
        summary = await SweepRunner().run(request)
    except SweepConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ValueError as e:
        logger.error("Sweep could not start: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e

    logger.info(
        "Sweep %s finished: %s/%s inserted",
        summary.sweep_id,
        summary.inserted,
        summary.attempted,
    )
    return summary


@router.get("/{sweep_id}/results", response_model=list[SweepResultRow])
def sweep_results(
    sweep_id: str,
    x_admin_token: str | None = Header(default=None),
) -> list[SweepResultRow]:
    """Rows recorded for one sweep, oldest first."""
    verify_admin_token(x_admin_token)
    if not get_settings().history_configured:
        raise HTTPException(status_code=400, detail="Supabase is required to read sweeps")

    rows = fetch_sweep_results(sweep_id)
    if not rows:
        raise HTTPException(status_code=404, detail="Sweep not found")
    return rows
