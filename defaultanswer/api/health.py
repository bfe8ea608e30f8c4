"""Health check endpoint."""

from fastapi import APIRouter

from defaultanswer.config import get_settings
from defaultanswer.services.sweep_prompts import PROMPT_SET_VERSION

router = APIRouter()


@router.get("/health")
def health():
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.env,
        "history_configured": settings.history_configured,
        "prompt_set_version": PROMPT_SET_VERSION,
    }
