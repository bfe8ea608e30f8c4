"""Centralized logging configuration with Pydantic Logfire integration."""

import logging
from typing import Any

import logfire
from fastapi import FastAPI

from defaultanswer.config import get_settings


def setup_logfire(app: FastAPI | None = None) -> None:
    """
    Initialize and configure Pydantic Logfire for observability.

    Sets up:
    - FastAPI instrumentation when an app is given (the CLI passes none)
    - Pydantic and PydanticAI instrumentation
    - Environment-aware stdlib logging format
    """
    settings = get_settings()

    logfire_config: dict[str, Any] = {
        "environment": settings.env,
        "send_to_logfire": "if-token-present",
    }
    if settings.logfire_token:
        logfire_config["token"] = settings.logfire_token

    logfire.configure(**logfire_config)

    if app is not None:
        logfire.instrument_fastapi(app)
    logfire.instrument_pydantic()
    logfire.instrument_pydantic_ai()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.env == "local":
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    else:
        # Logfire handles structured formatting in deployed environments
        logging.basicConfig(level=log_level, format="%(message)s")


def mask_secret(value: str | None, mask_char: str = "*") -> str:
    """
    Mask a secret for log output, keeping the first and last two characters.

    Args:
        value: Value to mask
        mask_char: Character to use for masking

    Returns:
        Masked string
    """
    if not value:
        return ""
    if len(value) <= 4:
        return mask_char * len(value)
    return f"{value[:2]}{mask_char * (len(value) - 4)}{value[-2:]}"
