"""Application configuration using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from defaultanswer.constants import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_OPENAI_MODEL,
    MAX_SCAN_PAGES,
    PAGE_FETCH_TIMEOUT_SECONDS,
    SWEEP_CALL_TIMEOUT_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # .env.local is read after .env and wins on conflicts
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase Configuration (optional: history and belief persistence)
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_service_key: str | None = Field(
        default=None, description="Supabase service role key"
    )

    # PydanticAI Gateway Configuration (sweeps only)
    pydantic_ai_gateway_api_key: str | None = Field(
        default=None, description="PydanticAI Gateway API key (paig_xxx)"
    )
    openai_model: str = Field(
        default=DEFAULT_OPENAI_MODEL,
        description="Model used for the openai sweep provider",
    )
    anthropic_model: str = Field(
        default=DEFAULT_ANTHROPIC_MODEL,
        description="Model used for the anthropic sweep provider",
    )

    # Environment
    env: Literal["local", "railway", "prod"] = Field(
        default="local", description="Current environment"
    )
    log_level: str = Field(default="INFO", description="Python logging level")

    # Sentry Configuration
    sentry_dsn: str | None = Field(
        default=None, description="Sentry DSN for error tracking (optional)"
    )
    sentry_traces_sample_rate: float = Field(
        default=1.0, description="Sentry traces sample rate (0.0 to 1.0)"
    )

    # Logfire Configuration
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for observability"
    )

    # Admin token guarding sweep endpoints
    admin_token: str | None = Field(
        default=None, description="Shared secret expected in X-Admin-Token"
    )

    # ==========================================================================
    # Fetch / Sweep Configuration
    # ==========================================================================
    # Defaults are sourced from defaultanswer/constants.py.

    fetch_timeout_seconds: float = Field(
        default=DEFAULT_FETCH_TIMEOUT_SECONDS,
        description="HTTP timeout for the homepage fetch (seconds)",
    )
    page_fetch_timeout_seconds: float = Field(
        default=PAGE_FETCH_TIMEOUT_SECONDS,
        description="HTTP timeout for secondary pages in a multi-page scan (seconds)",
    )
    max_scan_pages: int = Field(
        default=MAX_SCAN_PAGES,
        ge=1,
        description="Maximum pages evaluated in a multi-page scan",
    )
    sweep_call_timeout_seconds: float = Field(
        default=SWEEP_CALL_TIMEOUT_SECONDS,
        description="Timeout for one language model call during a sweep (seconds)",
    )

    @property
    def history_configured(self) -> bool:
        """Whether Supabase persistence is available."""
        return bool(self.supabase_url and self.supabase_service_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
