"""Supabase client initialization."""

from supabase import Client, create_client

from defaultanswer.config import get_settings


def get_supabase_client() -> Client:
    """
    Get Supabase client instance.

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_SERVICE_KEY is not set
    """
    settings = get_settings()
    if not settings.history_configured:
        raise ValueError(
            "Supabase is not configured. Set SUPABASE_URL and SUPABASE_SERVICE_KEY."
        )
    return create_client(settings.supabase_url, settings.supabase_service_key)
