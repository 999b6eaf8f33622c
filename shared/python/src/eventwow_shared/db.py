"""
db.py — Supabase client singleton.

Usage:
    from eventwow_shared.db import get_supabase_client

    supabase = get_supabase_client()   # service role key (server-side reads)
"""

from __future__ import annotations

import threading
from typing import Optional

import structlog
from supabase import Client, ClientOptions, create_client

from eventwow_shared.config import settings
from eventwow_shared.errors import ConfigurationError

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Supabase: one client per process (thread-safe via lock)
# ---------------------------------------------------------------------------
_supabase_lock = threading.Lock()
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Return a singleton Supabase client using the service role key.

    Public listings need to read aggregate views that are not exposed through
    row level security, so every read goes through the service role.

    Raises:
        ConfigurationError: SUPABASE_URL or SUPABASE_SERVICE_KEY is not set.

    Returns:
        supabase.Client instance.
    """
    global _supabase_client

    with _supabase_lock:
        if _supabase_client is None:
            missing = [
                name
                for name, value in (
                    ("SUPABASE_URL", settings.supabase_url),
                    ("SUPABASE_SERVICE_KEY", settings.supabase_service_key),
                )
                if not value
            ]
            if missing:
                raise ConfigurationError(
                    "Missing server env vars: " + ", ".join(missing),
                    details={name: False for name in missing},
                )
            _supabase_client = create_client(
                settings.supabase_url,
                settings.supabase_service_key,
                options=ClientOptions(
                    postgrest_client_timeout=settings.store_timeout_seconds,
                    auto_refresh_token=False,
                    persist_session=False,
                ),
            )
            logger.info("supabase_client_created", role="service_role")
        return _supabase_client


def reset_supabase_client() -> None:
    """Reset the singleton client (useful in tests)."""
    global _supabase_client
    with _supabase_lock:
        _supabase_client = None
