"""
Supabase Client
===============
Thin wrapper that provides a configured Supabase client for the
persistence adapters (mood entries and strategy ratings).

Uses the service_role key because the backend writes entries and
ratings on the user's behalf. Returns None when Supabase is not
configured, in which case the app falls back to in-memory storage.
"""

from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

from resilientme.config import Settings, get_settings


@lru_cache
def _cached_client(url: str, key: str) -> Client:
    return create_client(url, key)


def get_supabase_client(settings: Optional[Settings] = None) -> Optional[Client]:
    """Client for the given settings (the process settings by default), one per URL and key."""
    settings = settings or get_settings()
    if not settings.supabase_url:
        return None
    return _cached_client(settings.supabase_url, settings.supabase_service_key)
