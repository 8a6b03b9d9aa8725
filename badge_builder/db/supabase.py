from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from supabase import Client, create_client

from badge_builder.errors import ConfigurationError, StorageError


@lru_cache
def get_supabase_url() -> str:
    url = (os.getenv("SUPABASE_URL") or "").strip()
    if not url:
        raise ConfigurationError("SUPABASE_URL environment variable is not set")
    return url


@lru_cache
def get_supabase_service_key() -> str:
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not key:
        raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY environment variable is not set")
    return key


def create_supabase_admin_client(*, url: str | None = None, service_role_key: str | None = None) -> Client:
    """
    Create a Supabase client using the service role key (bypasses RLS).

    Media and post writes go through this client after the API layer has checked
    that the caller may edit the post.
    """

    return create_client(url or get_supabase_url(), service_role_key or get_supabase_service_key())


def raise_for_response_error(response: Any, context: str) -> None:
    error = getattr(response, "error", None)
    if error:
        raise StorageError(f"Supabase error during {context}: {error}")
