"""
Dependency injection for Supabase, the media store and other shared resources.
"""
from __future__ import annotations

import os
from collections.abc import Iterator
from functools import lru_cache
from typing import Annotated

import requests
from fastapi import Depends, Request
from supabase import Client

from badge_builder.config import BadgeBuilderSettings, load_settings
from badge_builder.db.supabase import create_supabase_admin_client
from badge_builder.errors import ConfigurationError
from badge_builder.hooks import FilterRegistry
from badge_builder.media.store import MediaStore
from badge_builder.repositories.media_objects import SupabaseMediaStore


@lru_cache
def get_settings() -> BadgeBuilderSettings:
    return load_settings()


@lru_cache
def get_supabase_anon_key() -> str:
    key = os.getenv("SUPABASE_ANON_KEY")
    if not key:
        raise ConfigurationError("SUPABASE_ANON_KEY environment variable is not set")
    return key


def get_supabase_admin_client() -> Client:
    """
    Returns a Supabase client using the service role key (bypasses RLS).
    Endpoints must check the caller may edit the post before writing with it.
    """
    return create_supabase_admin_client()


def get_filters(request: Request) -> FilterRegistry:
    """The filter registry created by the app at startup."""
    filters = getattr(request.app.state, "filters", None)
    if filters is None:
        filters = FilterRegistry()
        request.app.state.filters = filters
    return filters


def get_http_session() -> Iterator[requests.Session]:
    session = requests.Session()
    try:
        yield session
    finally:
        session.close()


def get_media_store(
    db: Annotated[Client, Depends(get_supabase_admin_client)],
    filters: Annotated[FilterRegistry, Depends(get_filters)],
) -> MediaStore:
    return SupabaseMediaStore(db, filters=filters)


# Type aliases for dependency injection
Settings = Annotated[BadgeBuilderSettings, Depends(get_settings)]
SupabaseAdminClient = Annotated[Client, Depends(get_supabase_admin_client)]
Filters = Annotated[FilterRegistry, Depends(get_filters)]
HttpSession = Annotated[requests.Session, Depends(get_http_session)]
MediaStoreDep = Annotated[MediaStore, Depends(get_media_store)]
