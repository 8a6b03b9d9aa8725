"""
Repository layer for DB access patterns.
"""

from badge_builder.repositories.media_objects import SupabaseMediaStore, fetch_media_object
from badge_builder.repositories.posts import fetch_post, set_featured_media

__all__ = [
    "SupabaseMediaStore",
    "fetch_media_object",
    "fetch_post",
    "set_featured_media",
]
