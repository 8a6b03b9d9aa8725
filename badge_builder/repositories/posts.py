from __future__ import annotations

from typing import Any

from supabase import Client

from badge_builder.db.supabase import raise_for_response_error
from badge_builder.errors import StorageError

_POST_COLUMNS = "id,post_type,author_id,featured_media_id"


def fetch_post(db: Client, post_id: int) -> dict[str, Any] | None:
    try:
        response = (
            db.schema("core")
            .table("posts")
            .select(_POST_COLUMNS)
            .eq("id", int(post_id))
            .limit(1)
            .execute()
        )
    except Exception as exc:
        raise StorageError(f"Supabase error fetching post {post_id}: {exc}") from exc
    raise_for_response_error(response, f"fetching post {post_id}")

    data = response.data or []
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    return data[0]


def set_featured_media(db: Client, post_id: int, media_id: int) -> None:
    try:
        response = (
            db.schema("core")
            .table("posts")
            .update({"featured_media_id": int(media_id)})
            .eq("id", int(post_id))
            .execute()
        )
    except Exception as exc:
        raise StorageError(f"Supabase error setting featured media on post {post_id}: {exc}") from exc
    raise_for_response_error(response, f"setting featured media on post {post_id}")
    if not response.data:
        raise StorageError(f"Post {post_id} not found while setting featured media.")
