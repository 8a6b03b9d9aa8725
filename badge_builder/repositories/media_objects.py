from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from supabase import Client

from badge_builder.db.supabase import raise_for_response_error
from badge_builder.errors import StorageError
from badge_builder.hooks import FilterRegistry
from badge_builder.media import s3_storage
from badge_builder.metabox import render_post_thumbnail_html
from badge_builder.repositories.posts import fetch_post, set_featured_media

logger = logging.getLogger(__name__)


def _first_row(response: Any) -> dict[str, Any] | None:
    data = getattr(response, "data", None) or []
    if isinstance(data, dict):
        return data
    if isinstance(data, list) and data and isinstance(data[0], dict):
        return data[0]
    return None


def fetch_media_object(db: Client, media_id: int) -> dict[str, Any] | None:
    try:
        response = (
            db.schema("core")
            .table("media_objects")
            .select("*")
            .eq("id", int(media_id))
            .limit(1)
            .execute()
        )
    except Exception as exc:
        raise StorageError(f"Supabase error fetching media object {media_id}: {exc}") from exc
    raise_for_response_error(response, f"fetching media object {media_id}")
    return _first_row(response)


def insert_media_object(db: Client, row: dict[str, Any]) -> dict[str, Any]:
    try:
        response = db.schema("core").table("media_objects").insert(row).execute()
    except Exception as exc:
        raise StorageError(f"Supabase error inserting media object: {exc}") from exc
    raise_for_response_error(response, "inserting media object")
    inserted = _first_row(response)
    if not inserted or not inserted.get("id"):
        raise StorageError("Supabase insert into core.media_objects returned no row.")
    return inserted


def upsert_media_meta(db: Client, media_id: int, key: str, value: str) -> None:
    try:
        response = (
            db.schema("core")
            .table("media_meta")
            .upsert(
                {"media_id": int(media_id), "meta_key": key, "meta_value": value},
                on_conflict="media_id,meta_key",
            )
            .execute()
        )
    except Exception as exc:
        raise StorageError(f"Supabase error writing {key} for media {media_id}: {exc}") from exc
    raise_for_response_error(response, f"writing {key} for media {media_id}")


def fetch_media_meta(db: Client, media_id: int, key: str) -> str | None:
    try:
        response = (
            db.schema("core")
            .table("media_meta")
            .select("meta_value")
            .eq("media_id", int(media_id))
            .eq("meta_key", key)
            .limit(1)
            .execute()
        )
    except Exception as exc:
        raise StorageError(f"Supabase error reading {key} for media {media_id}: {exc}") from exc
    raise_for_response_error(response, f"reading {key} for media {media_id}")
    row = _first_row(response)
    return row.get("meta_value") if row else None


class SupabaseMediaStore:
    """
    Media store backed by S3 (binaries) and Supabase (`core.media_objects`, `core.media_meta`,
    `core.posts.featured_media_id`).
    """

    def __init__(
        self,
        db: Client,
        *,
        s3_client=None,
        s3_config: s3_storage.S3Config | None = None,
        filters: FilterRegistry | None = None,
    ) -> None:
        self.db = db
        self._s3_client = s3_client
        self._s3_config = s3_config
        self.filters = filters

    @property
    def s3_config(self) -> s3_storage.S3Config:
        if self._s3_config is None:
            self._s3_config = s3_storage.get_s3_config()
        return self._s3_config

    @property
    def s3_client(self):
        if self._s3_client is None:
            self._s3_client = s3_storage.get_s3_client(self.s3_config)
        return self._s3_client

    def handle_sideload(self, path: Path, *, filename: str, post_id: int, description: str | None = None) -> int:
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise StorageError(f"Unable to read downloaded file {path}: {exc}") from exc
        if not data:
            raise StorageError("Downloaded file is empty.")

        config = self.s3_config
        sha256 = s3_storage.sha256_bytes(data)
        content_type = s3_storage.content_type_for_filename(filename)
        key = s3_storage.build_media_s3_key(post_id, sha256, filename, prefix=config.prefix)
        etag = s3_storage.upload_bytes_to_s3(
            self.s3_client,
            bucket=config.bucket,
            key=key,
            data=data,
            content_type=content_type,
        )

        row = {
            "post_id": int(post_id),
            "file_name": filename,
            "content_type": content_type,
            "description": description,
            "hosted_key": key,
            "hosted_url": s3_storage.build_hosted_url(config, key),
            "hosted_sha256": sha256,
            "hosted_bytes": len(data),
            "hosted_etag": etag,
        }
        try:
            inserted = insert_media_object(self.db, row)
        except StorageError:
            # Same bytes may already back another media object; only drop our upload when it is unreferenced.
            if not self._key_referenced(key):
                try:
                    s3_storage.delete_s3_object(self.s3_client, bucket=config.bucket, key=key)
                except StorageError as cleanup_exc:
                    logger.warning(f"Failed to remove orphaned S3 object {key}: {cleanup_exc}")
            raise
        return int(inserted["id"])

    def _key_referenced(self, key: str) -> bool:
        try:
            response = self.db.schema("core").table("media_objects").select("id").eq("hosted_key", key).limit(1).execute()
        except Exception:
            return True
        return bool(getattr(response, "data", None))

    def update_media_meta(self, media_id: int, key: str, value: str) -> None:
        upsert_media_meta(self.db, media_id, key, value)

    def get_media_meta(self, media_id: int, key: str) -> str | None:
        return fetch_media_meta(self.db, media_id, key)

    def set_post_thumbnail(self, post_id: int, media_id: int) -> None:
        set_featured_media(self.db, post_id, media_id)

    def get_post_thumbnail_id(self, post_id: int) -> int | None:
        post = fetch_post(self.db, post_id)
        if not post:
            return None
        media_id = post.get("featured_media_id")
        return int(media_id) if media_id else None

    def render_post_thumbnail_html(self, media_id: int | None, post_id: int) -> str:
        media = fetch_media_object(self.db, media_id) if media_id else None
        return render_post_thumbnail_html(post_id, media, filters=self.filters)
