from __future__ import annotations

from pathlib import Path
from typing import Protocol

BADGE_META_KEY = "_credly_badge_meta"
ICON_META_KEY = "_credly_icon_meta"


class MediaStore(Protocol):
    """
    The host operations the badge builder needs, and nothing more.

    Implementations raise `badge_builder.errors.StorageError` when a write is rejected.
    """

    def handle_sideload(self, path: Path, *, filename: str, post_id: int, description: str | None = None) -> int:
        """Store the file at `path` as a media object owned by `post_id`; return its id."""
        ...

    def update_media_meta(self, media_id: int, key: str, value: str) -> None: ...

    def get_media_meta(self, media_id: int, key: str) -> str | None: ...

    def set_post_thumbnail(self, post_id: int, media_id: int) -> None: ...

    def get_post_thumbnail_id(self, post_id: int) -> int | None: ...

    def render_post_thumbnail_html(self, media_id: int | None, post_id: int) -> str: ...
