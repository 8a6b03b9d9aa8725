from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from badge_builder.errors import StorageError


class FakeMediaStore:
    """In-memory media store recording every write."""

    def __init__(self) -> None:
        self.media: dict[int, dict] = {}
        self.meta: dict[int, dict[str, str]] = {}
        self.featured: dict[int, int] = {}
        self.meta_writes: list[tuple[int, str, str]] = []
        self.reject_uploads = False
        self._next_id = 100

    def handle_sideload(self, path: Path, *, filename: str, post_id: int, description: str | None = None) -> int:
        if self.reject_uploads:
            raise StorageError("upload rejected")
        self._next_id += 1
        self.media[self._next_id] = {
            "id": self._next_id,
            "post_id": post_id,
            "file_name": filename,
            "description": description,
            "data": Path(path).read_bytes(),
        }
        return self._next_id

    def update_media_meta(self, media_id: int, key: str, value: str) -> None:
        self.meta.setdefault(media_id, {})[key] = value
        self.meta_writes.append((media_id, key, value))

    def get_media_meta(self, media_id: int, key: str) -> str | None:
        return self.meta.get(media_id, {}).get(key)

    def set_post_thumbnail(self, post_id: int, media_id: int) -> None:
        self.featured[post_id] = media_id

    def get_post_thumbnail_id(self, post_id: int) -> int | None:
        return self.featured.get(post_id)

    def render_post_thumbnail_html(self, media_id: int | None, post_id: int) -> str:
        if media_id:
            return f'<img data-media-id="{media_id}" data-post-id="{post_id}" />'
        return f'<a data-post-id="{post_id}">Set featured image</a>'


def make_download_session(data: bytes = b"badge-png") -> MagicMock:
    resp = MagicMock()
    resp.status_code = 200
    resp.iter_content.return_value = [data]
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    session = MagicMock()
    session.get.return_value = resp
    return session


@pytest.fixture
def media_store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture
def download_session() -> MagicMock:
    return make_download_session()
