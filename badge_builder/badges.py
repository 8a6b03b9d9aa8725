"""
Save flow for the badge builder callback.

The embedded widget posts back the finished badge image URL plus two opaque metadata
blobs. `save_badge` turns that into a media object on the post, makes it the featured
image and records the metadata so the badge can be reopened for editing later.
"""
from __future__ import annotations

from dataclasses import dataclass

import requests

from badge_builder.config import DEFAULT_DOWNLOAD_TIMEOUT, DEFAULT_MAX_IMAGE_BYTES
from badge_builder.media.sideload import sideload_image
from badge_builder.media.store import BADGE_META_KEY, ICON_META_KEY, MediaStore

BADGE_DESCRIPTION = "Badge created with Credly Badge Builder"


@dataclass(frozen=True)
class SaveBadgeRequest:
    post_id: int
    image_url: str
    icon_meta: str | None = None
    badge_meta: str | None = None


@dataclass(frozen=True)
class SaveBadgeResult:
    attachment_id: int
    metabox_html: str


def update_badge_meta(
    store: MediaStore,
    attachment_id: int | None,
    badge_meta: str | None = None,
    icon_meta: str | None = None,
) -> list[str]:
    """
    Store badge builder meta on the attachment. Returns the keys written.

    Each value is written only when non-empty, and nothing is written without an id.
    """

    if not attachment_id:
        return []

    written: list[str] = []
    if badge_meta:
        store.update_media_meta(attachment_id, BADGE_META_KEY, badge_meta)
        written.append(BADGE_META_KEY)
    if icon_meta:
        store.update_media_meta(attachment_id, ICON_META_KEY, icon_meta)
        written.append(ICON_META_KEY)
    return written


def save_badge(
    request: SaveBadgeRequest,
    *,
    store: MediaStore,
    session: requests.Session | None = None,
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> SaveBadgeResult:
    attachment_id = sideload_image(
        request.image_url,
        request.post_id,
        store=store,
        description=BADGE_DESCRIPTION,
        session=session,
        timeout_seconds=download_timeout,
        max_bytes=max_image_bytes,
    )

    # Featured image last, so a failed meta write leaves the post as it was.
    update_badge_meta(store, attachment_id, request.badge_meta, request.icon_meta)
    store.set_post_thumbnail(request.post_id, attachment_id)

    metabox_html = store.render_post_thumbnail_html(attachment_id, request.post_id)
    return SaveBadgeResult(attachment_id=attachment_id, metabox_html=metabox_html)
