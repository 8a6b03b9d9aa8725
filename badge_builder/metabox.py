"""
Featured-image metabox fragment and the badge builder link that goes into it.
"""
from __future__ import annotations

import html
from collections.abc import Callable, Mapping
from typing import Any

from badge_builder.hooks import ADMIN_POST_THUMBNAIL_HTML, FilterRegistry
from badge_builder.integrations.credly.client import DEFAULT_LINK_TEXT, EDIT_LINK_TEXT, EmbedLink, EmbedRequest
from badge_builder.media.store import BADGE_META_KEY, MediaStore

LinkFactory = Callable[[EmbedRequest], EmbedLink | None]


def render_post_thumbnail_html(
    post_id: int,
    media: Mapping[str, Any] | None,
    *,
    filters: FilterRegistry | None = None,
) -> str:
    """
    Render the featured-image box: the current image with a remove link, or a set link.

    The result goes through the `admin_post_thumbnail_html` filter with `(post_id,)`.
    """

    post_id = int(post_id)
    if media and media.get("hosted_url"):
        src = html.escape(str(media["hosted_url"]), quote=True)
        alt = html.escape(str(media.get("description") or media.get("file_name") or ""), quote=True)
        media_id = html.escape(str(media.get("id", "")), quote=True)
        content = (
            f'<p class="hide-if-no-js"><a href="#" id="set-post-thumbnail" data-post-id="{post_id}">'
            f'<img src="{src}" alt="{alt}" data-media-id="{media_id}" /></a></p>'
            f'<p class="hide-if-no-js"><a href="#" id="remove-post-thumbnail" data-post-id="{post_id}">'
            "Remove featured image</a></p>"
        )
    else:
        content = (
            f'<p class="hide-if-no-js"><a href="#" id="set-post-thumbnail" data-post-id="{post_id}">'
            "Set featured image</a></p>"
        )

    if filters is not None:
        content = filters.apply_filters(ADMIN_POST_THUMBNAIL_HTML, content, post_id)
    return content


def is_achievement(post: Mapping[str, Any] | None, achievement_types: tuple[str, ...]) -> bool:
    if not post:
        return False
    return str(post.get("post_type") or "").strip().lower() in achievement_types


def filter_thumbnail_metabox(
    content: str,
    post: Mapping[str, Any] | None,
    *,
    store: MediaStore,
    link_factory: LinkFactory,
    achievement_types: tuple[str, ...] = ("achievement",),
) -> str:
    """Append a "Use" or "Edit in" badge builder link for achievement posts."""
    if not is_achievement(post, achievement_types):
        return content

    post_id = int(post["id"])
    media_id = store.get_post_thumbnail_id(post_id)
    if not media_id:
        request = EmbedRequest(link_text=DEFAULT_LINK_TEXT)
    else:
        request = EmbedRequest(
            link_text=EDIT_LINK_TEXT,
            continue_payload=store.get_media_meta(media_id, BADGE_META_KEY),
        )

    link = link_factory(request)
    if link is None:
        return content
    return f"{content}<p>{link.html}</p>"
