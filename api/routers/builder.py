"""
Credly Badge Builder endpoints.

- GET  /badge-builder/link            embed link for the builder overlay
- GET  /badge-builder/metabox/{id}    featured-image fragment with the builder link
- POST /badge-builder/save            save callback posted by the embedded widget

All endpoints require authentication; post-scoped endpoints also require that the
caller may edit the post.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Form, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.auth import CurrentUser, can_edit_post
from api.deps import Filters, HttpSession, MediaStoreDep, Settings, SupabaseAdminClient
from badge_builder.badges import SaveBadgeRequest, save_badge
from badge_builder.config import BadgeBuilderSettings
from badge_builder.errors import (
    AuthorizationError,
    BadgeBuilderError,
    ConfigurationError,
    NotFoundError,
    StorageError,
    TransportError,
    ValidationError,
)
from badge_builder.hooks import FilterRegistry
from badge_builder.integrations.credly.client import (
    DEFAULT_HEIGHT,
    DEFAULT_LINK_TEXT,
    DEFAULT_WIDTH,
    EDIT_LINK_TEXT,
    EmbedLink,
    EmbedRequest,
    build_embed_link,
    fetch_temp_token,
)
from badge_builder.media.sideload import validate_image_url
from badge_builder.media.store import BADGE_META_KEY, MediaStore
from badge_builder.metabox import LinkFactory, filter_thumbnail_metabox
from badge_builder.repositories.posts import fetch_post

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/badge-builder", tags=["badge-builder"])

_ERROR_STATUS: list[tuple[type[BadgeBuilderError], int]] = [
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConfigurationError, 503),
    (TransportError, 502),
    (StorageError, 502),
]


# --- Pydantic models ---


class EmbedLinkData(BaseModel):
    url: str
    link_text: str
    width: int
    height: int
    html: str


class LinkResponse(BaseModel):
    success: bool
    data: EmbedLinkData | None = None


class MetaboxData(BaseModel):
    html: str


class MetaboxResponse(BaseModel):
    success: bool
    data: MetaboxData


class SaveBadgeData(BaseModel):
    attachment_id: int
    metabox_html: str


class SaveBadgeResponse(BaseModel):
    success: bool
    data: SaveBadgeData


# --- Helpers ---


def error_response(exc: BadgeBuilderError) -> JSONResponse:
    status_code = next((code for cls, code in _ERROR_STATUS if isinstance(exc, cls)), 500)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "data": {"error": exc.code, "message": str(exc)}},
    )


def make_link_factory(
    settings: BadgeBuilderSettings,
    *,
    session,
    filters: FilterRegistry | None,
) -> LinkFactory:
    """Return a link builder that mints at most one token, on first use."""
    token: str | None = None
    fetched = False

    def factory(request: EmbedRequest) -> EmbedLink | None:
        nonlocal token, fetched
        if not fetched:
            token = fetch_temp_token(
                settings.api_key,
                sdk_url=settings.sdk_url,
                session=session,
                timeout_seconds=settings.request_timeout,
            )
            fetched = True
        return build_embed_link(token, request, sdk_url=settings.sdk_url, filters=filters)

    return factory


def require_editable_post(db, user: dict, post_id: int, settings: BadgeBuilderSettings) -> dict[str, Any]:
    post = fetch_post(db, post_id)
    if post is None:
        raise NotFoundError(f"Post {post_id} not found.")
    if not can_edit_post(user, post, editor_roles=settings.editor_roles):
        raise AuthorizationError(f"User may not edit post {post_id}.")
    return post


def _metabox_html(
    post: dict[str, Any],
    *,
    store: MediaStore,
    settings: BadgeBuilderSettings,
    link_factory: LinkFactory,
) -> str:
    post_id = int(post["id"])
    content = store.render_post_thumbnail_html(store.get_post_thumbnail_id(post_id), post_id)
    return filter_thumbnail_metabox(
        content,
        post,
        store=store,
        link_factory=link_factory,
        achievement_types=settings.achievement_post_types,
    )


# --- Endpoints ---


@router.get("/link", response_model=LinkResponse)
def get_badge_builder_link(
    user: CurrentUser,
    db: SupabaseAdminClient,
    store: MediaStoreDep,
    settings: Settings,
    filters: Filters,
    session: HttpSession,
    post_id: int | None = Query(default=None, gt=0),
    width: int = Query(default=DEFAULT_WIDTH, gt=0),
    height: int = Query(default=DEFAULT_HEIGHT, gt=0),
    link_text: str | None = Query(default=None, max_length=200),
):
    """
    Build the badge builder link. With `post_id`, reopens the post's current badge.

    Returns `{"success": false}` when no token can be minted; the admin UI then omits the link.
    """
    try:
        continue_payload = None
        text = link_text or DEFAULT_LINK_TEXT
        if post_id is not None:
            require_editable_post(db, user, post_id, settings)
            media_id = store.get_post_thumbnail_id(post_id)
            if media_id:
                continue_payload = store.get_media_meta(media_id, BADGE_META_KEY)
                text = link_text or EDIT_LINK_TEXT

        if not settings.api_key:
            logger.warning("Badge builder link requested but CREDLY_API_KEY is not set")
            return {"success": False}

        factory = make_link_factory(settings, session=session, filters=filters)
        link = factory(EmbedRequest(width=width, height=height, continue_payload=continue_payload, link_text=text))
    except BadgeBuilderError as exc:
        logger.warning(f"Badge builder link failed: {exc}")
        return error_response(exc)

    if link is None:
        logger.warning("Badge builder token unavailable; omitting link")
        return {"success": False}
    return {
        "success": True,
        "data": {
            "url": link.url,
            "link_text": link.link_text,
            "width": link.width,
            "height": link.height,
            "html": link.html,
        },
    }


@router.get("/metabox/{post_id}", response_model=MetaboxResponse)
def get_featured_image_metabox(
    post_id: int,
    user: CurrentUser,
    db: SupabaseAdminClient,
    store: MediaStoreDep,
    settings: Settings,
    filters: Filters,
    session: HttpSession,
):
    """Featured-image fragment for a post, including the badge builder link for achievements."""
    try:
        post = require_editable_post(db, user, post_id, settings)
        factory = make_link_factory(settings, session=session, filters=filters)
        html = _metabox_html(post, store=store, settings=settings, link_factory=factory)
    except BadgeBuilderError as exc:
        logger.warning(f"Metabox render failed for post {post_id}: {exc}")
        return error_response(exc)
    return {"success": True, "data": {"html": html}}


@router.post("/save", response_model=SaveBadgeResponse)
def save_badge_callback(
    user: CurrentUser,
    db: SupabaseAdminClient,
    store: MediaStoreDep,
    settings: Settings,
    filters: Filters,
    session: HttpSession,
    post_id: int = Form(..., gt=0),
    image: str = Form(...),
    icon_meta: str | None = Form(default=None),
    all_data: str | None = Form(default=None),
):
    """
    Save callback from the embedded badge builder.

    Sideloads `image` onto the post, sets it as the featured image and stores
    `all_data` / `icon_meta` as attachment meta.
    """
    try:
        post = require_editable_post(db, user, post_id, settings)
        image_url = validate_image_url(image, allowed_hosts=settings.allowed_image_hosts)
        result = save_badge(
            SaveBadgeRequest(post_id=post_id, image_url=image_url, icon_meta=icon_meta, badge_meta=all_data),
            store=store,
            session=session,
            download_timeout=settings.download_timeout,
            max_image_bytes=settings.max_image_bytes,
        )
    except BadgeBuilderError as exc:
        logger.warning(f"Badge save failed for post {post_id}: {exc}")
        return error_response(exc)

    logger.info(f"Saved badge for post {post_id} as media {result.attachment_id}")

    try:
        metabox_html = filter_thumbnail_metabox(
            result.metabox_html,
            post,
            store=store,
            link_factory=make_link_factory(settings, session=session, filters=filters),
            achievement_types=settings.achievement_post_types,
        )
    except StorageError as exc:
        logger.warning(f"Badge builder link omitted from metabox for post {post_id}: {exc}")
        metabox_html = result.metabox_html
    return {
        "success": True,
        "data": {"attachment_id": result.attachment_id, "metabox_html": metabox_html},
    }
