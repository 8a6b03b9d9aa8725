from __future__ import annotations

import html
import json
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import requests

from badge_builder.config import CREDLY_SDK_URL, DEFAULT_REQUEST_TIMEOUT
from badge_builder.errors import TransportError
from badge_builder.hooks import RENDER_BADGE_BUILDER_LINK, FilterRegistry

DEFAULT_WIDTH = 960
DEFAULT_HEIGHT = 540
DEFAULT_LINK_TEXT = "Use Badge Builder"
EDIT_LINK_TEXT = "Edit in Badge Builder"


class CredlyClientError(TransportError):
    pass


@dataclass(frozen=True)
class EmbedRequest:
    width: int | str = DEFAULT_WIDTH
    height: int | str = DEFAULT_HEIGHT
    continue_payload: Any = None
    link_text: str = DEFAULT_LINK_TEXT


@dataclass(frozen=True)
class EmbedLink:
    url: str
    link_text: str
    width: int | str
    height: int | str
    html: str


def _sdk_endpoint(sdk_url: str, path: str) -> str:
    return f"{(sdk_url or CREDLY_SDK_URL).rstrip('/')}/{path}"


def request_temp_token(
    api_key: str,
    *,
    sdk_url: str = CREDLY_SDK_URL,
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT,
) -> str:
    """
    Trade a Credly API key for a short-lived badge builder token.

    Raises CredlyClientError on transport failures, non-2xx responses, and bodies
    without a usable `temp_token`. No retries.
    """

    poster = session.post if session is not None else requests.post
    url = _sdk_endpoint(sdk_url, "code")
    try:
        resp = poster(
            url,
            data={"access_token": api_key},
            headers={"accept": "application/json"},
            timeout=timeout_seconds,
        )
    except requests.RequestException as exc:
        raise CredlyClientError(f"Credly token request failed: {exc}") from exc

    if not 200 <= resp.status_code < 300:
        raise CredlyClientError(
            f"Credly token request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        )

    try:
        payload = resp.json()
    except ValueError as exc:
        raise CredlyClientError(
            "Credly returned non-JSON response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc

    if not isinstance(payload, dict):
        raise CredlyClientError("Credly returned unexpected JSON shape (not an object).")

    token = payload.get("temp_token")
    if isinstance(token, int) and not isinstance(token, bool):
        token = str(token)
    if not isinstance(token, str) or not token.strip():
        raise CredlyClientError("Credly response missing temp_token.", status_code=resp.status_code)
    return token.strip()


def fetch_temp_token(
    api_key: str | None,
    *,
    sdk_url: str = CREDLY_SDK_URL,
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT,
) -> str | None:
    """
    Best-effort variant of `request_temp_token`: returns None instead of raising.

    A missing or blank key short-circuits without touching the network.
    """

    key = (api_key or "").strip()
    if not key:
        return None
    try:
        return request_temp_token(key, sdk_url=sdk_url, session=session, timeout_seconds=timeout_seconds)
    except CredlyClientError:
        return None


def _encode_continue(payload: Any) -> str:
    # Matches PHP rawurlencode(json_encode(...)): compact separators, every reserved char escaped.
    return quote(json.dumps(payload, separators=(",", ":")), safe="")


def build_embed_url(
    token: str | None,
    request: EmbedRequest | None = None,
    *,
    sdk_url: str = CREDLY_SDK_URL,
) -> str | None:
    if not token:
        return None
    request = request or EmbedRequest()
    query = "&".join(
        [
            f"continue={_encode_continue(request.continue_payload)}",
            f"width={request.width}",
            f"height={request.height}",
            "TB_iframe=true",
        ]
    )
    return f"{_sdk_endpoint(sdk_url, 'embed/' + quote(token, safe=''))}?{query}"


def build_embed_link(
    token: str | None,
    request: EmbedRequest | None = None,
    *,
    sdk_url: str = CREDLY_SDK_URL,
    filters: FilterRegistry | None = None,
) -> EmbedLink | None:
    """
    Build the thickbox link that opens the badge builder overlay.

    Returns None when there is no token, in which case callers render nothing.
    The anchor markup goes through the `credly_render_badge_builder` filter with
    `(url, width, height)` as extra arguments.
    """

    request = request or EmbedRequest()
    url = build_embed_url(token, request, sdk_url=sdk_url)
    if url is None:
        return None

    width = html.escape(str(request.width), quote=True)
    height = html.escape(str(request.height), quote=True)
    markup = (
        f'<a href="{html.escape(url, quote=True)}" class="thickbox badge-builder-link" '
        f'data-width="{width}" data-height="{height}">{html.escape(request.link_text)}</a>'
    )
    if filters is not None:
        markup = filters.apply_filters(RENDER_BADGE_BUILDER_LINK, markup, url, request.width, request.height)

    return EmbedLink(
        url=url,
        link_text=request.link_text,
        width=request.width,
        height=request.height,
        html=markup,
    )
