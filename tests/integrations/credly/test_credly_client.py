from __future__ import annotations

from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from badge_builder.hooks import RENDER_BADGE_BUILDER_LINK, FilterRegistry
from badge_builder.integrations.credly import client as credly


def _response(*, status_code: int = 200, json_data=None, text: str = "", json_error: bool = False) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = json_data
    return resp


@pytest.mark.parametrize("api_key", [None, "", "   "])
def test_fetch_temp_token_without_key_makes_no_request(api_key) -> None:
    session = MagicMock()
    assert credly.fetch_temp_token(api_key, session=session) is None
    session.post.assert_not_called()


def test_fetch_temp_token_posts_key_to_code_endpoint() -> None:
    session = MagicMock()
    session.post.return_value = _response(json_data={"temp_token": "abc123"})

    token = credly.fetch_temp_token("secret-key", sdk_url="https://vendor.test/badge-builder/", session=session)

    assert token == "abc123"
    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args[0] == "https://vendor.test/badge-builder/code"
    assert kwargs["data"] == {"access_token": "secret-key"}
    assert kwargs["timeout"] == credly.DEFAULT_REQUEST_TIMEOUT


def test_fetch_temp_token_returns_none_on_non_json_body() -> None:
    session = MagicMock()
    session.post.return_value = _response(text="<html>oops</html>", json_error=True)
    assert credly.fetch_temp_token("key", session=session) is None


@pytest.mark.parametrize(
    "payload",
    [{}, {"temp_token": ""}, {"temp_token": None}, {"temp_token": True}, {"temp_token": False}, ["abc"], "abc"],
)
def test_fetch_temp_token_returns_none_without_temp_token(payload) -> None:
    session = MagicMock()
    session.post.return_value = _response(json_data=payload)
    assert credly.fetch_temp_token("key", session=session) is None


def test_fetch_temp_token_returns_none_on_transport_error() -> None:
    session = MagicMock()
    session.post.side_effect = requests.Timeout("timed out")
    assert credly.fetch_temp_token("key", session=session) is None
    assert session.post.call_count == 1


def test_request_temp_token_accepts_numeric_token() -> None:
    session = MagicMock()
    session.post.return_value = _response(json_data={"temp_token": 12345})
    assert credly.request_temp_token("key", session=session) == "12345"


def test_request_temp_token_without_session_uses_one_shot_post(monkeypatch: pytest.MonkeyPatch) -> None:
    post = MagicMock(return_value=_response(json_data={"temp_token": "abc"}))
    session_cls = MagicMock()
    monkeypatch.setattr(credly.requests, "post", post)
    monkeypatch.setattr(credly.requests, "Session", session_cls)

    assert credly.request_temp_token("key", timeout_seconds=4) == "abc"

    post.assert_called_once()
    assert post.call_args.kwargs["timeout"] == 4
    session_cls.assert_not_called()


def test_request_temp_token_reports_http_status() -> None:
    session = MagicMock()
    session.post.return_value = _response(status_code=401, text="bad key")

    with pytest.raises(credly.CredlyClientError) as excinfo:
        credly.request_temp_token("key", session=session)

    assert excinfo.value.status_code == 401
    assert excinfo.value.body_snippet == "bad key"


def test_build_embed_url_shape() -> None:
    url = credly.build_embed_url(
        "abc123",
        credly.EmbedRequest(width=800, height=450, continue_payload={"id": 7}),
    )
    parts = urlsplit(url)

    assert parts.path.endswith("/embed/abc123")
    assert "width=800&height=450&TB_iframe=true" in parts.query
    assert "continue=%7B%22id%22%3A7%7D" in parts.query
    assert parse_qs(parts.query)["continue"] == ['{"id":7}']


def test_build_embed_url_defaults_and_null_continue() -> None:
    url = credly.build_embed_url("tok", sdk_url="https://vendor.test/badge-builder")
    assert url == "https://vendor.test/badge-builder/embed/tok?continue=null&width=960&height=540&TB_iframe=true"


@pytest.mark.parametrize("token", [None, ""])
def test_build_embed_link_without_token_returns_none(token) -> None:
    request = credly.EmbedRequest(width=1, height=2, continue_payload={"x": 1}, link_text="Go")
    assert credly.build_embed_link(token, request) is None
    assert credly.build_embed_url(token, request) is None


def test_build_embed_link_markup_defaults() -> None:
    link = credly.build_embed_link("tok")

    assert link is not None
    assert link.link_text == "Use Badge Builder"
    assert link.width == 960
    assert link.height == 540
    assert link.html.startswith('<a href="https://credly.com/badge-builder/embed/tok?continue=null&amp;width=960')
    assert 'class="thickbox badge-builder-link"' in link.html
    assert 'data-width="960" data-height="540"' in link.html
    assert link.html.endswith(">Use Badge Builder</a>")


def test_build_embed_link_escapes_link_text() -> None:
    link = credly.build_embed_link("tok", credly.EmbedRequest(link_text="<b>Badge</b>"))
    assert "&lt;b&gt;Badge&lt;/b&gt;</a>" in link.html


def test_build_embed_link_passes_markup_through_filter() -> None:
    filters = FilterRegistry()
    seen = {}

    def wrap(markup, url, width, height):  # noqa: ANN001
        seen.update(url=url, width=width, height=height)
        return f"<span>{markup}</span>"

    filters.add_filter(RENDER_BADGE_BUILDER_LINK, wrap)
    link = credly.build_embed_link("tok", credly.EmbedRequest(width=640, height=480), filters=filters)

    assert link.html.startswith("<span><a ")
    assert seen == {"url": link.url, "width": 640, "height": 480}
