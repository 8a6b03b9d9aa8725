from __future__ import annotations

from badge_builder import metabox
from badge_builder.hooks import ADMIN_POST_THUMBNAIL_HTML, FilterRegistry
from badge_builder.integrations.credly.client import EmbedRequest, build_embed_link
from badge_builder.media.store import BADGE_META_KEY


def _link_factory(calls: list[EmbedRequest], token: str | None = "tok"):
    def factory(request: EmbedRequest):
        calls.append(request)
        return build_embed_link(token, request)

    return factory


def test_render_post_thumbnail_html_without_media() -> None:
    html = metabox.render_post_thumbnail_html(7, None)
    assert "Set featured image" in html
    assert 'data-post-id="7"' in html


def test_render_post_thumbnail_html_with_media_escapes_values() -> None:
    media = {"id": 12, "hosted_url": "https://cdn.test/a.png?x=1&y=2", "description": 'Badge "one"'}
    html = metabox.render_post_thumbnail_html(7, media)

    assert 'src="https://cdn.test/a.png?x=1&amp;y=2"' in html
    assert 'alt="Badge &quot;one&quot;"' in html
    assert "Remove featured image" in html


def test_render_post_thumbnail_html_runs_filter() -> None:
    filters = FilterRegistry()
    filters.add_filter(ADMIN_POST_THUMBNAIL_HTML, lambda content, post_id: f"{content}<!-- {post_id} -->")
    assert metabox.render_post_thumbnail_html(3, None, filters=filters).endswith("<!-- 3 -->")


def test_filter_thumbnail_metabox_ignores_non_achievements(media_store) -> None:
    calls: list[EmbedRequest] = []
    content = metabox.filter_thumbnail_metabox(
        "<p>box</p>", {"id": 7, "post_type": "page"}, store=media_store, link_factory=_link_factory(calls)
    )
    assert content == "<p>box</p>"
    assert calls == []


def test_filter_thumbnail_metabox_offers_new_badge_without_thumbnail(media_store) -> None:
    calls: list[EmbedRequest] = []
    content = metabox.filter_thumbnail_metabox(
        "<p>box</p>", {"id": 7, "post_type": "achievement"}, store=media_store, link_factory=_link_factory(calls)
    )

    assert content.startswith("<p>box</p><p><a ")
    assert content.endswith(">Use Badge Builder</a></p>")
    assert calls[0].continue_payload is None


def test_filter_thumbnail_metabox_reopens_existing_badge(media_store) -> None:
    media_store.set_post_thumbnail(7, 55)
    media_store.update_media_meta(55, BADGE_META_KEY, '{"shape":"circle"}')
    calls: list[EmbedRequest] = []

    content = metabox.filter_thumbnail_metabox(
        "", {"id": 7, "post_type": "Achievement"}, store=media_store, link_factory=_link_factory(calls)
    )

    assert ">Edit in Badge Builder</a>" in content
    assert calls[0].continue_payload == '{"shape":"circle"}'


def test_filter_thumbnail_metabox_without_token_leaves_content(media_store) -> None:
    content = metabox.filter_thumbnail_metabox(
        "<p>box</p>",
        {"id": 7, "post_type": "achievement"},
        store=media_store,
        link_factory=_link_factory([], token=None),
    )
    assert content == "<p>box</p>"
