"""
Credly Badge Builder integration client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from badge_builder.integrations.credly.client import (
        CredlyClientError,
        EmbedLink,
        EmbedRequest,
        build_embed_link,
        build_embed_url,
        fetch_temp_token,
        request_temp_token,
    )

__all__ = [
    "CredlyClientError",
    "EmbedLink",
    "EmbedRequest",
    "build_embed_link",
    "build_embed_url",
    "fetch_temp_token",
    "request_temp_token",
]


def __getattr__(name: str):
    if name in __all__:
        from badge_builder.integrations.credly import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
