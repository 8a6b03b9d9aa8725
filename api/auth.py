"""
Authentication utilities for FastAPI.

Extracts user information from Supabase JWT tokens and decides whether the caller may
edit a given post.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request
from supabase import create_client

from api.deps import get_supabase_anon_key
from badge_builder.db.supabase import get_supabase_url

logger = logging.getLogger(__name__)


def get_bearer_token(request: Request) -> str | None:
    """
    Extract Bearer token from Authorization header.

    Returns None if no token is present.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _user_role(user: Any) -> str | None:
    app_metadata = getattr(user, "app_metadata", None) or {}
    if isinstance(app_metadata, Mapping) and app_metadata.get("role"):
        return str(app_metadata["role"])
    return getattr(user, "role", None)


async def get_current_user(request: Request) -> dict | None:
    """
    Get the current user from the Supabase JWT token.

    Returns None if no token or invalid token.
    Returns user dict with 'id', 'email', 'role' if valid.
    """
    token = get_bearer_token(request)
    if not token:
        return None

    try:
        client = create_client(get_supabase_url(), get_supabase_anon_key())
        user_response = client.auth.get_user(token)

        if user_response and user_response.user:
            return {
                "id": str(user_response.user.id),
                "email": user_response.user.email,
                "role": _user_role(user_response.user),
            }
        return None
    except Exception as e:
        logger.warning(f"Failed to validate token: {e}")
        return None


async def require_user(request: Request) -> dict:
    """
    Dependency that requires a valid authenticated user.

    Raises 401 if no token or invalid token.
    """
    user = await get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Please provide a valid access token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def can_edit_post(user: Mapping[str, Any], post: Mapping[str, Any], *, editor_roles: tuple[str, ...]) -> bool:
    role = str(user.get("role") or "").strip().lower()
    if role and role in editor_roles:
        return True
    author_id = post.get("author_id")
    return author_id is not None and str(author_id) == str(user.get("id"))


# Type alias for dependency injection
CurrentUser = Annotated[dict, Depends(require_user)]
