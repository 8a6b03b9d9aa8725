from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from badge_builder.errors import ConfigurationError

CREDLY_SDK_URL = "https://credly.com/badge-builder/"
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_DOWNLOAD_TIMEOUT = 30.0
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024


def load_env(*, override: bool = False) -> Path | None:
    """Load the first `.env` found next to the repo root or in the working directory."""
    repo_root = Path(__file__).resolve().parents[1]
    for path in (repo_root / ".env", Path.cwd() / ".env"):
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
            return path
    return None


@dataclass(frozen=True)
class BadgeBuilderSettings:
    api_key: str | None
    sdk_url: str = CREDLY_SDK_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    allowed_image_hosts: tuple[str, ...] = ("credly.com",)
    achievement_post_types: tuple[str, ...] = ("achievement",)
    editor_roles: tuple[str, ...] = ("admin", "editor")


def _csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    values = tuple(part.strip().lower() for part in raw.split(",") if part.strip())
    return values or default


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def resolve_api_key(api_key: str | None = None) -> str | None:
    """
    Best-effort API key resolution; returns None when no key is configured.
    """

    resolved = (api_key or os.getenv("CREDLY_API_KEY") or "").strip()
    return resolved or None


def load_settings() -> BadgeBuilderSettings:
    load_env()
    sdk_url = (os.getenv("CREDLY_SDK_URL") or "").strip() or CREDLY_SDK_URL
    if not sdk_url.startswith(("https://", "http://")):
        raise ConfigurationError("CREDLY_SDK_URL must be an absolute http(s) URL")
    return BadgeBuilderSettings(
        api_key=resolve_api_key(),
        sdk_url=sdk_url,
        request_timeout=_float_env("CREDLY_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        download_timeout=_float_env("CREDLY_DOWNLOAD_TIMEOUT", DEFAULT_DOWNLOAD_TIMEOUT),
        max_image_bytes=_int_env("CREDLY_MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES),
        allowed_image_hosts=_csv_env("CREDLY_ALLOWED_IMAGE_HOSTS", ("credly.com",)),
        achievement_post_types=_csv_env("BADGE_BUILDER_ACHIEVEMENT_TYPES", ("achievement",)),
        editor_roles=_csv_env("BADGE_BUILDER_EDITOR_ROLES", ("admin", "editor")),
    )
