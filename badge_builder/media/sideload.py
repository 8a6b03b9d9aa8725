from __future__ import annotations

import os
import re
import tempfile
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit

import requests

from badge_builder.config import DEFAULT_DOWNLOAD_TIMEOUT, DEFAULT_MAX_IMAGE_BYTES
from badge_builder.errors import DownloadError, ImageValidationError, StorageError
from badge_builder.media.store import MediaStore

_IMAGE_FILENAME_RE = re.compile(r"[^?]+\.(jpe?g|jpe|gif|png)\b", re.IGNORECASE)

_DEFAULT_HEADERS = {
    "accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
    "user-agent": "badge-builder-backend/0.1",
}
_CHUNK_SIZE = 64 * 1024


def derive_filename(image_url: str) -> str:
    """
    Return the image file name from a URL, ignoring any query string.

    Only jpg/jpeg/jpe/gif/png are accepted.
    """

    match = _IMAGE_FILENAME_RE.search(image_url or "")
    if not match:
        raise ImageValidationError(f"Image URL has no recognised image extension: {image_url!r}")
    name = PurePosixPath(match.group(0)).name
    if not name or name.startswith("."):
        raise ImageValidationError(f"Unable to derive a file name from: {image_url!r}")
    return name


def _host_allowed(host: str, allowed_hosts: Iterable[str]) -> bool:
    host = host.lower().rstrip(".")
    for allowed in allowed_hosts:
        allowed = allowed.lower().strip().lstrip(".")
        if allowed and (host == allowed or host.endswith("." + allowed)):
            return True
    return False


def validate_image_url(image_url: str, *, allowed_hosts: Iterable[str]) -> str:
    """Require an https URL on an allow-listed host with an image file name."""
    raw = (image_url or "").strip()
    if not raw:
        raise ImageValidationError("Image URL is empty.")
    parts = urlsplit(raw)
    if parts.scheme != "https":
        raise ImageValidationError("Image URL must use https.")
    if not parts.hostname or not _host_allowed(parts.hostname, allowed_hosts):
        raise ImageValidationError(f"Image host is not allowed: {parts.hostname!r}")
    derive_filename(raw)
    return raw


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        pass


@contextmanager
def downloaded_tempfile(
    url: str,
    *,
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_DOWNLOAD_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> Iterator[Path]:
    """
    Download `url` into a temporary file and yield its path.

    Redirects are not followed and bodies over `max_bytes` are rejected. The file is
    removed when the block exits, whatever the outcome.
    """

    fd, name = tempfile.mkstemp(prefix="badge-builder-", suffix=".tmp")
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as handle:
            _stream_to(handle, url, session=session, timeout_seconds=timeout_seconds, max_bytes=max_bytes)
        yield path
    finally:
        _remove_quietly(path)


def _stream_to(
    handle,  # noqa: ANN001
    url: str,
    *,
    session: requests.Session | None,
    timeout_seconds: float,
    max_bytes: int,
) -> None:
    getter = session.get if session is not None else requests.get
    written = 0
    try:
        with getter(
            url,
            headers=_DEFAULT_HEADERS,
            timeout=timeout_seconds,
            stream=True,
            allow_redirects=False,
        ) as resp:
            # The URL was checked against the host allowlist; a redirect could leave it.
            if 300 <= resp.status_code < 400:
                raise DownloadError(
                    f"Image download was redirected (HTTP {resp.status_code}).",
                    status_code=resp.status_code,
                )
            if not 200 <= resp.status_code < 300:
                raise DownloadError(
                    f"Image download failed with HTTP {resp.status_code}.",
                    status_code=resp.status_code,
                )
            for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                if not chunk:
                    continue
                written += len(chunk)
                if written > max_bytes:
                    raise DownloadError(f"Image is larger than {max_bytes} bytes.")
                handle.write(chunk)
    except requests.RequestException as exc:
        raise DownloadError(f"Image download failed: {exc}") from exc
    if not written:
        raise DownloadError("Empty image response")


def sideload_image(
    image_url: str,
    post_id: int,
    *,
    store: MediaStore,
    description: str | None = None,
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_DOWNLOAD_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> int:
    """
    Download an image and hand it to the media store for `post_id`.

    Returns the new media object id. Raises ImageValidationError, DownloadError or
    StorageError; the temporary download never outlives this call.
    """

    filename = derive_filename(image_url)
    with downloaded_tempfile(
        image_url, session=session, timeout_seconds=timeout_seconds, max_bytes=max_bytes
    ) as tmp_path:
        media_id = store.handle_sideload(tmp_path, filename=filename, post_id=post_id, description=description)
    if not isinstance(media_id, int) or isinstance(media_id, bool) or media_id <= 0:
        raise StorageError(f"Media store returned an invalid id: {media_id!r}")
    return media_id
