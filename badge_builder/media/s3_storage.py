from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from badge_builder.errors import ConfigurationError, StorageError

_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".jpe": "image/jpeg",
    ".gif": "image/gif",
    ".png": "image/png",
}


@dataclass(frozen=True)
class S3Config:
    bucket: str
    region: str
    cdn_base_url: str
    prefix: str
    profile_name: str | None


def _require_env(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        raise ConfigurationError(f"Missing required environment variable: {name}")
    return value


def _require_region() -> str:
    region = (os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "").strip()
    if not region:
        raise ConfigurationError("Missing required environment variable: AWS_REGION (or AWS_DEFAULT_REGION)")
    return region


def _validate_cdn_base_url(value: str) -> str:
    base = (value or "").strip()
    if not base.startswith("https://"):
        raise ConfigurationError("AWS_CDN_BASE_URL must start with https://")
    return base.rstrip("/")


def get_s3_config() -> S3Config:
    return S3Config(
        bucket=_require_env("AWS_S3_BUCKET"),
        region=_require_region(),
        cdn_base_url=_validate_cdn_base_url(_require_env("AWS_CDN_BASE_URL")),
        prefix=(os.getenv("AWS_S3_PREFIX") or "").strip().strip("/"),
        profile_name=(os.getenv("AWS_PROFILE") or os.getenv("AWS_DEFAULT_PROFILE") or "").strip() or None,
    )


def get_s3_client(config: S3Config | None = None):
    config = config or get_s3_config()
    if config.profile_name:
        session = boto3.Session(profile_name=config.profile_name, region_name=config.region)
    else:
        session = boto3.Session(region_name=config.region)
    return session.client("s3", region_name=config.region)


def content_type_for_filename(filename: str) -> str:
    _, ext = os.path.splitext(filename or "")
    return _CONTENT_TYPES.get(ext.lower(), "application/octet-stream")


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def build_media_s3_key(post_id: int, sha256: str, filename: str, *, prefix: str = "") -> str:
    """
    Build the S3 key for an uploaded media binary.

    Path: [{prefix}/]media/posts/{post_id}/{sha256}{ext}
    """

    _, ext = os.path.splitext(filename or "")
    segments = [prefix] if prefix else []
    segments += ["media", "posts", str(int(post_id)), f"{sha256}{ext.lower()}"]
    return "/".join(segments)


def build_hosted_url(config: S3Config, hosted_key: str) -> str:
    key = str(hosted_key or "").strip()
    if not key:
        raise StorageError("hosted_key is required to build hosted_url")
    return f"{config.cdn_base_url}/{key.lstrip('/')}"


def upload_bytes_to_s3(
    s3_client,
    *,
    bucket: str,
    key: str,
    data: bytes,
    content_type: str,
) -> str | None:
    """Upload and return the object's ETag (unquoted)."""
    try:
        response = s3_client.put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            CacheControl="public, max-age=31536000, immutable",
        )
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(f"S3 upload failed for {key}: {exc}") from exc
    etag = response.get("ETag")
    return etag.strip('"') if etag else None


def delete_s3_object(s3_client, *, bucket: str, key: str) -> None:
    try:
        s3_client.delete_object(Bucket=bucket, Key=key)
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(f"S3 delete failed for {key}: {exc}") from exc
