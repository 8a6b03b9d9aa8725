from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from badge_builder.errors import ConfigurationError, StorageError
from badge_builder.media import s3_storage


def _set_s3_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("AWS_S3_BUCKET", "bucket")
    monkeypatch.setenv("AWS_S3_PREFIX", "/dev/")
    monkeypatch.setenv("AWS_CDN_BASE_URL", "https://cdn.example.com/")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("AWS_DEFAULT_PROFILE", raising=False)


def test_get_s3_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_s3_env(monkeypatch)
    config = s3_storage.get_s3_config()
    assert config.bucket == "bucket"
    assert config.prefix == "dev"
    assert config.cdn_base_url == "https://cdn.example.com"
    assert config.profile_name is None


def test_get_s3_config_requires_https_cdn(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_s3_env(monkeypatch)
    monkeypatch.setenv("AWS_CDN_BASE_URL", "http://cdn.example.com")
    with pytest.raises(ConfigurationError):
        s3_storage.get_s3_config()


def test_get_s3_config_requires_bucket(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_s3_env(monkeypatch)
    monkeypatch.delenv("AWS_S3_BUCKET")
    with pytest.raises(ConfigurationError):
        s3_storage.get_s3_config()


def test_content_type_for_filename() -> None:
    assert s3_storage.content_type_for_filename("a.PNG") == "image/png"
    assert s3_storage.content_type_for_filename("a.jpe") == "image/jpeg"
    assert s3_storage.content_type_for_filename("a.gif") == "image/gif"
    assert s3_storage.content_type_for_filename("a.txt") == "application/octet-stream"


def test_build_media_s3_key_structure() -> None:
    assert s3_storage.build_media_s3_key(7, "abc", "Badge.PNG") == "media/posts/7/abc.png"
    assert s3_storage.build_media_s3_key(7, "abc", "b.jpg", prefix="dev") == "dev/media/posts/7/abc.jpg"


def test_upload_bytes_to_s3_returns_unquoted_etag() -> None:
    fake_s3 = MagicMock()
    fake_s3.put_object.return_value = {"ETag": '"etag"'}

    etag = s3_storage.upload_bytes_to_s3(fake_s3, bucket="b", key="k", data=b"x", content_type="image/png")

    assert etag == "etag"
    kwargs = fake_s3.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "b"
    assert kwargs["ContentType"] == "image/png"


def test_upload_bytes_to_s3_wraps_client_errors() -> None:
    fake_s3 = MagicMock()
    fake_s3.put_object.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")

    with pytest.raises(StorageError):
        s3_storage.upload_bytes_to_s3(fake_s3, bucket="b", key="k", data=b"x", content_type="image/png")
