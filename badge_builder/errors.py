from __future__ import annotations


class BadgeBuilderError(RuntimeError):
    """Base class for all badge builder failures."""

    code = "badge_builder_error"


class ConfigurationError(BadgeBuilderError):
    code = "configuration_error"


class TransportError(BadgeBuilderError):
    """An outbound HTTP call failed, timed out, or returned something unusable."""

    code = "transport_error"

    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


class DownloadError(TransportError):
    code = "download_error"


class ValidationError(BadgeBuilderError):
    code = "validation_error"


class ImageValidationError(ValidationError):
    code = "invalid_image"


class StorageError(BadgeBuilderError):
    """The media store rejected an upload or a metadata write."""

    code = "storage_error"


class AuthorizationError(BadgeBuilderError):
    code = "forbidden"


class NotFoundError(BadgeBuilderError):
    code = "not_found"
