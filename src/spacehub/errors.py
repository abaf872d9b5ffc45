"""Error taxonomy shared by clients, repositories and the HTTP layer.

Every error carries a stable ``code`` and the HTTP status the API should use
when it surfaces to a consumer.
"""

from __future__ import annotations


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamError(AppError):
    """Upstream unreachable or returned a non-success status."""

    code = "UPSTREAM_API_ERROR"
    status_code = 502

    def __init__(self, message: str, *, api_name: str | None = None, http_status: int | None = None) -> None:
        super().__init__(message)
        self.api_name = api_name
        self.http_status = http_status


class DeserializationError(AppError):
    code = "DESERIALIZATION_ERROR"
    status_code = 502


class StorageError(AppError):
    code = "DB_ERROR"
    status_code = 500


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404


class ConfigError(AppError):
    code = "CONFIG_ERROR"
    status_code = 500


class UnknownSourceError(NotFoundError):
    code = "UNKNOWN_SOURCE"
