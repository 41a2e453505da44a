"""
Errors raised by the database and storage layers.

Each carries the HTTP status and the message the client sees; the app turns
them into ``{"error": message}`` responses.
"""

from __future__ import annotations


class ApiError(Exception):
    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DatabaseUnavailable(ApiError):
    """The connection is not established yet, or was dropped."""

    status_code = 503
    default_message = "Database not connected"


class DatabaseOperationFailed(ApiError):
    """An insert, query or stream operation failed."""

    status_code = 500
    default_message = "Database operation failed"


class MissingPayload(ApiError):
    status_code = 400
    default_message = "No file uploaded"


class FileNotFound(ApiError):
    status_code = 404
    default_message = "File not found"
