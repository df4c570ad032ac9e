"""Errors raised by s3file."""

from __future__ import annotations


class S3FileError(Exception):
    """Base class for every error raised by this package."""


class BackendError(S3FileError):
    """Raised when the storage service or its transport fails."""

    def __init__(self, key: str | None, message: str, code: str | None = None):
        self.key = key
        self.code = code
        super().__init__(message)


class NotFoundError(BackendError):
    """Raised when the object (or bucket) does not exist."""

    def __init__(self, key: str | None, code: str | None = None):
        super().__init__(key, f"Object '{key}' not found", code)


class PreconditionFailedError(BackendError):
    """Raised when a conditional read does not match the stored object."""

    def __init__(self, key: str | None, code: str | None = None):
        super().__init__(key, f"Precondition failed for object '{key}'", code)


class UnsupportedPayloadError(S3FileError, TypeError):
    """Raised when write() is given data it cannot turn into a body."""

    def __init__(self, payload: object):
        self.payload_type = type(payload).__name__
        super().__init__(f"Unsupported data type: {self.payload_type}")


class UnsupportedOperationError(S3FileError, ValueError):
    """Raised when presign() is asked for a method it cannot sign."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unsupported method: {method}")
