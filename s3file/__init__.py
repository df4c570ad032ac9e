"""File-like references to objects in S3-compatible storage."""

from s3file.client import (
    Client,
    delete,
    exists,
    file,
    list,
    presign,
    size,
    stat,
    unlink,
    write,
)
from s3file.errors import (
    BackendError,
    NotFoundError,
    PreconditionFailedError,
    S3FileError,
    UnsupportedOperationError,
    UnsupportedPayloadError,
)
from s3file.file import Conditional, ObjectReference
from s3file.listing import ListObjectContent, ListOptions, ListResponse
from s3file.options import Credentials, Options
from s3file.payload import Blob
from s3file.presign import DEFAULT_EXPIRES_IN, PresignOptions
from s3file.probe import Failed, Found, HttpMetadata, NotFound, ProbeResult, Stats
from s3file.range import ByteRange
from s3file.stream import ObjectStream

__all__ = [
    "BackendError",
    "Blob",
    "ByteRange",
    "Client",
    "Conditional",
    "Credentials",
    "DEFAULT_EXPIRES_IN",
    "Failed",
    "Found",
    "HttpMetadata",
    "ListObjectContent",
    "ListOptions",
    "ListResponse",
    "NotFound",
    "NotFoundError",
    "ObjectReference",
    "ObjectStream",
    "Options",
    "PreconditionFailedError",
    "PresignOptions",
    "ProbeResult",
    "S3FileError",
    "Stats",
    "UnsupportedOperationError",
    "UnsupportedPayloadError",
    "delete",
    "exists",
    "file",
    "list",
    "presign",
    "size",
    "stat",
    "unlink",
    "write",
]
