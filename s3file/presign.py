from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from s3file.errors import UnsupportedOperationError
from s3file.storage import StorageBackend

DEFAULT_EXPIRES_IN = 3600

OPERATIONS = {
    "GET": "get_object",
    "HEAD": "head_object",
    "PUT": "put_object",
    "DELETE": "delete_object",
}


@dataclass(frozen=True)
class PresignOptions:
    method: str = "GET"
    expires_in: int | None = None
    content_type: str | None = None
    acl: str | None = None


def signing_params(
    bucket: str, key: str, options: PresignOptions, content_type: str | None = None
) -> tuple[str, dict[str, Any]]:
    """Pick the operation to sign for options.method and its parameters.

    Only PUT carries body parameters; content_type is the fallback type used
    when options does not set one.
    """
    method = (options.method or "GET").upper()
    try:
        operation = OPERATIONS[method]
    except KeyError:
        raise UnsupportedOperationError(method) from None
    params: dict[str, Any] = {"Bucket": bucket, "Key": key}
    if method == "PUT":
        type_ = options.content_type or content_type
        if type_:
            params["ContentType"] = type_
        if options.acl:
            params["ACL"] = options.acl
    return operation, params


async def presign(
    backend: StorageBackend,
    bucket: str,
    key: str,
    options: PresignOptions | None = None,
    content_type: str | None = None,
) -> str:
    options = options or PresignOptions()
    operation, params = signing_params(bucket, key, options, content_type)
    expires_in = DEFAULT_EXPIRES_IN if options.expires_in is None else options.expires_in
    if expires_in <= 0:
        raise ValueError("expires_in must be a positive number of seconds")
    return await backend.presign(operation, params, expires_in)
