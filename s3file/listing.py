from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypedDict

from s3file.storage import StorageBackend


@dataclass(frozen=True)
class ListOptions:
    prefix: str | None = None
    continuation_token: str | None = None
    delimiter: str | None = None
    max_keys: int | None = None
    start_after: str | None = None
    encoding_type: str | None = None
    fetch_owner: bool | None = None

    def to_params(self) -> dict[str, Any]:
        params = {
            "Prefix": self.prefix,
            "ContinuationToken": self.continuation_token,
            "Delimiter": self.delimiter,
            "MaxKeys": self.max_keys,
            "StartAfter": self.start_after,
            "EncodingType": self.encoding_type,
            "FetchOwner": self.fetch_owner,
        }
        return {name: value for name, value in params.items() if value is not None}


class Owner(TypedDict, total=False):
    id: str
    display_name: str


class _RestoreStatusBase(TypedDict):
    is_restore_in_progress: bool


class RestoreStatus(_RestoreStatusBase, total=False):
    restore_expiry_date: str


class CommonPrefix(TypedDict):
    prefix: str


class _ListObjectContentBase(TypedDict):
    key: str
    etag: str


class ListObjectContent(_ListObjectContentBase, total=False):
    size: int
    last_modified: str
    owner: Owner
    storage_class: str
    checksum_algorithm: str
    checksum_type: str
    restore_status: RestoreStatus


class ListResponse(TypedDict, total=False):
    name: str
    prefix: str
    delimiter: str
    continuation_token: str
    next_continuation_token: str
    start_after: str
    encoding_type: str
    max_keys: int
    key_count: int
    is_truncated: bool
    common_prefixes: list[CommonPrefix]
    contents: list[ListObjectContent]


# string fields copied only when non-empty
_TEXT_FIELDS = {
    "Name": "name",
    "Prefix": "prefix",
    "Delimiter": "delimiter",
    "ContinuationToken": "continuation_token",
    "NextContinuationToken": "next_continuation_token",
    "StartAfter": "start_after",
    "EncodingType": "encoding_type",
}
# copied whenever present, zero and False included
_VALUE_FIELDS = {
    "MaxKeys": "max_keys",
    "KeyCount": "key_count",
    "IsTruncated": "is_truncated",
}


def isoformat(value: datetime | str | None) -> str:
    """Render a timestamp as ISO-8601 UTC with milliseconds.

    Empty values become the current time, so a present-but-empty timestamp
    is reported as "now" rather than dropped.
    """
    if not value:
        value = datetime.now(timezone.utc)
    elif isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_content(raw: dict[str, Any]) -> ListObjectContent:
    content: ListObjectContent = {"key": raw.get("Key") or "", "etag": raw.get("ETag") or ""}
    algorithms = raw.get("ChecksumAlgorithm")
    if algorithms:
        content["checksum_algorithm"] = algorithms[0]
    if raw.get("ChecksumType"):
        content["checksum_type"] = raw["ChecksumType"]
    if "LastModified" in raw:
        content["last_modified"] = isoformat(raw["LastModified"])
    if raw.get("Owner"):
        owner: Owner = {}
        if raw["Owner"].get("ID") is not None:
            owner["id"] = raw["Owner"]["ID"]
        if raw["Owner"].get("DisplayName") is not None:
            owner["display_name"] = raw["Owner"]["DisplayName"]
        content["owner"] = owner
    if raw.get("RestoreStatus"):
        restore: RestoreStatus = {
            "is_restore_in_progress": bool(raw["RestoreStatus"].get("IsRestoreInProgress"))
        }
        if raw["RestoreStatus"].get("RestoreExpiryDate"):
            restore["restore_expiry_date"] = isoformat(raw["RestoreStatus"]["RestoreExpiryDate"])
        content["restore_status"] = restore
    if raw.get("Size") is not None:
        content["size"] = int(raw["Size"])
    if raw.get("StorageClass") is not None:
        content["storage_class"] = raw["StorageClass"]
    return content


def normalize_response(raw: dict[str, Any]) -> ListResponse:
    response: ListResponse = {}
    for source, target in _TEXT_FIELDS.items():
        if raw.get(source):
            response[target] = raw[source]  # type: ignore[literal-required]
    for source, target in _VALUE_FIELDS.items():
        if raw.get(source) is not None:
            response[target] = raw[source]  # type: ignore[literal-required]
    if raw.get("CommonPrefixes") is not None:
        response["common_prefixes"] = [
            {"prefix": item.get("Prefix") or ""} for item in raw["CommonPrefixes"]
        ]
    if raw.get("Contents") is not None:
        response["contents"] = [normalize_content(item) for item in raw["Contents"]]
    return response


async def list_objects(
    backend: StorageBackend, bucket: str, options: ListOptions | None = None
) -> ListResponse:
    """Fetch a single page; callers follow next_continuation_token themselves."""
    options = options or ListOptions()
    raw = await backend.list_objects(bucket, **options.to_params())
    return normalize_response(raw)
