from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

from s3file.errors import BackendError, NotFoundError
from s3file.storage import StorageBackend


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HttpMetadata:
    content_type: str | None = None
    content_language: str | None = None
    content_disposition: str | None = None
    content_encoding: str | None = None
    cache_control: str | None = None


@dataclass(frozen=True)
class Stats:
    type: str = ""
    etag: str = ""
    size: int = 0
    last_modified: datetime = field(default_factory=_now)
    version: str = ""
    storage_class: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    http_metadata: HttpMetadata = field(default_factory=HttpMetadata)

    @classmethod
    def from_head(cls, head: dict[str, Any]) -> Stats:
        return cls(
            type=head.get("ContentType") or "",
            etag=head.get("ETag") or "",
            size=int(head.get("ContentLength") or 0),
            last_modified=head.get("LastModified") or _now(),
            version=head.get("VersionId") or "",
            storage_class=head.get("StorageClass") or "",
            metadata=dict(head.get("Metadata") or {}),
            http_metadata=HttpMetadata(
                content_type=head.get("ContentType"),
                content_language=head.get("ContentLanguage"),
                content_disposition=head.get("ContentDisposition"),
                content_encoding=head.get("ContentEncoding"),
                cache_control=head.get("CacheControl"),
            ),
        )


@dataclass(frozen=True)
class Found:
    head: dict[str, Any]


@dataclass(frozen=True)
class NotFound:
    error: NotFoundError


@dataclass(frozen=True)
class Failed:
    error: BackendError


ProbeResult = Union[Found, NotFound, Failed]


async def probe(backend: StorageBackend, bucket: str, key: str) -> ProbeResult:
    try:
        head = await backend.head_object(bucket, key)
    except NotFoundError as exc:
        return NotFound(exc)
    except BackendError as exc:
        return Failed(exc)
    return Found(head)


async def exists(backend: StorageBackend, bucket: str, key: str) -> bool:
    result = await probe(backend, bucket, key)
    if isinstance(result, Failed):
        raise result.error
    return isinstance(result, Found)


async def stat(backend: StorageBackend, bucket: str, key: str) -> Stats:
    result = await probe(backend, bucket, key)
    if isinstance(result, Found):
        return Stats.from_head(result.head)
    raise result.error
