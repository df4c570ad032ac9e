from dataclasses import dataclass
from typing import Any, AsyncContextManager, Mapping, Protocol

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound", "NoSuchBucket"})
PRECONDITION_CODES = frozenset({"412", "PreconditionFailed", "304", "NotModified"})


@dataclass
class HttpRange:
    """A parsed `Range: bytes=...` header; `end` is inclusive."""

    start: int | None
    end: int | None

    @classmethod
    def parse(cls, header: str) -> "HttpRange":
        if not header.startswith("bytes="):
            raise ValueError(f"Invalid range header: {header}")
        start, end = header[6:].split("-")
        return cls(start=int(start) if start else None, end=int(end) if end else None)

    def apply(self, data: bytes) -> bytes:
        if self.start is None:
            # suffix form, the last `end` bytes
            return data[-self.end :] if self.end else b""
        return data[self.start : self.end + 1 if self.end is not None else len(data)]


class ObjectBody(Protocol):
    async def read(self, amt: int | None = None) -> bytes: ...

    def close(self) -> None: ...


class StorageBackend(Protocol):
    def get_object(
        self,
        bucket: str,
        key: str,
        *,
        range: str | None = None,
        if_match: str | None = None,
        if_none_match: str | None = None,
    ) -> AsyncContextManager[dict[str, Any]]: ...

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        *,
        content_type: str | None = None,
        acl: str | None = None,
        storage_class: str | None = None,
        metadata: Mapping[str, str] | None = None,
        cache_control: str | None = None,
        content_disposition: str | None = None,
        content_encoding: str | None = None,
        content_language: str | None = None,
        checksum_sha1: str | None = None,
        checksum_sha256: str | None = None,
        if_match: str | None = None,
    ) -> dict[str, Any]: ...

    async def head_object(self, bucket: str, key: str) -> dict[str, Any]: ...

    async def delete_object(self, bucket: str, key: str) -> None: ...

    async def list_objects(self, bucket: str, **params: Any) -> dict[str, Any]: ...

    async def presign(self, operation: str, params: dict[str, Any], expires_in: int) -> str: ...
