from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, AsyncContextManager, overload

from s3file import probe as stat_probe
from s3file.options import Options
from s3file.payload import normalize
from s3file.presign import PresignOptions, presign
from s3file.range import ByteRange, compose, parse_slice_args, tail_of
from s3file.storage import StorageBackend
from s3file.storage.s3 import S3Storage
from s3file.stream import DEFAULT_CHUNK_SIZE, ObjectStream, Opener, read_all

logger = logging.getLogger(__name__)


def _checksum(value: str | bytes | None) -> str | None:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(value).decode()
    return value


@dataclass(frozen=True)
class Conditional:
    etag_matches: str | None = None
    etag_does_not_match: str | None = None


@dataclass(frozen=True)
class ObjectReference:
    """An immutable handle on one object, or a byte window of it.

    Creating or slicing a reference does no I/O; every operation is its own
    request against the backend. Two references are equal when their name,
    options, range and conditions are, whatever backend they use.
    """

    name: str
    options: Options = field(default_factory=Options)
    range: ByteRange | None = None
    only_if: Conditional | None = None
    backend: StorageBackend = field(default=None, compare=False, repr=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("An object name is required")
        if self.backend is None:
            object.__setattr__(self, "backend", S3Storage.from_options(self.options))

    @property
    def bucket(self) -> str:
        return self.options.require_bucket()

    @property
    def type(self) -> str:
        return self.options.content_type or ""

    @overload
    def slice(self, content_type: str, /) -> ObjectReference: ...

    @overload
    def slice(self, begin: int, content_type: str, /) -> ObjectReference: ...

    @overload
    def slice(
        self, begin: int | None = None, end: int | None = None, content_type: str | None = None, /
    ) -> ObjectReference: ...

    def slice(self, begin_or_type=None, end_or_type=None, content_type=None, /):  # type: ignore[no-untyped-def]
        begin, end, type_ = parse_slice_args(begin_or_type, end_or_type, content_type)
        options = self.options
        if type_ is not None:
            options = options.merge(Options(content_type=type_))
        return replace(self, options=options, range=compose(self.range, begin, end))

    def tail(self, length: int) -> ObjectReference:
        """The last `length` bytes of this reference's window."""
        return replace(self, range=tail_of(self.range, length))

    def when(
        self, *, etag_matches: str | None = None, etag_does_not_match: str | None = None
    ) -> ObjectReference:
        """Make reads conditional on the stored object's ETag."""
        return replace(
            self,
            only_if=Conditional(etag_matches=etag_matches, etag_does_not_match=etag_does_not_match),
        )

    def _get(self) -> AsyncContextManager[dict[str, Any]]:
        only_if = self.only_if or Conditional()
        return self.backend.get_object(
            self.bucket,
            self.name,
            range=self.range.header() if self.range is not None else None,
            if_match=only_if.etag_matches,
            if_none_match=only_if.etag_does_not_match,
        )

    def _opener(self) -> Opener | None:
        # an empty window is answered locally
        if self.range is not None and self.range.is_empty:
            return None
        return self._get

    def stream(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> ObjectStream:
        return ObjectStream(self._opener(), chunk_size)

    @property
    def readable(self) -> ObjectStream:
        return self.stream()

    async def array_buffer(self) -> bytearray:
        return await read_all(self._opener())

    async def bytes(self) -> bytes:
        return bytes(await self.array_buffer())

    async def text(self, encoding: str = "utf-8") -> str:
        return (await self.array_buffer()).decode(encoding)

    async def json(self) -> Any:
        return json.loads(await self.array_buffer())

    async def write(
        self,
        data: object,
        options: Options | None = None,
        *,
        sha1: str | bytes | None = None,
        sha256: str | bytes | None = None,
    ) -> int:
        """Upload data as the whole object and return the number of bytes sent.

        The reference's range does not apply to writes. Per-call options may
        describe the object (type, ACL, metadata, HTTP headers) but cannot
        move it: bucket and credentials come from the reference. Checksums
        are base64 strings or raw digests, and an `etag_matches` condition
        set with when() makes the write conditional.
        """
        if options is not None and options.location_fields():
            raise ValueError(
                "write() options cannot set " + ", ".join(options.location_fields())
            )
        merged = self.options.merge(options)
        payload = await normalize(data, merged.content_type)
        logger.debug("writing %d bytes to %s/%s", len(payload.body), self.bucket, self.name)
        await self.backend.put_object(
            self.bucket,
            self.name,
            payload.body,
            content_type=payload.content_type,
            acl=merged.acl,
            storage_class=merged.storage_class,
            metadata=merged.metadata,
            cache_control=merged.cache_control,
            content_disposition=merged.content_disposition,
            content_encoding=merged.content_encoding,
            content_language=merged.content_language,
            checksum_sha1=_checksum(sha1),
            checksum_sha256=_checksum(sha256),
            if_match=self.only_if.etag_matches if self.only_if is not None else None,
        )
        return len(payload.body)

    async def delete(self) -> None:
        await self.backend.delete_object(self.bucket, self.name)

    async def unlink(self) -> None:
        await self.delete()

    async def probe(self) -> stat_probe.ProbeResult:
        return await stat_probe.probe(self.backend, self.bucket, self.name)

    async def exists(self) -> bool:
        return await stat_probe.exists(self.backend, self.bucket, self.name)

    async def stat(self) -> stat_probe.Stats:
        return await stat_probe.stat(self.backend, self.bucket, self.name)

    async def size(self) -> int:
        return (await self.stat()).size

    async def presign(self, options: PresignOptions | None = None) -> str:
        return await presign(
            self.backend, self.bucket, self.name, options, self.options.content_type
        )
