from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union, runtime_checkable

import httpx

from s3file.errors import UnsupportedPayloadError


@runtime_checkable
class BlobLike(Protocol):
    """Anything with a content type tag and an awaitable body."""

    @property
    def type(self) -> str: ...

    async def bytes(self) -> bytes: ...


@dataclass(frozen=True)
class Blob:
    """In-memory data tagged with a content type."""

    data: bytes
    type: str = ""

    async def bytes(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class TextPayload:
    text: str


@dataclass(frozen=True)
class BytesPayload:
    data: memoryview


@dataclass(frozen=True)
class RequestPayload:
    request: httpx.Request


@dataclass(frozen=True)
class ResponsePayload:
    response: httpx.Response


@dataclass(frozen=True)
class BlobPayload:
    blob: BlobLike


Payload = Union[TextPayload, BytesPayload, RequestPayload, ResponsePayload, BlobPayload]


@dataclass(frozen=True)
class NormalizedPayload:
    body: bytes
    content_type: str | None


def classify(data: object) -> Payload:
    if isinstance(data, str):
        return TextPayload(data)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return BytesPayload(memoryview(data))
    if isinstance(data, httpx.Request):
        return RequestPayload(data)
    if isinstance(data, httpx.Response):
        return ResponsePayload(data)
    if isinstance(data, BlobLike):
        return BlobPayload(data)
    # any other buffer-protocol object (array.array, numpy arrays, ...)
    try:
        return BytesPayload(memoryview(data))  # type: ignore[arg-type]
    except TypeError:
        raise UnsupportedPayloadError(data) from None


async def normalize(data: object, content_type: str | None = None) -> NormalizedPayload:
    """Turn a write() payload into a body and the content type to store it with.

    An explicit content_type always wins; otherwise request, response and
    blob payloads contribute their own declared type.
    """
    payload = classify(data)
    if isinstance(payload, TextPayload):
        return NormalizedPayload(payload.text.encode("utf-8"), content_type)
    if isinstance(payload, BytesPayload):
        return NormalizedPayload(payload.data.tobytes(), content_type)
    if isinstance(payload, RequestPayload):
        body = await payload.request.aread()
        declared = payload.request.headers.get("content-type")
    elif isinstance(payload, ResponsePayload):
        body = await payload.response.aread()
        declared = payload.response.headers.get("content-type")
    else:
        body = await payload.blob.bytes()
        declared = payload.blob.type
    return NormalizedPayload(bytes(body), content_type or declared or None)
