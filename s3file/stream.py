from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Any, AsyncContextManager, Callable

from s3file.storage import ObjectBody

DEFAULT_CHUNK_SIZE = 64 * 1024

Opener = Callable[[], AsyncContextManager[dict[str, Any]]]


class ObjectStream:
    """Forward-only async iterator over the chunks of one GET response.

    Nothing is requested until the first chunk is pulled, so errors from the
    request surface from `async for`, not from the call that created the
    stream. The iterator is single-use and single-consumer; closing it (or
    exhausting it) releases the response body and its connection.
    """

    def __init__(self, opener: Opener | None, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._opener = opener
        self._chunk_size = chunk_size
        self._stack = AsyncExitStack()
        self._body: ObjectBody | None = None
        self._started = False
        self._closed = False
        self._pulling = False

    def __aiter__(self) -> ObjectStream:
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        if self._pulling:
            raise RuntimeError("ObjectStream does not support concurrent reads")
        self._pulling = True
        try:
            chunk = await self._pull()
        except BaseException:
            await self.aclose()
            raise
        finally:
            self._pulling = False
        if not chunk:
            await self.aclose()
            raise StopAsyncIteration
        return chunk

    async def _pull(self) -> bytes:
        if not self._started:
            self._started = True
            if self._opener is None:
                return b""
            response = await self._stack.enter_async_context(self._opener())
            self._body = response.get("Body")
        if self._body is None:
            return b""
        return bytes(await self._body.read(self._chunk_size))

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._body = None
        await self._stack.aclose()

    async def __aenter__(self) -> ObjectStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def read_all(opener: Opener | None) -> bytearray:
    """Drain a whole GET response into a buffer owned by the caller."""
    if opener is None:
        return bytearray()
    async with opener() as response:
        body: ObjectBody | None = response.get("Body")
        if body is None:
            return bytearray()
        # copy, the transport may hand out a view over its own buffer
        return bytearray(await body.read())
