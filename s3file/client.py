from __future__ import annotations

from s3file.file import ObjectReference
from s3file.listing import ListOptions, ListResponse, list_objects
from s3file.options import Options
from s3file.presign import PresignOptions
from s3file.probe import Stats
from s3file.storage import StorageBackend
from s3file.storage.s3 import S3Storage


class Client:
    """A bucket with default options, so credentials live in one place.

    Options passed to a method override the defaults field by field.

        client = Client(Options(bucket="my-bucket", access_key_id=..., secret_access_key=...))
        await client.write("data.json", '{"hello": "world"}', Options(content_type="application/json"))
        url = await client.presign("data.json")
    """

    def __init__(self, options: Options | None = None, *, backend: StorageBackend | None = None) -> None:
        self._options = options or Options()
        self._injected = backend is not None
        # built on first use
        self._backend = backend

    @property
    def options(self) -> Options:
        return self._options

    def _backend_for(self, options: Options) -> StorageBackend:
        if self._injected or options.credentials == self._options.credentials:
            if self._backend is None:
                self._backend = S3Storage.from_options(self._options)
            return self._backend
        return S3Storage.from_options(options)

    def file(self, path: str, options: Options | None = None) -> ObjectReference:
        merged = self._options.merge(options)
        return ObjectReference(path, merged, backend=self._backend_for(merged))

    async def write(
        self,
        path: str,
        data: object,
        options: Options | None = None,
        *,
        sha1: str | bytes | None = None,
        sha256: str | bytes | None = None,
    ) -> int:
        return await self.file(path, options).write(data, sha1=sha1, sha256=sha256)

    async def delete(self, path: str, options: Options | None = None) -> None:
        await self.file(path, options).delete()

    async def unlink(self, path: str, options: Options | None = None) -> None:
        await self.delete(path, options)

    async def exists(self, path: str, options: Options | None = None) -> bool:
        return await self.file(path, options).exists()

    async def size(self, path: str, options: Options | None = None) -> int:
        return await self.file(path, options).size()

    async def stat(self, path: str, options: Options | None = None) -> Stats:
        return await self.file(path, options).stat()

    async def list(self, input: ListOptions | None = None, options: Options | None = None) -> ListResponse:
        merged = self._options.merge(options)
        return await list_objects(self._backend_for(merged), merged.require_bucket(), input)

    async def presign(
        self,
        path: str,
        presign_options: PresignOptions | None = None,
        options: Options | None = None,
    ) -> str:
        return await self.file(path, options).presign(presign_options)


# Credential-explicit calls: nothing is inherited, every call brings its own
# bucket and keys.


def file(path: str, options: Options) -> ObjectReference:
    options.require_credentials()
    return ObjectReference(path, options)


async def write(
    path: str,
    data: object,
    options: Options,
    *,
    sha1: str | bytes | None = None,
    sha256: str | bytes | None = None,
) -> int:
    return await file(path, options).write(data, sha1=sha1, sha256=sha256)


async def delete(path: str, options: Options) -> None:
    await file(path, options).delete()


async def unlink(path: str, options: Options) -> None:
    await delete(path, options)


async def exists(path: str, options: Options) -> bool:
    return await file(path, options).exists()


async def size(path: str, options: Options) -> int:
    return await file(path, options).size()


async def stat(path: str, options: Options) -> Stats:
    return await file(path, options).stat()


async def list(input: ListOptions | None, options: Options) -> ListResponse:
    options.require_credentials()
    return await list_objects(S3Storage.from_options(options), options.require_bucket(), input)


async def presign(path: str, presign_options: PresignOptions | None, options: Options) -> str:
    return await file(path, options).presign(presign_options)
