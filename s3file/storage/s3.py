from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass, field
from typing import Any, Mapping

import aioboto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from s3file.errors import BackendError, NotFoundError, PreconditionFailedError
from s3file.options import DEFAULT_REGION, Credentials, Options
from s3file.storage import NOT_FOUND_CODES, PRECONDITION_CODES, ObjectBody, StorageBackend

logger = logging.getLogger(__name__)


@contextmanager
def translate_errors(key: str | None) -> Iterator[None]:
    try:
        yield
    except ClientError as exc:
        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        logger.debug("S3 request for %r failed with %s", key, code or "no code")
        if code in NOT_FOUND_CODES:
            raise NotFoundError(key, code) from exc
        if code in PRECONDITION_CODES:
            raise PreconditionFailedError(key, code) from exc
        raise BackendError(key, f"S3 request failed: {exc}", code or None) from exc
    except BotoCoreError as exc:
        raise BackendError(key, f"S3 transport failed: {exc}") from exc


@dataclass
class S3Body:
    """Wraps the SDK's streaming body so read failures use our error types."""

    body: Any
    key: str

    async def read(self, amt: int | None = None) -> bytes:
        with translate_errors(self.key):
            return await self.body.read(amt)

    def close(self) -> None:
        self.body.close()


@dataclass
class S3Storage(StorageBackend):
    credentials: Credentials
    session: Any = field(repr=False)
    client: Any = field(default=None, repr=False)

    @classmethod
    def from_credentials(cls, credentials: Credentials) -> S3Storage:
        session = aioboto3.Session(
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            aws_session_token=credentials.session_token,
            region_name=credentials.region or DEFAULT_REGION,
        )
        return cls(credentials, session)

    @classmethod
    def from_options(cls, options: Options) -> S3Storage:
        return cls.from_credentials(options.credentials)

    @classmethod
    @asynccontextmanager
    async def connect(cls, credentials: Credentials) -> AsyncIterator[S3Storage]:
        """Keep one SDK client open for every call made inside the block."""
        storage = cls.from_credentials(credentials)
        async with storage._new_client() as client:
            storage.client = client
            try:
                yield storage
            finally:
                storage.client = None

    def _new_client(self) -> Any:
        # credentials are never discovered from the environment or profiles
        if not (self.credentials.access_key_id and self.credentials.secret_access_key):
            raise ValueError("S3 access_key_id and secret_access_key are required")
        addressing_style = "virtual" if self.credentials.virtual_hosted_style else "path"
        return self.session.client(
            "s3",
            endpoint_url=self.credentials.endpoint,
            region_name=self.credentials.region or DEFAULT_REGION,
            config=BotoConfig(signature_version="s3v4", s3={"addressing_style": addressing_style}),
        )

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[Any]:
        if self.client is not None:
            yield self.client
            return
        async with self._new_client() as client:
            yield client

    @asynccontextmanager
    async def get_object(
        self,
        bucket: str,
        key: str,
        *,
        range: str | None = None,
        if_match: str | None = None,
        if_none_match: str | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        params: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if range is not None:
            params["Range"] = range
        if if_match is not None:
            params["IfMatch"] = if_match
        if if_none_match is not None:
            params["IfNoneMatch"] = if_none_match
        logger.debug("GET %s/%s range=%s", bucket, key, range)
        async with self._client() as client:
            with translate_errors(key):
                response = await client.get_object(**params)
            raw_body = response.get("Body")
            body: ObjectBody | None = S3Body(raw_body, key) if raw_body is not None else None
            try:
                yield {**response, "Body": body}
            finally:
                if body is not None:
                    body.close()

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
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": body}
        optional = {
            "ContentType": content_type,
            "ACL": acl,
            "StorageClass": storage_class,
            "CacheControl": cache_control,
            "ContentDisposition": content_disposition,
            "ContentEncoding": content_encoding,
            "ContentLanguage": content_language,
            "ChecksumSHA1": checksum_sha1,
            "ChecksumSHA256": checksum_sha256,
            "IfMatch": if_match,
        }
        params.update({name: value for name, value in optional.items() if value})
        if metadata:
            params["Metadata"] = dict(metadata)
        logger.debug("PUT %s/%s (%d bytes)", bucket, key, len(body))
        async with self._client() as client:
            with translate_errors(key):
                return await client.put_object(**params)

    async def head_object(self, bucket: str, key: str) -> dict[str, Any]:
        logger.debug("HEAD %s/%s", bucket, key)
        async with self._client() as client:
            with translate_errors(key):
                return await client.head_object(Bucket=bucket, Key=key)

    async def delete_object(self, bucket: str, key: str) -> None:
        logger.debug("DELETE %s/%s", bucket, key)
        async with self._client() as client:
            with translate_errors(key):
                await client.delete_object(Bucket=bucket, Key=key)

    async def list_objects(self, bucket: str, **params: Any) -> dict[str, Any]:
        logger.debug("LIST %s %s", bucket, params)
        async with self._client() as client:
            with translate_errors(None):
                return await client.list_objects_v2(Bucket=bucket, **params)

    async def presign(self, operation: str, params: dict[str, Any], expires_in: int) -> str:
        async with self._client() as client:
            with translate_errors(params.get("Key")):
                url = await client.generate_presigned_url(
                    operation, Params=params, ExpiresIn=int(expires_in)
                )
        if not url:
            raise BackendError(params.get("Key"), "Generated presigned URL is empty")
        return str(url)
