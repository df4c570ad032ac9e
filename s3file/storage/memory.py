from __future__ import annotations

import base64
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from hashlib import md5, sha1, sha256
from typing import Any, Mapping
from urllib.parse import quote, urlencode

from anyio.lowlevel import checkpoint

from s3file.errors import BackendError, NotFoundError, PreconditionFailedError
from s3file.storage import HttpRange, StorageBackend

DEFAULT_MAX_KEYS = 1000
DEFAULT_CHUNK_SIZE = 64 * 1024
OWNER = {"ID": "memory", "DisplayName": "memory"}
_MAX_CHAR = "\U0010ffff"


@dataclass
class Object:
    body: bytes
    content_type: str | None = None
    acl: str | None = None
    storage_class: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def etag(self) -> str:
        return f'"{md5(self.body).hexdigest()}"'


@dataclass
class MemoryBody:
    data: bytes
    chunk_size: int = DEFAULT_CHUNK_SIZE
    position: int = 0
    closed: bool = False

    async def read(self, amt: int | None = None) -> bytes:
        if self.closed:
            raise BackendError(None, "Body is closed")
        # behave like a network read and yield to the event loop
        await checkpoint()
        size = min(amt, self.chunk_size) if amt is not None and amt >= 0 else len(self.data)
        chunk = self.data[self.position : self.position + size]
        self.position += len(chunk)
        return chunk

    def close(self) -> None:
        self.closed = True


def _encode_token(key: str) -> str:
    return base64.urlsafe_b64encode(key.encode()).decode()


def _decode_token(token: str) -> str:
    try:
        return base64.urlsafe_b64decode(token.encode()).decode()
    except ValueError as exc:
        raise BackendError(None, "The continuation token provided is incorrect", "InvalidArgument") from exc


@dataclass
class InMemoryBackend(StorageBackend):
    storage: dict[str, dict[str, Object]] = field(
        default_factory=lambda: defaultdict(dict)
    )
    chunk_size: int = DEFAULT_CHUNK_SIZE
    secret: str = "memory-secret"

    def _get(self, bucket: str, key: str) -> Object:
        try:
            return self.storage[bucket][key]
        except KeyError:
            raise NotFoundError(key, "NoSuchKey") from None

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
        obj = self._get(bucket, key)
        if if_match is not None and if_match != obj.etag:
            raise PreconditionFailedError(key, "PreconditionFailed")
        if if_none_match is not None and if_none_match == obj.etag:
            raise PreconditionFailedError(key, "NotModified")
        data = obj.body
        total = len(data)
        response: dict[str, Any] = {
            "ETag": obj.etag,
            "LastModified": obj.last_modified,
            "ContentType": obj.content_type or "binary/octet-stream",
            "Metadata": dict(obj.metadata),
            **obj.headers,
        }
        if range is not None:
            parsed = HttpRange.parse(range)
            if parsed.start is not None and total and parsed.start >= total:
                raise BackendError(key, "The requested range is not satisfiable", "InvalidRange")
            data = parsed.apply(data)
            start = parsed.start if parsed.start is not None else total - len(data)
            response["ContentRange"] = f"bytes {start}-{start + len(data) - 1}/{total}"
        response["ContentLength"] = len(data)
        body = MemoryBody(data, chunk_size=self.chunk_size)
        response["Body"] = body
        try:
            yield response
        finally:
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
        if if_match is not None and if_match != self._get(bucket, key).etag:
            raise PreconditionFailedError(key, "PreconditionFailed")
        for algorithm, expected in ((sha1, checksum_sha1), (sha256, checksum_sha256)):
            if expected is not None and expected != base64.b64encode(algorithm(body).digest()).decode():
                raise BackendError(key, "The checksum does not match the uploaded body", "BadDigest")
        obj = Object(
            body=bytes(body),
            content_type=content_type,
            acl=acl,
            storage_class=storage_class,
            metadata=dict(metadata or {}),
            headers={
                name: value
                for name, value in (
                    ("CacheControl", cache_control),
                    ("ContentDisposition", content_disposition),
                    ("ContentEncoding", content_encoding),
                    ("ContentLanguage", content_language),
                )
                if value is not None
            },
        )
        self.storage[bucket][key] = obj
        return {"ETag": obj.etag}

    async def head_object(self, bucket: str, key: str) -> dict[str, Any]:
        obj = self._get(bucket, key)
        head: dict[str, Any] = {
            "ContentLength": len(obj.body),
            "ContentType": obj.content_type or "binary/octet-stream",
            "ETag": obj.etag,
            "LastModified": obj.last_modified,
            "Metadata": dict(obj.metadata),
            **obj.headers,
        }
        # S3 leaves StorageClass out for STANDARD objects
        if obj.storage_class:
            head["StorageClass"] = obj.storage_class
        return head

    async def delete_object(self, bucket: str, key: str) -> None:
        # deleting a missing key is not an error in S3
        self.storage[bucket].pop(key, None)

    async def list_objects(self, bucket: str, **params: Any) -> dict[str, Any]:
        prefix: str = params.get("Prefix") or ""
        delimiter: str | None = params.get("Delimiter")
        max_keys: int = params.get("MaxKeys", DEFAULT_MAX_KEYS)
        token: str | None = params.get("ContinuationToken")
        start_after: str | None = params.get("StartAfter")

        marker = _decode_token(token) if token else start_after
        keys = sorted(key for key in self.storage[bucket] if key.startswith(prefix))
        if marker:
            keys = [key for key in keys if key > marker]

        contents: list[dict[str, Any]] = []
        common_prefixes: list[str] = []
        last_key: str | None = None
        truncated = False
        for key in keys:
            if delimiter:
                index = key.find(delimiter, len(prefix))
                if index != -1:
                    common = key[: index + len(delimiter)]
                    if common in common_prefixes:
                        continue
                    if len(contents) + len(common_prefixes) >= max_keys:
                        truncated = True
                        break
                    common_prefixes.append(common)
                    # resume after every key under this prefix
                    last_key = common + _MAX_CHAR
                    continue
            if len(contents) + len(common_prefixes) >= max_keys:
                truncated = True
                break
            obj = self.storage[bucket][key]
            entry: dict[str, Any] = {
                "Key": key,
                "LastModified": obj.last_modified,
                "ETag": obj.etag,
                "Size": len(obj.body),
                "StorageClass": obj.storage_class or "STANDARD",
            }
            if params.get("FetchOwner"):
                entry["Owner"] = dict(OWNER)
            contents.append(entry)
            last_key = key

        response: dict[str, Any] = {
            "Name": bucket,
            "Prefix": prefix,
            "MaxKeys": max_keys,
            "KeyCount": len(contents) + len(common_prefixes),
            "IsTruncated": truncated,
        }
        if contents:
            response["Contents"] = contents
        if common_prefixes:
            response["CommonPrefixes"] = [{"Prefix": p} for p in common_prefixes]
        if delimiter:
            response["Delimiter"] = delimiter
        if token:
            response["ContinuationToken"] = token
        if start_after:
            response["StartAfter"] = start_after
        if params.get("EncodingType"):
            response["EncodingType"] = params["EncodingType"]
        if truncated and last_key is not None:
            response["NextContinuationToken"] = _encode_token(last_key)
        return response

    async def presign(self, operation: str, params: dict[str, Any], expires_in: int) -> str:
        bucket = params["Bucket"]
        key = params["Key"]
        query = {
            "X-Operation": operation,
            "X-Expires": str(expires_in),
            **{name: str(value) for name, value in sorted(params.items()) if name not in ("Bucket", "Key")},
        }
        signature = sha256(
            f"{self.secret}\n{bucket}\n{key}\n{urlencode(query)}".encode()
        ).hexdigest()
        query["X-Signature"] = signature
        return f"memory://{bucket}/{quote(key)}?{urlencode(query)}"
