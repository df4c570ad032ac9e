from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping

DEFAULT_REGION = "auto"

_ENV_FIELDS = {
    "bucket": "BUCKET",
    "endpoint": "ENDPOINT",
    "region": "REGION",
    "access_key_id": "ACCESS_KEY_ID",
    "secret_access_key": "SECRET_ACCESS_KEY",
    "session_token": "SESSION_TOKEN",
}


@dataclass(frozen=True)
class Credentials:
    """The part of Options needed to build a storage client."""

    endpoint: str | None = None
    region: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    virtual_hosted_style: bool | None = None


# fields that pick the bucket and the account rather than describe an object
LOCATION_FIELDS = ("bucket",) + tuple(f.name for f in fields(Credentials))


@dataclass(frozen=True)
class Options:
    """Per-reference settings.

    Every field is optional so that instance defaults and per-call overrides
    can be layered with merge(): a field set on the override wins, an unset
    (None) field falls through to the defaults.
    """

    content_type: str | None = None
    acl: str | None = None
    storage_class: str | None = None
    metadata: Mapping[str, str] | None = None
    cache_control: str | None = None
    content_disposition: str | None = None
    content_encoding: str | None = None
    content_language: str | None = None
    bucket: str | None = None
    endpoint: str | None = None
    region: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    virtual_hosted_style: bool | None = None

    def merge(self, overrides: Options | None) -> Options:
        if overrides is None:
            return self
        changes = {
            f.name: getattr(overrides, f.name)
            for f in fields(overrides)
            if getattr(overrides, f.name) is not None
        }
        return replace(self, **changes)

    @property
    def credentials(self) -> Credentials:
        return Credentials(
            endpoint=self.endpoint,
            region=self.region,
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
            virtual_hosted_style=self.virtual_hosted_style,
        )

    def location_fields(self) -> list[str]:
        """Names of the set fields that choose where an object lives."""
        return [name for name in LOCATION_FIELDS if getattr(self, name) is not None]

    def require_bucket(self) -> str:
        if not self.bucket:
            raise ValueError("A bucket is required")
        return self.bucket

    def require_credentials(self) -> None:
        missing = [
            name
            for name in ("bucket", "access_key_id", "secret_access_key")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"Missing required options: {', '.join(missing)}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, prefix: str = "S3_") -> Options:
        if environ is None:
            environ = os.environ
        values: dict[str, str | bool] = {
            name: environ[prefix + suffix]
            for name, suffix in _ENV_FIELDS.items()
            if environ.get(prefix + suffix)
        }
        style = environ.get(prefix + "VIRTUAL_HOSTED_STYLE")
        if style:
            values["virtual_hosted_style"] = style.strip().lower() in ("1", "true", "yes")
        return cls(**values)
