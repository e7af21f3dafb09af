"""Durable remote object store for audio artifacts (S3-compatible, e.g. R2).

Responsibilities:
- List, upload, download, and delete artifacts under a key prefix.
- Resolve the most recent object for a deterministic filename prefix.
- Map object keys to public URLs when a public base URL is configured.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

import boto3

from .local import ARTIFACT_EXTENSIONS


@dataclass(frozen=True, slots=True)
class RemoteObject:
    """Listing entry for one stored object."""

    key: str
    size: int | None = None
    last_modified: datetime | None = None


class RemoteObjectStore:
    """Thin boto3 S3 wrapper scoped to one bucket and key prefix."""

    def __init__(
        self,
        bucket: str,
        *,
        prefix: str = "audio/",
        public_url: str | None = None,
        client: Any | None = None,
        endpoint_url: str | None = None,
        region_name: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
    ) -> None:
        """Initialize the store, creating a boto3 S3 client when none is injected."""

        self.bucket = bucket
        self.prefix = prefix
        self.public_url = public_url.rstrip("/") if public_url else None
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region_name,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    def find_latest(self, name_prefix: str) -> RemoteObject | None:
        """Return the most recently modified object whose name starts with `name_prefix`."""

        objects = [
            item
            for item in self.list_objects(name_prefix)
            if self._has_timestamp_suffix(item.key, name_prefix)
        ]
        if not objects:
            return None
        return max(
            objects,
            key=lambda item: (
                item.last_modified.timestamp() if item.last_modified else 0.0,
                item.key,
            ),
        )

    def list_objects(self, name_prefix: str = "") -> list[RemoteObject]:
        """List all objects under `prefix + name_prefix`."""

        paginator = self.client.get_paginator("list_objects_v2")
        found: list[RemoteObject] = []
        for page in paginator.paginate(Bucket=self.bucket, Prefix=f"{self.prefix}{name_prefix}"):
            for entry in page.get("Contents", []):
                found.append(
                    RemoteObject(
                        key=entry["Key"],
                        size=entry.get("Size"),
                        last_modified=entry.get("LastModified"),
                    )
                )
        return found

    def put(self, filename: str, data: bytes, content_type: str) -> str:
        """Upload one artifact and return its object key."""

        key = f"{self.prefix}{filename}"
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        return key

    def get(self, key: str) -> bytes:
        """Download one object body."""

        response = self.client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()

    def delete(self, key: str) -> None:
        """Delete one object."""

        self.client.delete_object(Bucket=self.bucket, Key=key)

    def url_for(self, key: str) -> str:
        """Return the public URL for a key, or the bare key without a public base URL."""

        if self.public_url:
            return f"{self.public_url}/{key}"
        return key

    def key_from_location(self, location: str) -> str | None:
        """Return the object key addressed by a public URL or key, if it belongs here."""

        candidate = location
        if self.public_url and location.startswith(f"{self.public_url}/"):
            candidate = location[len(self.public_url) + 1 :]
        if candidate.startswith(self.prefix) and len(candidate) > len(self.prefix):
            return candidate
        return None

    def _has_timestamp_suffix(self, key: str, name_prefix: str) -> bool:
        """Return whether the key is `{prefix}{name_prefix}{digits}.{ext}` with an artifact ext."""

        if not key.endswith(ARTIFACT_EXTENSIONS):
            return False
        stem = key[len(self.prefix) + len(name_prefix) :].rsplit(".", 1)[0]
        return stem.isdigit()
