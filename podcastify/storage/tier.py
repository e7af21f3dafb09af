"""Two-tier artifact storage policy.

Responsibilities:
- Look up finished artifacts cache-first: local directory, then remote store.
- Deduplicate writes by existence check on the deterministic key prefix.
- Write to the remote store when configured, else to the local cache.
- Read and delete artifacts by location for merge and archive export.

Remote lookup failures degrade to "not found"; remote write failures are fatal.
"""

from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
import requests

from ..errors import StorageError
from ..models.datatypes import StoredAudioInfo
from .local import LocalAudioCache
from .remote import RemoteObjectStore

_REMOTE_ERRORS = (BotoCoreError, ClientError)


def artifact_prefix(content_id: str, language: str) -> str:
    """Return the deterministic filename prefix shared by all versions of an artifact."""

    return f"{content_id}-{language}-"


class StorageTier:
    """Cache-first artifact lookup and write-through persistence."""

    def __init__(
        self,
        local: LocalAudioCache,
        remote: RemoteObjectStore | None = None,
        http_timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize the tier with a local cache and an optional remote store."""

        self.local = local
        self.remote = remote
        self.http_timeout_seconds = http_timeout_seconds

    def lookup(self, content_id: str, language: str) -> StoredAudioInfo | None:
        """Return the newest artifact for `(content_id, language)`, or `None`."""

        prefix = artifact_prefix(content_id, language)

        filename = self.local.find_latest(prefix)
        if filename is not None:
            logger.info("[Local Storage] Found existing audio: {}", filename)
            size, modified_at = self.local.stat(filename)
            return StoredAudioInfo(
                location=self.local.url_for(filename),
                content_id=content_id,
                language=language,
                cached=True,
                size=size,
                uploaded_at=modified_at,
            )

        if self.remote is None:
            return None
        try:
            found = self.remote.find_latest(prefix)
        except _REMOTE_ERRORS as exc:
            logger.warning("[Remote Storage] Lookup failed for {}: {}", prefix, exc)
            return None
        if found is None:
            return None
        logger.info("[Remote Storage] Found existing audio: {}", found.key)
        return StoredAudioInfo(
            location=self.remote.url_for(found.key),
            content_id=content_id,
            language=language,
            cached=True,
            size=found.size,
            uploaded_at=found.last_modified,
        )

    def info(self, content_id: str, language: str) -> StoredAudioInfo | None:
        """Return artifact metadata for `(content_id, language)` when present."""

        return self.lookup(content_id, language)

    def store(
        self,
        content_id: str,
        language: str,
        data: bytes,
        extension: str = "wav",
        content_type: str = "audio/wav",
    ) -> StoredAudioInfo:
        """Persist an artifact unless one already exists under its prefix.

        Raises:
            StorageError: If the selected tier cannot persist the artifact.
        """

        existing = self.lookup(content_id, language)
        if existing is not None:
            return existing
        return self._write(
            stem=f"{content_id}-{language}",
            content_id=content_id,
            language=language,
            data=data,
            extension=extension,
            content_type=content_type,
        )

    def store_named(
        self,
        stem: str,
        data: bytes,
        extension: str,
        content_type: str,
    ) -> StoredAudioInfo:
        """Persist a derived artifact (merge/archive) under a fresh synthetic key."""

        return self._write(
            stem=stem,
            content_id=stem,
            language=extension,
            data=data,
            extension=extension,
            content_type=content_type,
        )

    def read(self, location: str) -> bytes:
        """Read artifact bytes from a local path, remote key, or public URL.

        Raises:
            StorageError: If the artifact cannot be found or fetched.
        """

        filename = self.local.filename_from_location(location)
        if filename is not None and (self.local.root / filename).is_file():
            return self.local.read(filename)

        if self.remote is not None:
            key = self.remote.key_from_location(location)
            if key is not None:
                try:
                    return self.remote.get(key)
                except _REMOTE_ERRORS as exc:
                    raise StorageError(f"Failed to fetch audio file: {location}") from exc

        if location.startswith(("http://", "https://")):
            try:
                response = requests.get(location, timeout=self.http_timeout_seconds)
                response.raise_for_status()
            except requests.RequestException as exc:
                raise StorageError(f"Failed to fetch audio file: {location}") from exc
            return bytes(response.content)

        raise StorageError(f"Audio file not found: {location}")

    def delete(self, location: str) -> bool:
        """Delete an artifact by location and report whether anything was removed."""

        if self.remote is not None:
            key = self.remote.key_from_location(location)
            if key is not None:
                try:
                    self.remote.delete(key)
                except _REMOTE_ERRORS as exc:
                    raise StorageError(f"Failed to delete audio file: {location}") from exc
                return True

        filename = self.local.filename_from_location(location)
        if filename is None:
            return False
        return self.local.delete(filename)

    def list_artifacts(self) -> list[str]:
        """Return locations of all stored artifacts in the active write tier."""

        if self.remote is not None:
            try:
                return [self.remote.url_for(item.key) for item in self.remote.list_objects()]
            except _REMOTE_ERRORS as exc:
                logger.warning("[Remote Storage] Listing failed: {}", exc)
                return []
        return [self.local.url_for(name) for name in self.local.list_files()]

    def _write(
        self,
        *,
        stem: str,
        content_id: str,
        language: str,
        data: bytes,
        extension: str,
        content_type: str,
    ) -> StoredAudioInfo:
        """Write to the remote store when configured, else to the local cache."""

        if self.remote is not None:
            filename = f"{stem}-{self.local.timestamp()}.{extension}"
            try:
                key = self.remote.put(filename, data, content_type)
            except _REMOTE_ERRORS as exc:
                raise StorageError(
                    f"Failed to upload audio to remote storage: {exc}",
                    hint="Verify remote bucket credentials and connectivity.",
                ) from exc
            logger.info("[Remote Storage] Uploaded audio: {}, size: {} bytes", key, len(data))
            location = self.remote.url_for(key)
        else:
            try:
                filename = self.local.save(stem, extension, data)
            except OSError as exc:
                raise StorageError(
                    f"Failed to write audio to `{self.local.root}`: {exc}",
                    hint="Verify the audio directory is writable.",
                ) from exc
            logger.info("[Local Storage] Saved audio: {}, size: {} bytes", filename, len(data))
            location = self.local.url_for(filename)

        return StoredAudioInfo(
            location=location,
            content_id=content_id,
            language=language,
            cached=False,
            size=len(data),
        )
