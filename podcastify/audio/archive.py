"""Bulk-download archive export.

Responsibilities:
- Bundle many stored artifacts (local or remote) into one ZIP archive.
- Persist the archive through the storage tier under a synthetic key.
- Optionally expire the archive after a short retention window.
"""

from __future__ import annotations

import io
import threading
from typing import Callable
from urllib.parse import urlparse
import zipfile

from loguru import logger

from ..errors import PipelineStageError, StorageError
from ..models.datatypes import StoredAudioInfo
from ..storage.tier import StorageTier

Scheduler = Callable[[float, Callable[[], None]], None]


def _timer_scheduler(delay_seconds: float, action: Callable[[], None]) -> None:
    """Run `action` once on a daemon timer thread after `delay_seconds`."""

    timer = threading.Timer(delay_seconds, action)
    timer.daemon = True
    timer.start()


class ArchiveExporter:
    """Create ZIP bundles of stored artifacts."""

    def __init__(
        self,
        storage: StorageTier,
        retention_seconds: float | None = None,
        scheduler: Scheduler = _timer_scheduler,
    ) -> None:
        """Initialize the exporter with storage and optional archive expiry."""

        self.storage = storage
        self.retention_seconds = retention_seconds
        self._scheduler = scheduler

    def export(self, locations: list[str]) -> tuple[StoredAudioInfo, int]:
        """Bundle artifacts and return `(stored_archive, archive_size_bytes)`."""

        if not locations:
            raise PipelineStageError(
                stage="archive",
                detail="Audio files array is required.",
                hint="Pass at least one artifact location to bundle.",
            )

        logger.info("[ZIP] Creating zip with {} files", len(locations))
        buffer = io.BytesIO()
        used_names: set[str] = set()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for location in locations:
                entry_name = self._unique_name(self._entry_name(location), used_names)
                used_names.add(entry_name)
                archive.writestr(entry_name, self.storage.read(location))
                logger.info("[ZIP] Added {} to zip", entry_name)

        payload = buffer.getvalue()
        synthetic_id = f"podcast-bundle-{self.storage.local.timestamp()}"
        stored = self.storage.store_named(synthetic_id, payload, "zip", "application/zip")
        logger.info("[ZIP] Zip file created: {}, size: {} bytes", stored.location, len(payload))

        if self.retention_seconds is not None:
            self._scheduler(self.retention_seconds, lambda: self._expire(stored.location))
        return stored, len(payload)

    def _expire(self, location: str) -> None:
        """Delete an expired archive; failures are logged because no caller awaits them."""

        try:
            deleted = self.storage.delete(location)
        except StorageError as exc:
            logger.warning("[ZIP] Failed to expire archive {}: {}", location, exc.detail)
            return
        if deleted:
            logger.info("[ZIP] Expired archive {}", location)

    @staticmethod
    def _entry_name(location: str) -> str:
        """Return the archive member name for a location (its last path segment)."""

        path = urlparse(location).path if "://" in location else location
        return path.rstrip("/").rsplit("/", 1)[-1] or location

    @staticmethod
    def _unique_name(name: str, used_names: set[str]) -> str:
        """Suffix `-2`, `-3`, ... before the extension until the member name is unused."""

        if name not in used_names:
            return name
        stem, dot, extension = name.rpartition(".")
        if not dot:
            stem, extension = name, ""
        index = 2
        while True:
            candidate = f"{stem}-{index}{dot}{extension}"
            if candidate not in used_names:
                return candidate
            index += 1
