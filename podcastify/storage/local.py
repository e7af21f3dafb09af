"""Local filesystem audio cache.

Responsibilities:
- Persist artifacts under timestamped, collision-free filenames.
- Resolve the most recent artifact for a deterministic filename prefix.
- Map filenames to public URL paths (`/audio/<name>`) and back.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import time
from typing import Callable

ARTIFACT_EXTENSIONS = (".mp3", ".wav", ".ogg", ".m4a", ".zip")


def _epoch_millis() -> int:
    """Return the current wall-clock time in milliseconds."""

    return time.time_ns() // 1_000_000


class LocalAudioCache:
    """Filesystem-backed artifact cache rooted at one shared directory."""

    def __init__(
        self,
        root: Path,
        url_prefix: str = "/audio",
        clock_ms: Callable[[], int] = _epoch_millis,
    ) -> None:
        """Initialize the cache with its root directory and public URL prefix."""

        self.root = root
        self.url_prefix = url_prefix.rstrip("/")
        self._clock_ms = clock_ms

    def find_latest(self, prefix: str) -> str | None:
        """Return the newest recognized artifact filename starting with `prefix`."""

        if not self.root.is_dir():
            return None
        matches = [
            path.name
            for path in self.root.iterdir()
            if path.is_file()
            and path.name.startswith(prefix)
            and path.name.endswith(ARTIFACT_EXTENSIONS)
            and self._embedded_timestamp(path.name, prefix) >= 0
        ]
        if not matches:
            return None
        return max(matches, key=lambda name: (self._embedded_timestamp(name, prefix), name))

    def save(self, stem: str, extension: str, data: bytes) -> str:
        """Write `data` to `{stem}-{timestamp}.{extension}` and return the filename.

        Files are created exclusively; a clash on the same millisecond bumps
        the timestamp instead of overwriting another writer's artifact.
        """

        self.root.mkdir(parents=True, exist_ok=True)
        timestamp = self.timestamp()
        while True:
            filename = f"{stem}-{timestamp}.{extension}"
            try:
                with (self.root / filename).open("xb") as handle:
                    handle.write(data)
            except FileExistsError:
                timestamp += 1
                continue
            return filename

    def timestamp(self) -> int:
        """Return the current artifact timestamp (epoch milliseconds)."""

        return self._clock_ms()

    def read(self, filename: str) -> bytes:
        """Read one artifact by filename."""

        return self._path_for(filename).read_bytes()

    def delete(self, filename: str) -> bool:
        """Delete one artifact and report whether it existed."""

        path = self._path_for(filename)
        if not path.exists():
            return False
        path.unlink()
        return True

    def stat(self, filename: str) -> tuple[int, datetime]:
        """Return `(size_bytes, modified_at)` for one artifact."""

        info = self._path_for(filename).stat()
        return info.st_size, datetime.fromtimestamp(info.st_mtime, tz=timezone.utc)

    def list_files(self) -> list[str]:
        """Return all recognized artifact filenames in sorted order."""

        if not self.root.is_dir():
            return []
        return sorted(
            path.name
            for path in self.root.iterdir()
            if path.is_file() and path.name.endswith(ARTIFACT_EXTENSIONS)
        )

    def url_for(self, filename: str) -> str:
        """Return the public URL path for an artifact filename."""

        return f"{self.url_prefix}/{filename}"

    def filename_from_location(self, location: str) -> str | None:
        """Return the cache filename addressed by a `/audio/<name>` path or bare name."""

        candidate = location
        if location.startswith(f"{self.url_prefix}/"):
            candidate = location[len(self.url_prefix) + 1 :]
        if not candidate or "/" in candidate or "\\" in candidate or candidate in {".", ".."}:
            return None
        return candidate

    def _path_for(self, filename: str) -> Path:
        """Resolve a validated filename inside the cache root."""

        if self.filename_from_location(filename) != filename:
            raise ValueError(f"Invalid artifact filename `{filename}`.")
        return self.root / filename

    @staticmethod
    def _embedded_timestamp(filename: str, prefix: str) -> int:
        """Parse the timestamp segment after `prefix`, or -1 when absent."""

        stem = filename[len(prefix) :].rsplit(".", 1)[0]
        return int(stem) if stem.isdigit() else -1
