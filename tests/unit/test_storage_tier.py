"""Unit tests for the local cache, remote store and their two-tier policy."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
import requests

from podcastify.errors import StorageError
from podcastify.storage.local import LocalAudioCache
from podcastify.storage.remote import RemoteObjectStore
from podcastify.storage.tier import StorageTier, artifact_prefix


def _remote_tier(
    audio_dir: Path, fake_s3, public_url: str | None = "https://cdn.example"
) -> StorageTier:
    remote = RemoteObjectStore("bucket", public_url=public_url, client=fake_s3)
    return StorageTier(LocalAudioCache(audio_dir), remote)


def test_artifact_prefix_is_deterministic() -> None:
    assert artifact_prefix("ch1", "en") == "ch1-en-"


def test_local_lookup_returns_newest_timestamp(audio_dir: Path) -> None:
    """The most recent timestamp wins regardless of directory order."""

    audio_dir.mkdir(parents=True)
    (audio_dir / "ch1-en-1000.wav").write_bytes(b"old")
    (audio_dir / "ch1-en-2000.wav").write_bytes(b"newer")
    (audio_dir / "ch1-en-notes.txt").write_bytes(b"ignored")

    found = StorageTier(LocalAudioCache(audio_dir)).lookup("ch1", "en")

    assert found is not None
    assert found.location == "/audio/ch1-en-2000.wav"
    assert found.cached is True
    assert found.size == 5


def test_language_prefix_does_not_match_longer_language(audio_dir: Path) -> None:
    """`en` must not resolve to an `en-US` artifact."""

    audio_dir.mkdir(parents=True)
    (audio_dir / "ch1-en-US-1000.wav").write_bytes(b"us")

    tier = StorageTier(LocalAudioCache(audio_dir))

    assert tier.lookup("ch1", "en") is None
    assert tier.lookup("ch1", "en-US") is not None


def test_lookup_on_missing_directory_is_a_miss(local_storage: StorageTier) -> None:
    assert local_storage.lookup("ch1", "en") is None
    assert local_storage.list_artifacts() == []


def test_local_store_writes_timestamped_file(audio_dir: Path) -> None:
    """Without a remote store artifacts land in the local cache directory."""

    tier = StorageTier(LocalAudioCache(audio_dir, clock_ms=lambda: 1700000000000))

    stored = tier.store("ch1", "en", b"RIFFdata")

    assert stored.location == "/audio/ch1-en-1700000000000.wav"
    assert stored.cached is False
    assert (audio_dir / "ch1-en-1700000000000.wav").read_bytes() == b"RIFFdata"


def test_same_millisecond_saves_do_not_overwrite(audio_dir: Path) -> None:
    """A filename clash bumps the timestamp instead of replacing the file."""

    cache = LocalAudioCache(audio_dir, clock_ms=lambda: 5000)

    first = cache.save("merged", "wav", b"one")
    second = cache.save("merged", "wav", b"two")

    assert (first, second) == ("merged-5000.wav", "merged-5001.wav")
    assert cache.read(first) == b"one"


def test_store_deduplicates_existing_artifact(local_storage: StorageTier, audio_dir: Path) -> None:
    """A second store for the same pair returns the existing artifact untouched."""

    first = local_storage.store("ch1", "en", b"first")
    second = local_storage.store("ch1", "en", b"second")

    assert second.location == first.location
    assert second.cached is True
    assert len(list(audio_dir.iterdir())) == 1


def test_remote_lookup_used_after_local_miss(audio_dir: Path, fake_s3) -> None:
    """The newest remote object is returned with its public URL."""

    fake_s3.add_object("audio/ch1-en-1000.wav", b"a")
    fake_s3.add_object("audio/ch1-en-2000.wav", b"bb")
    fake_s3.add_object("audio/ch1-en-US-3000.wav", b"ccc")

    found = _remote_tier(audio_dir, fake_s3).lookup("ch1", "en")

    assert found is not None
    assert found.location == "https://cdn.example/audio/ch1-en-2000.wav"
    assert found.size == 2
    assert found.uploaded_at == datetime(2025, 1, 1, 0, 0, 2, tzinfo=timezone.utc)


def test_remote_lookup_ignores_non_artifact_extensions(audio_dir: Path, fake_s3) -> None:
    """Stray objects under the same prefix are not treated as cached audio."""

    fake_s3.add_object("audio/ch1-en-1000.wav", b"a")
    fake_s3.add_object("audio/ch1-en-2000.json", b"{}")

    found = _remote_tier(audio_dir, fake_s3).lookup("ch1", "en")

    assert found is not None
    assert found.location == "https://cdn.example/audio/ch1-en-1000.wav"

    fake_s3.objects.pop("audio/ch1-en-1000.wav")
    assert _remote_tier(audio_dir, fake_s3).lookup("ch1", "en") is None


def test_local_hit_skips_remote_listing(audio_dir: Path, fake_s3) -> None:
    audio_dir.mkdir(parents=True)
    (audio_dir / "ch1-en-1000.wav").write_bytes(b"local")
    tier = _remote_tier(audio_dir, fake_s3)

    assert tier.lookup("ch1", "en").location == "/audio/ch1-en-1000.wav"
    assert fake_s3.list_calls == 0


def test_remote_lookup_failure_degrades_to_miss(audio_dir: Path, fake_s3) -> None:
    """Listing errors are logged and treated as not found."""

    fake_s3.fail_list = True

    assert _remote_tier(audio_dir, fake_s3).lookup("ch1", "en") is None


def test_remote_write_goes_to_bucket_only(audio_dir: Path, fake_s3) -> None:
    """With a remote store configured the local cache receives no write."""

    stored = _remote_tier(audio_dir, fake_s3).store(
        "ch1", "en", b"payload", extension="mp3", content_type="audio/mpeg"
    )

    [key] = fake_s3.objects
    assert key.startswith("audio/ch1-en-") and key.endswith(".mp3")
    assert fake_s3.content_types[key] == "audio/mpeg"
    assert stored.location == f"https://cdn.example/{key}"
    assert not audio_dir.exists()


def test_remote_write_failure_is_fatal(audio_dir: Path, fake_s3) -> None:
    fake_s3.fail_put = True

    with pytest.raises(StorageError, match="Failed to upload"):
        _remote_tier(audio_dir, fake_s3).store("ch1", "en", b"payload")


def test_remote_location_without_public_url_is_the_key(audio_dir: Path, fake_s3) -> None:
    stored = _remote_tier(audio_dir, fake_s3, public_url=None).store("ch1", "en", b"payload")

    assert stored.location.startswith("audio/ch1-en-")
    assert _remote_tier(audio_dir, fake_s3, public_url=None).read(stored.location) == b"payload"


def test_read_resolves_local_remote_and_http_locations(
    audio_dir: Path, fake_s3, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Reads prefer the local file, then the bucket, then a plain HTTP fetch."""

    audio_dir.mkdir(parents=True)
    (audio_dir / "ch1-en-1000.wav").write_bytes(b"local")
    fake_s3.add_object("audio/ch2-en-1000.wav", b"remote")
    tier = _remote_tier(audio_dir, fake_s3)

    class _HttpResponse:
        content = b"http"

        def raise_for_status(self) -> None:
            return None

    requested: list[str] = []

    def _fake_get(url: str, timeout: float) -> _HttpResponse:
        requested.append(url)
        return _HttpResponse()

    monkeypatch.setattr("podcastify.storage.tier.requests.get", _fake_get)

    assert tier.read("/audio/ch1-en-1000.wav") == b"local"
    assert tier.read("https://cdn.example/audio/ch2-en-1000.wav") == b"remote"
    assert tier.read("https://elsewhere.example/x.wav") == b"http"
    assert requested == ["https://elsewhere.example/x.wav"]


def test_read_failures_raise_storage_errors(
    local_storage: StorageTier, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _failing_get(url: str, timeout: float):
        raise requests.ConnectionError("down")

    monkeypatch.setattr("podcastify.storage.tier.requests.get", _failing_get)

    with pytest.raises(StorageError, match="Audio file not found"):
        local_storage.read("/audio/missing-1.wav")
    with pytest.raises(StorageError, match="Failed to fetch"):
        local_storage.read("https://elsewhere.example/x.wav")


def test_delete_removes_local_and_remote_artifacts(audio_dir: Path, fake_s3) -> None:
    local_only = StorageTier(LocalAudioCache(audio_dir))
    stored = local_only.store("ch1", "en", b"x")

    assert local_only.delete(stored.location) is True
    assert local_only.delete(stored.location) is False

    fake_s3.add_object("audio/ch2-en-1000.wav", b"remote")
    remote_tier = _remote_tier(audio_dir, fake_s3)
    assert remote_tier.delete("https://cdn.example/audio/ch2-en-1000.wav") is True
    assert fake_s3.objects == {}


def test_list_artifacts_reports_active_write_tier(audio_dir: Path, fake_s3) -> None:
    fake_s3.add_object("audio/ch1-en-1000.wav", b"a")

    assert _remote_tier(audio_dir, fake_s3).list_artifacts() == [
        "https://cdn.example/audio/ch1-en-1000.wav"
    ]
