"""Shared pytest fixtures for the Podcastify test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import io
from pathlib import Path
import threading

from botocore.exceptions import ClientError
import pytest

from podcastify.models.datatypes import RawPcm, SampleFormat, SynthesizedAudio
from podcastify.storage.local import LocalAudioCache
from podcastify.storage.tier import StorageTier
from podcastify.tts.gemini_client import GeminiProviderError


class FakeSynthesizer:
    """Deterministic in-process synthesizer recording every chunk request."""

    def __init__(self) -> None:
        """Initialize call log and failure knobs."""

        self.calls: list[tuple[str, str]] = []
        self.sample_format: SampleFormat = RawPcm()
        self.missing_key = False
        self.fail_on_call: int | None = None
        self.failure: Exception = GeminiProviderError(
            "Gemini TTS API error (HTTP 503): overloaded",
            failure_kind="server_error",
            status_code=503,
        )
        self.gate: threading.Event | None = None
        self._lock = threading.Lock()

    def require_credentials(self) -> None:
        """Raise the provider's missing-key error when configured to."""

        if self.missing_key:
            raise GeminiProviderError(
                "GEMINI_API_KEY environment variable is not set.",
                failure_kind="invalid_api_key",
            )

    def synthesize(self, text: str, language: str) -> SynthesizedAudio:
        """Return two bytes of PCM per input character."""

        with self._lock:
            self.calls.append((text, language))
            call_number = len(self.calls)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.fail_on_call is not None and call_number == self.fail_on_call:
            raise self.failure
        return SynthesizedAudio(data=b"\x01\x00" * len(text), sample_format=self.sample_format)


def _client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, operation)


class _FakePaginator:
    def __init__(self, client: "FakeS3Client") -> None:
        self._client = client

    def paginate(self, *, Bucket: str, Prefix: str):  # noqa: N803
        if self._client.fail_list:
            raise _client_error("ListObjectsV2")
        contents = [
            {"Key": key, "Size": len(body), "LastModified": modified}
            for key, (body, modified) in sorted(self._client.objects.items())
            if key.startswith(Prefix)
        ]
        return [{"Contents": contents}] if contents else [{}]


class FakeS3Client:
    """In-memory stand-in for the boto3 S3 client calls the remote store makes."""

    def __init__(self) -> None:
        """Initialize object storage and failure switches."""

        self.objects: dict[str, tuple[bytes, datetime]] = {}
        self.content_types: dict[str, str] = {}
        self.fail_list = False
        self.fail_put = False
        self.list_calls = 0
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def add_object(self, key: str, body: bytes, modified: datetime | None = None) -> None:
        """Seed one object directly."""

        self._clock += timedelta(seconds=1)
        self.objects[key] = (body, modified or self._clock)

    def get_paginator(self, name: str) -> _FakePaginator:
        assert name == "list_objects_v2"
        self.list_calls += 1
        return _FakePaginator(self)

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, ContentType: str) -> dict:  # noqa: N803
        if self.fail_put:
            raise _client_error("PutObject")
        self.add_object(Key, bytes(Body))
        self.content_types[Key] = ContentType
        return {}

    def get_object(self, *, Bucket: str, Key: str) -> dict:  # noqa: N803
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key][0])}

    def delete_object(self, *, Bucket: str, Key: str) -> dict:  # noqa: N803
        self.objects.pop(Key, None)
        return {}


@pytest.fixture
def fake_synthesizer() -> FakeSynthesizer:
    """Provide a fresh deterministic synthesizer."""

    return FakeSynthesizer()


@pytest.fixture
def fake_s3() -> FakeS3Client:
    """Provide a fresh in-memory S3 client."""

    return FakeS3Client()


@pytest.fixture
def audio_dir(tmp_path: Path) -> Path:
    """Provide the local artifact cache directory (not created up front)."""

    return tmp_path / "public" / "audio"


@pytest.fixture
def local_storage(audio_dir: Path) -> StorageTier:
    """Provide a local-only storage tier."""

    return StorageTier(LocalAudioCache(audio_dir))
