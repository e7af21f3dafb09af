"""Integration tests for the HTTP API surface."""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient
import httpx
import pytest

from podcastify.api import create_app
from podcastify.audio.wav_container import pcm_to_wav
from podcastify.jobs.store import JobStore
from podcastify.jobs.sweeper import JobSweeper
from podcastify.pipeline.orchestrator import AudioPipeline
from podcastify.storage.tier import StorageTier


@pytest.fixture
def pipeline(fake_synthesizer, local_storage: StorageTier) -> AudioPipeline:
    """Provide an inline pipeline so submissions finish before the response."""

    return AudioPipeline(synthesizer=fake_synthesizer, storage=local_storage)


@pytest.fixture
def client(pipeline: AudioPipeline) -> TestClient:
    return TestClient(create_app(pipeline))


def _submit(client: TestClient, **overrides: str) -> httpx.Response:
    body = {"text": "Hello there.", "language": "en", "contentId": "ch1", "sessionId": "s1"}
    body.update(overrides)
    return client.post("/api/tts-async", json=body)


def test_submission_starts_job_then_serves_cache(client: TestClient, fake_synthesizer) -> None:
    first = _submit(client)

    assert first.status_code == 200
    payload = first.json()
    assert payload["cached"] is False
    assert payload["contentId"] == "ch1"
    assert payload["language"] == "en"
    assert payload["status"] == "completed"
    assert payload["message"] == "Audio generation started in background"

    job = client.get("/api/jobs", params={"jobId": payload["jobId"]}).json()["job"]
    assert job["status"] == "completed"
    assert job["progress"] == 100
    assert job["location"].startswith("/audio/ch1-en-")

    second = _submit(client).json()
    assert second == {
        "audioUrl": job["location"],
        "contentId": "ch1",
        "language": "en",
        "cached": True,
        "jobId": None,
    }
    assert len(fake_synthesizer.calls) == 1


def test_stored_artifacts_are_served_under_audio(client: TestClient, audio_dir: Path) -> None:
    job_id = _submit(client).json()["jobId"]
    location = client.get("/api/jobs", params={"jobId": job_id}).json()["job"]["location"]

    response = client.get(location)

    assert response.status_code == 200
    assert response.content == (audio_dir / location.rsplit("/", 1)[-1]).read_bytes()


def test_session_listing_and_job_lookup_errors(client: TestClient) -> None:
    _submit(client, contentId="ch1")
    _submit(client, contentId="ch2")
    _submit(client, contentId="ch3", sessionId="other")

    jobs = client.get("/api/jobs", params={"sessionId": "s1"}).json()["jobs"]
    assert sorted(job["contentId"] for job in jobs) == ["ch1", "ch2"]

    missing = client.get("/api/jobs", params={"jobId": "nope"})
    assert missing.status_code == 404
    assert missing.json() == {"error": "Job not found"}

    assert client.get("/api/jobs").status_code == 400


@pytest.mark.parametrize(
    ("body", "field"),
    [
        ({"language": "en", "contentId": "ch1", "sessionId": "s1"}, "text"),
        ({"text": 12, "language": "en", "contentId": "ch1", "sessionId": "s1"}, "text"),
        (
            {"text": "x", "language": "en", "contentId": "ch1", "sessionId": "s1", "voice": "a"},
            "voice",
        ),
    ],
)
def test_malformed_submissions_return_400(client: TestClient, body: dict, field: str) -> None:
    response = client.post("/api/tts-async", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": f"Invalid request fields: {field}."}


def test_pipeline_request_errors_map_to_400(client: TestClient) -> None:
    response = _submit(client, text="")

    assert response.status_code == 400
    assert response.json()["stage"] == "request"
    assert response.json()["error"] == "`text` must be a non-empty string."


def test_missing_provider_key_maps_to_500(client: TestClient, fake_synthesizer) -> None:
    fake_synthesizer.missing_key = True

    response = _submit(client)

    assert response.status_code == 500
    assert response.json()["stage"] == "config"
    assert "GEMINI_API_KEY" in response.json()["error"]


def test_failed_generation_is_visible_through_job_status(
    client: TestClient, fake_synthesizer
) -> None:
    fake_synthesizer.fail_on_call = 1

    job_id = _submit(client).json()["jobId"]

    job = client.get("/api/jobs", params={"jobId": job_id}).json()["job"]
    assert job["status"] == "failed"
    assert "HTTP 503" in job["error"]
    assert job["location"] is None


def test_merge_audio_creates_new_artifact(client: TestClient, local_storage: StorageTier) -> None:
    first = local_storage.store("ch1", "en", pcm_to_wav(b"\x01" * 1000))
    second = local_storage.store("ch2", "en", pcm_to_wav(b"\x02" * 2000))

    response = client.post(
        "/api/merge-audio", json={"audioFiles": [first.location, second.location]}
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["fileName"].startswith("merged-")
    assert payload["url"] == f"/audio/{payload['fileName']}"
    assert len(client.get(payload["url"]).content) == 3044


def test_merge_audio_error_statuses(client: TestClient, local_storage: StorageTier) -> None:
    first = local_storage.store("ch1", "en", pcm_to_wav(b"\x01" * 10, sample_rate=24000))
    second = local_storage.store("ch2", "en", pcm_to_wav(b"\x02" * 10, sample_rate=44100))

    mismatch = client.post(
        "/api/merge-audio", json={"audioFiles": [first.location, second.location]}
    )
    missing = client.post("/api/merge-audio", json={"audioFiles": ["/audio/gone-1.wav"]})
    empty = client.post("/api/merge-audio", json={"audioFiles": []})

    assert mismatch.status_code == 400
    assert mismatch.json()["stage"] == "merge"
    assert missing.status_code == 404
    assert empty.status_code == 400


def test_zip_audio_bundles_artifacts(client: TestClient, local_storage: StorageTier) -> None:
    first = local_storage.store("ch1", "en", pcm_to_wav(b"\x01" * 10))
    second = local_storage.store("ch2", "en", pcm_to_wav(b"\x02" * 10))

    response = client.post("/api/zip-audio", json={"audioFiles": [first.location, second.location]})

    assert response.status_code == 200
    payload = response.json()
    assert payload["filename"].startswith("podcast-bundle-")
    assert payload["filename"].endswith(".zip")
    assert payload["fileCount"] == 2
    assert len(client.get(payload["url"]).content) == payload["size"]


def test_zip_audio_requires_files(client: TestClient) -> None:
    response = client.post("/api/zip-audio", json={"audioFiles": []})

    assert response.status_code == 400
    assert response.json()["stage"] == "archive"


def test_lifespan_runs_sweeper_and_health(pipeline: AudioPipeline) -> None:
    sweeper = JobSweeper(JobStore(), interval_seconds=3600)

    with TestClient(create_app(pipeline, sweeper=sweeper)) as client:
        assert sweeper.running is True
        assert client.get("/health").json() == {"status": "ok"}

    assert sweeper.running is False
