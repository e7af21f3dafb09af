"""Integration-test fixtures for deterministic provider behavior."""

from __future__ import annotations

import pytest

from podcastify.tts.gemini_client import GeminiSpeechClient


class ProviderCallLog:
    """Requests observed by the mocked Gemini client."""

    def __init__(self) -> None:
        self.api_keys: list[str] = []
        self.texts: list[str] = []


@pytest.fixture(autouse=True)
def provider_calls(monkeypatch: pytest.MonkeyPatch) -> ProviderCallLog:
    """Mock Gemini speech calls in integration tests to avoid network access."""

    calls = ProviderCallLog()

    def _mock_synthesize_speech(
        self: GeminiSpeechClient, *, model: str, text: str, voice: str | None = None
    ) -> tuple[bytes, str]:
        """Return two bytes of 24 kHz PCM per character, after the usual key check."""

        self.require_api_key()
        calls.api_keys.append(self.api_key)
        calls.texts.append(text)
        return b"\x00\x00" * len(text), "audio/L16;codec=pcm;rate=24000"

    monkeypatch.setattr(GeminiSpeechClient, "synthesize_speech", _mock_synthesize_speech)
    return calls
