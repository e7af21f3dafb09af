"""TTS synthesizer interfaces and Gemini-backed implementation.

Responsibilities:
- Define the protocol for chunk-level speech synthesis.
- Resolve the provider's sample-format descriptor into a tagged format once,
  so downstream stages never re-parse mime strings.
"""

from __future__ import annotations

from typing import Protocol

from ..models.datatypes import SynthesizedAudio
from .formats import parse_sample_format
from .gemini_client import GeminiSpeechClient


class TTSSynthesizer(Protocol):
    """Protocol for TTS provider implementations."""

    def require_credentials(self) -> None:
        """Raise when the provider cannot be called due to missing configuration."""

    def synthesize(self, text: str, language: str) -> SynthesizedAudio:
        """Synthesize one chunk of text into audio."""


class GeminiTTSSynthesizer:
    """Gemini-backed synthesizer returning raw PCM or encoded audio per chunk."""

    def __init__(
        self,
        client: GeminiSpeechClient,
        model: str = "gemini-2.5-flash-preview-tts",
        voice: str | None = None,
        provider_id: str = "gemini",
    ) -> None:
        """Initialize Gemini synthesizer settings."""

        self.client = client
        self.model = model
        self.voice = voice
        self.provider_id = provider_id

    def require_credentials(self) -> None:
        """Fail fast when no Gemini API key is configured."""

        self.client.require_api_key()

    def synthesize(self, text: str, language: str) -> SynthesizedAudio:
        """Synthesize one chunk; Gemini detects the spoken language from the text."""

        _ = language
        audio, mime_type = self.client.synthesize_speech(
            model=self.model,
            text=text,
            voice=self.voice,
        )
        return SynthesizedAudio(data=audio, sample_format=parse_sample_format(mime_type))
