"""Provider factory helpers for the TTS stage.

Responsibilities:
- Resolve provider identifiers to concrete synthesizer implementations.
- Keep orchestration independent from concrete provider class construction.

Notes:
- Only `gemini` is implemented at the moment.
"""

from __future__ import annotations

from .tts.gemini_client import GeminiSpeechClient
from .tts.synthesizer import GeminiTTSSynthesizer, TTSSynthesizer


class ProviderFactory:
    """Factory for provider-backed stage clients used by the pipeline."""

    @staticmethod
    def create_tts_synthesizer(
        provider_id: str,
        model: str,
        api_key: str | None = None,
        *,
        voice: str | None = None,
        timeout_seconds: float = 120.0,
        max_retries: int = 3,
        retry_backoff_base_seconds: float = 1.0,
    ) -> TTSSynthesizer:
        """Create a TTS synthesizer client for a configured provider identifier."""

        if provider_id == "gemini":
            client = GeminiSpeechClient(
                api_key=api_key,
                timeout_seconds=timeout_seconds,
                max_retries=max_retries,
                retry_backoff_base_seconds=retry_backoff_base_seconds,
            )
            return GeminiTTSSynthesizer(
                client=client,
                model=model,
                voice=voice,
                provider_id=provider_id,
            )
        raise ValueError(f"Unsupported TTS provider `{provider_id}`.")
