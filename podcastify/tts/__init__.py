"""Text-to-speech provider abstractions.

This package contains the Gemini HTTP client, sample-format parsing, and the
synthesizer interface used by the pipeline TTS stage.
"""

from .formats import parse_sample_format
from .gemini_client import GeminiProviderError, GeminiSpeechClient
from .synthesizer import GeminiTTSSynthesizer, TTSSynthesizer

__all__ = [
    "GeminiProviderError",
    "GeminiSpeechClient",
    "GeminiTTSSynthesizer",
    "TTSSynthesizer",
    "parse_sample_format",
]
