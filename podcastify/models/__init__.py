"""Shared typed data models for Podcastify.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    AssembledAudio,
    EncodedAudio,
    GenerationRequested,
    GenerationResult,
    Job,
    RawPcm,
    SampleFormat,
    StoredAudioInfo,
    SynthesizedAudio,
)

__all__ = [
    "AssembledAudio",
    "EncodedAudio",
    "GenerationRequested",
    "GenerationResult",
    "Job",
    "RawPcm",
    "SampleFormat",
    "StoredAudioInfo",
    "SynthesizedAudio",
]
