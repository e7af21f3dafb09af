"""Podcastify pipeline package.

This package contains the generation orchestrator, its event dispatchers,
stage telemetry, and runtime wiring from configuration.
"""

from .dispatch import InlineDispatcher, JobDispatcher
from .orchestrator import AudioPipeline
from .runtime import build_pipeline

__all__ = ["AudioPipeline", "InlineDispatcher", "JobDispatcher", "build_pipeline"]
