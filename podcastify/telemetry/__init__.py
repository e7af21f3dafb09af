"""Telemetry helpers for Podcastify runs."""

from .logger import RunLogger

__all__ = ["RunLogger"]
