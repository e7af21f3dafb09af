"""Top-level package for Podcastify.

Podcastify turns long-form text into spoken audio: it chunks text for a
speech provider, synthesizes chunks with bounded retries, assembles WAV
artifacts, and tiers them across a local cache and a remote store. The main
orchestration entry point is `AudioPipeline`.
"""

from .pipeline import AudioPipeline

__all__ = ["AudioPipeline", "__version__"]

__version__ = "0.1.0"
