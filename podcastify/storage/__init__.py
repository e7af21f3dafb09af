"""Artifact storage tiers.

This package contains the local filesystem cache, the S3-compatible remote
object store, and the cache-first tier policy combining them.
"""

from .local import ARTIFACT_EXTENSIONS, LocalAudioCache
from .remote import RemoteObject, RemoteObjectStore
from .tier import StorageTier, artifact_prefix

__all__ = [
    "ARTIFACT_EXTENSIONS",
    "LocalAudioCache",
    "RemoteObject",
    "RemoteObjectStore",
    "StorageTier",
    "artifact_prefix",
]
