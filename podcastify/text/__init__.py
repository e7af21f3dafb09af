"""Text segmentation components.

This package provides the sentence-bounded chunker used before the TTS stage.
"""

from .chunking import TextChunker

__all__ = ["TextChunker"]
