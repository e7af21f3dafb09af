"""Audio container, assembly, merge, and archive components."""

from .archive import ArchiveExporter
from .assembly import AudioAssembler
from .merger import ArtifactMerger, AudioMerger
from .wav_container import WAV_HEADER_SIZE, WavHeader, parse_wav_header, pcm_to_wav

__all__ = [
    "ArchiveExporter",
    "ArtifactMerger",
    "AudioAssembler",
    "AudioMerger",
    "WAV_HEADER_SIZE",
    "WavHeader",
    "parse_wav_header",
    "pcm_to_wav",
]
