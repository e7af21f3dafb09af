"""WAV artifact merge stage.

Responsibilities:
- Merge ordered WAV artifacts into one new WAV artifact.
- Reject inputs whose sample rate, channel count, or bit depth differ.
- Never mutate inputs; the merged result is always stored as a new artifact.
"""

from __future__ import annotations

from loguru import logger

from ..errors import PipelineStageError
from ..models.datatypes import StoredAudioInfo
from ..storage.tier import StorageTier
from .wav_container import WAV_HEADER_SIZE, parse_wav_header, pcm_to_wav


class AudioMerger:
    """Merge WAV payloads sharing one PCM format into a single WAV."""

    def merge_payloads(self, payloads: list[bytes]) -> bytes:
        """Concatenate the PCM data of every payload behind one rebuilt header.

        The first payload's format fields are reused and the size fields are
        recomputed for the combined data.
        """

        if not payloads:
            raise PipelineStageError(
                stage="merge",
                detail="No audio files provided.",
                hint="Pass at least one WAV artifact to merge.",
            )

        headers = []
        for index, payload in enumerate(payloads, start=1):
            try:
                headers.append(parse_wav_header(payload))
            except ValueError as exc:
                raise PipelineStageError(
                    stage="merge",
                    detail=f"Audio file {index} is not a mergeable WAV: {exc}",
                    hint="Only WAV artifacts with canonical 44-byte headers can be merged.",
                ) from exc

        first = headers[0]
        for index, header in enumerate(headers[1:], start=2):
            if not header.same_format(first):
                raise PipelineStageError(
                    stage="merge",
                    detail=(
                        f"Incompatible WAV parameters for audio file {index}: "
                        f"{header.sample_rate} Hz/{header.channels} ch/{header.bits_per_sample} bit "
                        f"vs {first.sample_rate} Hz/{first.channels} ch/{first.bits_per_sample} bit."
                    ),
                    hint="Merge only artifacts generated with the same audio format.",
                )

        pcm = b"".join(payload[WAV_HEADER_SIZE:] for payload in payloads)
        return pcm_to_wav(
            pcm,
            sample_rate=first.sample_rate,
            channels=first.channels,
            bits_per_sample=first.bits_per_sample,
        )


class ArtifactMerger:
    """Merge stored artifacts by location and persist the result."""

    def __init__(self, storage: StorageTier, merger: AudioMerger | None = None) -> None:
        self.storage = storage
        self.merger = merger or AudioMerger()

    def merge(self, locations: list[str]) -> StoredAudioInfo:
        """Read, merge, and store artifacts in the given order."""

        logger.info("[Merge] Merging audio files: {}", locations)
        payloads = [self.storage.read(location) for location in locations]
        merged = self.merger.merge_payloads(payloads)
        stored = self.storage.store_named("merged", merged, "wav", "audio/wav")
        logger.info("[Merge] Created merged file: {}", stored.location)
        return stored
