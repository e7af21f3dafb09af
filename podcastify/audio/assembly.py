"""Multi-chunk audio assembly.

Responsibilities:
- Concatenate ordered per-chunk synthesis results into one payload.
- Wrap raw PCM in a WAV container exactly once, over the full payload.
- Pass already-encoded audio through by plain concatenation.
"""

from __future__ import annotations

from ..models.datatypes import AssembledAudio, EncodedAudio, RawPcm, SynthesizedAudio
from .wav_container import pcm_to_wav


class AudioAssembler:
    """Turn ordered chunk audio into one playable artifact payload."""

    def assemble(self, parts: list[SynthesizedAudio]) -> AssembledAudio:
        """Assemble chunk payloads in order.

        An empty part list yields a header-only (silent) WAV so that a request
        whose text chunks to nothing still completes with a valid artifact.

        Raises:
            ValueError: If chunks disagree on sample format.
        """

        if not parts:
            return AssembledAudio(data=pcm_to_wav(b""), extension="wav", content_type="audio/wav")

        sample_format = parts[0].sample_format
        for index, part in enumerate(parts[1:], start=2):
            if part.sample_format != sample_format:
                raise ValueError(
                    f"Chunk {index} returned {part.sample_format}, expected {sample_format}."
                )

        payload = b"".join(part.data for part in parts)
        if isinstance(sample_format, RawPcm):
            return AssembledAudio(
                data=pcm_to_wav(
                    payload,
                    sample_rate=sample_format.sample_rate,
                    channels=sample_format.channels,
                    bits_per_sample=sample_format.bits_per_sample,
                ),
                extension="wav",
                content_type="audio/wav",
            )

        encoded: EncodedAudio = sample_format
        return AssembledAudio(
            data=payload,
            extension=encoded.extension,
            content_type=encoded.mime_type,
        )
