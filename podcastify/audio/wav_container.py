"""Canonical 44-byte RIFF/WAVE container encoding.

Responsibilities:
- Wrap raw little-endian linear PCM in a standard WAV header.
- Decode the fixed header back into its format fields for validation.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct

WAV_HEADER_SIZE = 44

_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")
_PCM_FORMAT_TAG = 1
_FMT_CHUNK_SIZE = 16
_MAX_CHUNK_SIZE = 0xFFFFFFFF


@dataclass(frozen=True, slots=True)
class WavHeader:
    """Decoded fields of a canonical 44-byte WAV header."""

    riff_size: int
    format_tag: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int

    def same_format(self, other: WavHeader) -> bool:
        """Return whether two headers describe interchangeable PCM streams."""

        return (
            self.format_tag == other.format_tag
            and self.channels == other.channels
            and self.sample_rate == other.sample_rate
            and self.bits_per_sample == other.bits_per_sample
        )


def pcm_to_wav(
    pcm: bytes,
    sample_rate: int = 24000,
    channels: int = 1,
    bits_per_sample: int = 16,
) -> bytes:
    """Return `pcm` prefixed with a 44-byte PCM WAV header.

    Args:
        pcm: Raw little-endian PCM samples, copied verbatim after the header.
        sample_rate: Samples per second per channel.
        channels: Interleaved channel count.
        bits_per_sample: Sample bit depth (multiple of 8).

    Raises:
        ValueError: If any format parameter is not positive or the bit depth
            is not byte aligned.
    """

    if sample_rate <= 0 or channels <= 0 or bits_per_sample <= 0:
        raise ValueError("WAV sample rate, channels, and bit depth must be positive.")
    if bits_per_sample % 8 != 0:
        raise ValueError("WAV bit depth must be a multiple of 8.")

    block_align = channels * bits_per_sample // 8
    byte_rate = sample_rate * block_align
    data_size = min(len(pcm), _MAX_CHUNK_SIZE)
    riff_size = min(36 + len(pcm), _MAX_CHUNK_SIZE)

    header = _HEADER_STRUCT.pack(
        b"RIFF",
        riff_size,
        b"WAVE",
        b"fmt ",
        _FMT_CHUNK_SIZE,
        _PCM_FORMAT_TAG,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )
    return header + bytes(pcm)


def parse_wav_header(data: bytes) -> WavHeader:
    """Decode the canonical header at the start of a WAV byte buffer.

    Raises:
        ValueError: If the buffer is shorter than the header or the RIFF/WAVE,
            `fmt `, or `data` markers are not where the canonical layout expects.
    """

    if len(data) < WAV_HEADER_SIZE:
        raise ValueError("WAV payload is shorter than the 44-byte header.")

    (
        riff,
        riff_size,
        wave_tag,
        fmt_tag,
        _fmt_size,
        format_tag,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        data_tag,
        data_size,
    ) = _HEADER_STRUCT.unpack_from(data, 0)

    if riff != b"RIFF" or wave_tag != b"WAVE":
        raise ValueError("Payload is not a RIFF/WAVE container.")
    if fmt_tag != b"fmt " or data_tag != b"data":
        raise ValueError("WAV payload does not use the canonical 44-byte header layout.")

    return WavHeader(
        riff_size=riff_size,
        format_tag=format_tag,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits_per_sample,
        data_size=data_size,
    )
