"""Provider sample-format descriptor parsing.

Responsibilities:
- Decide once, at the synthesis boundary, whether a provider payload is raw
  PCM or already-encoded audio.
- Extract PCM parameters from mime-type-like descriptors such as
  `audio/L16;codec=pcm;rate=24000`.
"""

from __future__ import annotations

import re

from ..models.datatypes import EncodedAudio, RawPcm, SampleFormat

DEFAULT_PCM_SAMPLE_RATE = 24000

_PCM_MARKERS = ("l16", "pcm")
_RATE_PATTERN = re.compile(r"rate=(\d+)", re.IGNORECASE)
_CHANNELS_PATTERN = re.compile(r"channels=(\d+)", re.IGNORECASE)
_ENCODED_EXTENSIONS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/ogg": "ogg",
    "audio/opus": "ogg",
    "audio/mp4": "m4a",
    "audio/m4a": "m4a",
    "audio/aac": "m4a",
}


def parse_sample_format(mime_type: str | None) -> SampleFormat:
    """Map a provider mime-type descriptor onto a `RawPcm` or `EncodedAudio` variant.

    Missing descriptors are treated as MPEG audio, matching the provider default.
    """

    descriptor = (mime_type or "audio/mpeg").strip()
    lowered = descriptor.lower()
    if any(marker in lowered for marker in _PCM_MARKERS):
        rate_match = _RATE_PATTERN.search(descriptor)
        channels_match = _CHANNELS_PATTERN.search(descriptor)
        return RawPcm(
            sample_rate=int(rate_match.group(1)) if rate_match else DEFAULT_PCM_SAMPLE_RATE,
            channels=int(channels_match.group(1)) if channels_match else 1,
            bits_per_sample=16,
        )

    base_type = lowered.split(";", 1)[0].strip()
    return EncodedAudio(
        mime_type=base_type or "audio/mpeg",
        extension=_ENCODED_EXTENSIONS.get(base_type, "mp3"),
    )
