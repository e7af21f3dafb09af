"""Unit tests for provider sample-format descriptor parsing."""

from __future__ import annotations

import pytest

from podcastify.models.datatypes import EncodedAudio, RawPcm
from podcastify.tts.formats import parse_sample_format


def test_l16_descriptor_with_rate_is_raw_pcm() -> None:
    """Gemini's `audio/L16;codec=pcm;rate=24000` should map to 24 kHz mono PCM."""

    assert parse_sample_format("audio/L16;codec=pcm;rate=24000") == RawPcm(24000, 1, 16)


def test_pcm_descriptor_reads_rate_and_channels() -> None:
    """Embedded rate and channel parameters should be honored."""

    assert parse_sample_format("audio/pcm; rate=16000; channels=2") == RawPcm(16000, 2, 16)


def test_pcm_descriptor_without_rate_defaults_to_24000() -> None:
    """A PCM marker with no rate falls back to 24000 Hz."""

    assert parse_sample_format("audio/l16").sample_rate == 24000


@pytest.mark.parametrize(
    ("mime_type", "extension"),
    [
        ("audio/mpeg", "mp3"),
        ("audio/wav", "wav"),
        ("audio/ogg; codecs=opus", "ogg"),
        ("audio/mp4", "m4a"),
        ("audio/flac", "mp3"),
    ],
)
def test_encoded_descriptors_keep_their_container(mime_type: str, extension: str) -> None:
    """Compressed audio bypasses PCM wrapping and maps to a file extension."""

    parsed = parse_sample_format(mime_type)

    assert isinstance(parsed, EncodedAudio)
    assert parsed.extension == extension


def test_missing_descriptor_is_treated_as_mpeg() -> None:
    """No descriptor at all means already-encoded MPEG audio."""

    assert parse_sample_format(None) == EncodedAudio(mime_type="audio/mpeg", extension="mp3")
