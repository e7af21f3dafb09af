"""Unit tests for YAML/env config loading and API key precedence."""

from __future__ import annotations

from pathlib import Path

import pytest

from podcastify.config import ConfigLoader, PodcastifyConfig, RuntimeConfigSources


def test_from_yaml_loads_typed_values(tmp_path: Path) -> None:
    """YAML values are coerced into their dataclass field types."""

    config_path = tmp_path / "podcastify.yaml"
    config_path.write_text(
        "\n".join(
            [
                "audio_dir: ./cache/audio",
                "chunk_size_chars: '4000'",
                "max_retries: 0",
                "retry_backoff_base_seconds: 0.5",
                "sweeper_enabled: 'no'",
                "tts_voice: Kore",
                "remote_bucket: podcasts",
                "remote_public_url: https://cdn.example",
            ]
        ),
        encoding="utf-8",
    )

    config = ConfigLoader.from_yaml(config_path)

    assert config.audio_dir == Path("cache/audio")
    assert config.chunk_size_chars == 4000
    assert config.max_retries == 0
    assert config.retry_backoff_base_seconds == 0.5
    assert config.sweeper_enabled is False
    assert config.tts_voice == "Kore"
    assert config.remote_enabled is True
    assert config.max_workers == 4


def test_from_yaml_empty_file_uses_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("", encoding="utf-8")

    config = ConfigLoader.from_yaml(config_path)

    assert config.chunk_size_chars == 5000
    assert config.remote_enabled is False


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("chunk_size: 10\n", "unsupported key"),
        ("- a\n- b\n", "top-level mapping"),
        ("chunk_size_chars: [\n", "could not be parsed"),
        ("chunk_size_chars: 0\n", "greater than zero"),
        ("max_retries: -1\n", "zero or a positive integer"),
        ("provider_tts: openai\n", "Unsupported `provider_tts`"),
        ("remote_prefix: audio\n", "ending with `/`"),
        ("sweeper_enabled: maybe\n", "boolean value"),
    ],
)
def test_from_yaml_rejects_invalid_payloads(tmp_path: Path, content: str, message: str) -> None:
    config_path = tmp_path / "bad.yaml"
    config_path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match=message):
        ConfigLoader.from_yaml(config_path)


def test_from_env_reads_prefixed_variables() -> None:
    config = ConfigLoader.from_env(
        {
            "PODCASTIFY_AUDIO_DIR": "/srv/audio",
            "PODCASTIFY_MAX_WORKERS": "8",
            "PODCASTIFY_POLL_INTERVAL_SECONDS": "0.25",
            "PODCASTIFY_SWEEPER_ENABLED": "off",
            "GEMINI_API_KEY": "  env-key  ",
            "UNRELATED": "ignored",
        }
    )

    assert config.audio_dir == Path("/srv/audio")
    assert config.max_workers == 8
    assert config.poll_interval_seconds == 0.25
    assert config.sweeper_enabled is False
    assert config.runtime_sources.env == {"GEMINI_API_KEY": "env-key"}
    assert config.resolved_api_key() == "env-key"


def test_from_env_rejects_invalid_boolean() -> None:
    with pytest.raises(ValueError, match="PODCASTIFY_SWEEPER_ENABLED"):
        ConfigLoader.from_env({"PODCASTIFY_SWEEPER_ENABLED": "sometimes"})


def test_api_key_precedence_is_cli_secure_env_default() -> None:
    config = PodcastifyConfig(api_key="file-key")

    assert config.resolved_api_key() == "file-key"
    assert config.resolved_api_key(RuntimeConfigSources(env={"GEMINI_API_KEY": "env"})) == "env"
    assert (
        config.resolved_api_key(
            RuntimeConfigSources(secure={"api_key": "secure"}, env={"GEMINI_API_KEY": "env"})
        )
        == "secure"
    )
    assert (
        config.resolved_api_key(
            RuntimeConfigSources(
                cli={"api_key": "cli"},
                secure={"api_key": "secure"},
                env={"GEMINI_API_KEY": "env"},
            )
        )
        == "cli"
    )
    assert config.resolved_api_key(RuntimeConfigSources(cli={"api_key": "   "})) == "file-key"


def test_missing_api_key_resolves_to_none() -> None:
    assert PodcastifyConfig().resolved_api_key() is None
