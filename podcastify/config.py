"""Configuration model and loaders for Podcastify.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Resolve the provider API key with deterministic source precedence.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `PodcastifyConfig`: normalized runtime settings for the pipeline and server.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `PodcastifyConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import (
    normalize_optional_string,
    parse_permissive_boolean,
    parse_positive_number,
    parse_required_boolean,
)


_DEFAULT_TTS_MODEL = "gemini-2.5-flash-preview-tts"
_SUPPORTED_PROVIDER_IDS = frozenset({"gemini"})
_API_KEY_ENV = "GEMINI_API_KEY"


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class PodcastifyConfig:
    """Runtime configuration for the generation pipeline and its surfaces.

    Attributes:
        audio_dir: Local artifact cache directory.
        chunk_size_chars: Maximum characters per synthesis request.
        provider_tts: TTS provider identifier.
        model_tts: TTS model identifier.
        tts_voice: Optional prebuilt voice name.
        api_key: Optional provider API key default.
        max_retries: Retry ceiling for transient provider failures.
        retry_backoff_base_seconds: First retry delay; doubles per attempt.
        request_timeout_seconds: Per-request provider HTTP timeout.
        max_workers: Concurrent background jobs.
        job_retention_seconds: Age after which job records are swept.
        job_sweep_interval_seconds: Interval between job sweeps.
        sweeper_enabled: Whether the server runs the periodic job sweep.
        archive_retention_seconds: Optional lifetime of exported archives.
        poll_interval_seconds: Client poll interval.
        poll_max_attempts: Client poll attempt ceiling.
        remote_bucket: Remote object-store bucket; remote tier is off when unset.
        remote_endpoint_url: S3-compatible endpoint (e.g. R2).
        remote_region: Remote store region name.
        remote_access_key_id: Remote store access key id.
        remote_secret_access_key: Remote store secret.
        remote_prefix: Key prefix for artifacts in the bucket.
        remote_public_url: Public base URL mapped onto object keys.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    audio_dir: Path = Path("public/audio")
    chunk_size_chars: int = 5000
    provider_tts: str = "gemini"
    model_tts: str = _DEFAULT_TTS_MODEL
    tts_voice: str | None = None
    api_key: str | None = None
    max_retries: int = 3
    retry_backoff_base_seconds: float = 1.0
    request_timeout_seconds: float = 120.0
    max_workers: int = 4
    job_retention_seconds: float = 86400.0
    job_sweep_interval_seconds: float = 3600.0
    sweeper_enabled: bool = True
    archive_retention_seconds: float | None = None
    poll_interval_seconds: float = 2.0
    poll_max_attempts: int = 60
    remote_bucket: str | None = None
    remote_endpoint_url: str | None = None
    remote_region: str | None = None
    remote_access_key_id: str | None = None
    remote_secret_access_key: str | None = None
    remote_prefix: str = "audio/"
    remote_public_url: str | None = None
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    @property
    def remote_enabled(self) -> bool:
        """Return whether a durable remote store is configured."""

        return self.remote_bucket is not None

    def validate(self) -> None:
        """Validate runtime configuration values before pipeline execution."""

        if self.provider_tts not in _SUPPORTED_PROVIDER_IDS:
            supported = ", ".join(sorted(_SUPPORTED_PROVIDER_IDS))
            raise ValueError(
                f"Unsupported `provider_tts` value `{self.provider_tts}`; supported: {supported}."
            )
        if not isinstance(self.model_tts, str) or not self.model_tts.strip():
            raise ValueError("`model_tts` must be a non-empty string.")
        for name in ("chunk_size_chars", "max_workers", "poll_max_attempts"):
            if getattr(self, name) <= 0:
                raise ValueError(f"`{name}` must be a positive integer.")
        if self.max_retries < 0:
            raise ValueError("`max_retries` must be zero or a positive integer.")
        for name in (
            "retry_backoff_base_seconds",
            "request_timeout_seconds",
            "job_retention_seconds",
            "job_sweep_interval_seconds",
            "poll_interval_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"`{name}` must be greater than zero.")
        if self.archive_retention_seconds is not None and self.archive_retention_seconds <= 0:
            raise ValueError("`archive_retention_seconds` must be greater than zero.")
        if not self.remote_prefix or not self.remote_prefix.endswith("/"):
            raise ValueError("`remote_prefix` must be a non-empty prefix ending with `/`.")

    def resolved_api_key(self, sources: RuntimeConfigSources | None = None) -> str | None:
        """Resolve the provider API key.

        Precedence is `cli` > `secure` > `env` > config field default.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        for mapping, key in (
            (resolved_sources.cli, "api_key"),
            (resolved_sources.secure, "api_key"),
            (resolved_sources.env, _API_KEY_ENV),
        ):
            value = normalize_optional_string(mapping.get(key)) if key in mapping else None
            if value is not None:
                return value
        return normalize_optional_string(self.api_key)


# Field name -> (kind, environment variable).
_FIELD_SPECS: dict[str, tuple[str, str]] = {
    "audio_dir": ("path", "PODCASTIFY_AUDIO_DIR"),
    "chunk_size_chars": ("positive_int", "PODCASTIFY_CHUNK_SIZE_CHARS"),
    "provider_tts": ("string", "PODCASTIFY_PROVIDER_TTS"),
    "model_tts": ("string", "PODCASTIFY_MODEL_TTS"),
    "tts_voice": ("string", "PODCASTIFY_TTS_VOICE"),
    "api_key": ("string", _API_KEY_ENV),
    "max_retries": ("non_negative_int", "PODCASTIFY_MAX_RETRIES"),
    "retry_backoff_base_seconds": ("positive_float", "PODCASTIFY_RETRY_BACKOFF_BASE_SECONDS"),
    "request_timeout_seconds": ("positive_float", "PODCASTIFY_REQUEST_TIMEOUT_SECONDS"),
    "max_workers": ("positive_int", "PODCASTIFY_MAX_WORKERS"),
    "job_retention_seconds": ("positive_float", "PODCASTIFY_JOB_RETENTION_SECONDS"),
    "job_sweep_interval_seconds": ("positive_float", "PODCASTIFY_JOB_SWEEP_INTERVAL_SECONDS"),
    "sweeper_enabled": ("boolean", "PODCASTIFY_SWEEPER_ENABLED"),
    "archive_retention_seconds": ("positive_float", "PODCASTIFY_ARCHIVE_RETENTION_SECONDS"),
    "poll_interval_seconds": ("positive_float", "PODCASTIFY_POLL_INTERVAL_SECONDS"),
    "poll_max_attempts": ("positive_int", "PODCASTIFY_POLL_MAX_ATTEMPTS"),
    "remote_bucket": ("string", "PODCASTIFY_REMOTE_BUCKET"),
    "remote_endpoint_url": ("string", "PODCASTIFY_REMOTE_ENDPOINT_URL"),
    "remote_region": ("string", "PODCASTIFY_REMOTE_REGION"),
    "remote_access_key_id": ("string", "PODCASTIFY_REMOTE_ACCESS_KEY_ID"),
    "remote_secret_access_key": ("string", "PODCASTIFY_REMOTE_SECRET_ACCESS_KEY"),
    "remote_prefix": ("string", "PODCASTIFY_REMOTE_PREFIX"),
    "remote_public_url": ("string", "PODCASTIFY_REMOTE_PUBLIC_URL"),
}


class ConfigLoader:
    """Factory methods for creating `PodcastifyConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(_FIELD_SPECS)

    @staticmethod
    def from_yaml(path: Path) -> PodcastifyConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        payload = ConfigLoader._parse_yaml_payload(path_text, path)
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> PodcastifyConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env

        values: dict[str, Any] = {}
        for name, (kind, env_key) in _FIELD_SPECS.items():
            raw = normalize_optional_string(env_map.get(env_key))
            if raw is None:
                continue
            if kind == "boolean":
                parsed = parse_permissive_boolean(raw)
                if parsed is None:
                    raise ValueError(f"Environment `{env_key}` must be a boolean value.")
                values[name] = parsed
                continue
            values[name] = ConfigLoader._coerce(kind, raw, env_key)

        runtime_env = {}
        api_key = normalize_optional_string(env_map.get(_API_KEY_ENV))
        if api_key is not None:
            runtime_env[_API_KEY_ENV] = api_key

        config = PodcastifyConfig(**values, runtime_sources=RuntimeConfigSources(env=runtime_env))
        config.validate()
        return config

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` could not be parsed: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> PodcastifyConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        values: dict[str, Any] = {}
        for name, raw in payload.items():
            kind = _FIELD_SPECS[name][0]
            if kind == "boolean":
                values[name] = (
                    raw if isinstance(raw, bool) else parse_required_boolean(str(raw), name)
                )
                continue
            if normalize_optional_string(raw) is None:
                continue
            values[name] = ConfigLoader._coerce(kind, raw, name)

        config = PodcastifyConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _coerce(kind: str, raw: object, label: str) -> Any:
        """Convert one raw config value into its typed field value."""

        if kind == "path":
            return Path(str(raw).strip())
        if kind == "string":
            return normalize_optional_string(raw)
        if kind == "positive_int":
            return parse_positive_number(raw, label, integer=True)
        if kind == "positive_float":
            return float(parse_positive_number(raw, label, integer=False))
        if kind == "non_negative_int":
            normalized = normalize_optional_string(raw)
            if isinstance(raw, bool) or normalized is None or not normalized.isdigit():
                raise ValueError(f"`{label}` must be zero or a positive integer.")
            return int(normalized)
        raise ValueError(f"Unsupported config field kind `{kind}`.")

