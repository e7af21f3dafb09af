"""Gemini HTTP client for speech synthesis.

Responsibilities:
- Send `generateContent` audio requests to the Gemini REST API.
- Retry transient provider failures with bounded exponential backoff.
- Extract the inline audio payload and its declared mime type.
- Raise classified provider exceptions for pipeline-level error mapping.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
import socket
import threading
import time
from typing import Any, Callable

from loguru import logger
import requests

from .rate_limiter import RateLimiter

TRANSIENT_FAILURE_KINDS = frozenset({"server_error", "timeout", "transport"})


class GeminiProviderError(RuntimeError):
    """Raised when a Gemini request fails or returns malformed output."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for stage-aware diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code

    @property
    def is_transient(self) -> bool:
        """Return whether the failure is worth retrying."""

        return self.failure_kind in TRANSIENT_FAILURE_KINDS


class GeminiSpeechClient:
    """Minimal requests-based Gemini client returning inline synthesized audio."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 120.0,
        max_retries: int = 3,
        retry_backoff_base_seconds: float = 1.0,
        rate_limiter: RateLimiter | None = None,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize HTTP settings and retry policy."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(0, int(max_retries))
        self.retry_backoff_base_seconds = retry_backoff_base_seconds
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self._sleeper = sleeper
        self._retry_lock = threading.Lock()
        self.retry_attempt_count = 0

    def require_api_key(self) -> None:
        """Require API key presence before issuing Gemini requests."""

        if not self.api_key:
            raise GeminiProviderError(
                "GEMINI_API_KEY environment variable is not set.",
                failure_kind="invalid_api_key",
            )

    def synthesize_speech(
        self,
        *,
        model: str,
        text: str,
        voice: str | None = None,
    ) -> tuple[bytes, str]:
        """Return `(audio_bytes, mime_type)` for one text input."""

        self.require_api_key()

        generation_config: dict[str, Any] = {"responseModalities": ["AUDIO"]}
        if voice:
            generation_config["speechConfig"] = {
                "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice}}
            }
        payload = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": generation_config,
        }
        raw_payload = self._post_json_with_retry(
            endpoint_path=f"/models/{model}:generateContent",
            payload=payload,
            rate_limit_key=f"gemini:tts:{model}",
        )
        return self._extract_inline_audio(raw_payload)

    def _post_json_with_retry(
        self,
        *,
        endpoint_path: str,
        payload: dict[str, Any],
        rate_limit_key: str,
    ) -> bytes:
        """POST JSON with a bounded retry loop over transient failures.

        Backoff starts at `retry_backoff_base_seconds` and doubles per retry. The
        last error is re-raised once `max_retries` retries are exhausted.
        """

        delay = self.retry_backoff_base_seconds
        attempt = 0
        while True:
            self.rate_limiter.acquire(rate_limit_key)
            try:
                return self._execute_json_post(endpoint_path=endpoint_path, payload=payload)
            except GeminiProviderError as exc:
                if not exc.is_transient or attempt >= self.max_retries:
                    raise
                attempt += 1
                with self._retry_lock:
                    self.retry_attempt_count += 1
                logger.warning(
                    "Gemini {} failure, retry {}/{} in {:.1f}s: {}",
                    exc.failure_kind,
                    attempt,
                    self.max_retries,
                    delay,
                    exc,
                )
                self._sleeper(delay)
                delay *= 2

    def _execute_json_post(self, *, endpoint_path: str, payload: dict[str, Any]) -> bytes:
        """Execute one Gemini JSON POST request and map failures consistently."""

        endpoint = f"{self.base_url}{endpoint_path}"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = "Gemini request timed out."
            else:
                detail = f"Gemini request transport error: {self._short_message(str(exc))}"
            raise GeminiProviderError(detail, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise GeminiProviderError("Gemini request timed out.", failure_kind="timeout") from exc

    @classmethod
    def _extract_inline_audio(cls, raw_payload: bytes) -> tuple[bytes, str]:
        """Extract the first inline audio part from a `generateContent` response."""

        try:
            payload = json.loads(raw_payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GeminiProviderError(
                "Gemini returned invalid JSON payload.",
                failure_kind="malformed_response",
            ) from exc

        candidates = payload.get("candidates") if isinstance(payload, dict) else None
        if not isinstance(candidates, list) or not candidates:
            raise GeminiProviderError(
                "Invalid response format from Gemini TTS API.",
                failure_kind="malformed_response",
            )
        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise GeminiProviderError(
                "Invalid response format from Gemini TTS API.",
                failure_kind="malformed_response",
            )

        for part in parts:
            inline = part.get("inlineData") if isinstance(part, dict) else None
            if not isinstance(inline, dict):
                continue
            mime_type = inline.get("mimeType")
            if not isinstance(mime_type, str) or not mime_type.startswith("audio/"):
                continue
            encoded = inline.get("data")
            if not isinstance(encoded, str) or not encoded:
                break
            try:
                audio = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise GeminiProviderError(
                    "Gemini audio payload is not valid base64.",
                    failure_kind="malformed_response",
                ) from exc
            return audio, mime_type

        raise GeminiProviderError(
            "No audio data found in Gemini response.",
            failure_kind="malformed_response",
        )

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        return bytes(response.content or b"").decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bAIza[0-9A-Za-z_-]{20,}\b", "[redacted-key]", text)
        return re.sub(r"(?i)(key=)[^&\s\"']+", r"\1[redacted-key]", redacted)

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise provider message and optional provider status code."""

        if not body:
            return "", None

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body)), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                status_value = error_payload.get("status")
                if isinstance(status_value, str) and status_value.strip():
                    provider_code = status_value.strip()
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()

        if message is None:
            message = body
        return cls._short_message(cls._redact_sensitive_tokens(message)), provider_code

    @staticmethod
    def _classify_http_failure(status_code: int, provider_message: str) -> str:
        """Classify Gemini HTTP errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        if status_code in {401, 403} or "api key" in message_lower:
            return "invalid_api_key"
        if status_code == 408:
            return "timeout"
        if status_code == 429:
            return "rate_limited"
        if status_code >= 500:
            return "server_error"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    @classmethod
    def _http_error_to_provider_error(cls, exc: requests.HTTPError) -> GeminiProviderError:
        """Convert HTTP errors into normalized provider exceptions with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = cls._decode_error_body(exc)
        provider_message, provider_code = cls._extract_provider_message(body)
        failure_kind = cls._classify_http_failure(status_code, provider_message)

        headline = {
            "invalid_api_key": "Gemini authentication failed",
            "rate_limited": "Gemini rate limit exceeded",
            "server_error": "Gemini TTS API error",
            "timeout": "Gemini request timed out",
        }.get(failure_kind, "Gemini request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."

        return GeminiProviderError(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )
