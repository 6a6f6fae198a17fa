"""
Gemini Provider — Google Gemini API implementation.

Uses the google.genai SDK. The client is created lazily, so the app
starts without an API key and only fails when a score is requested.

- Retry with exponential backoff on transient errors
- Circuit breaker: after consecutive failures, fail fast for 60s so
  analysis falls back to pattern-only scoring instead of waiting
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from google import genai
from google.genai import types

from adshield.config import settings
from adshield.llm import LLMProvider
from adshield.logging import get_logger

logger = get_logger("llm.gemini")

_CB_FAILURE_THRESHOLD = 3
_CB_RECOVERY_TIMEOUT = 60

_TRANSIENT_MARKERS = (
    "429", "503", "500", "rate", "quota", "timeout",
    "connection", "unavailable", "overloaded",
)


class CircuitBreaker:
    """closed → open → half-open → closed."""

    def __init__(
        self,
        failure_threshold: int = _CB_FAILURE_THRESHOLD,
        recovery_timeout: float = _CB_RECOVERY_TIMEOUT,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._failures = 0
        self._last_failure_time: float = 0
        self._state = "closed"

    @property
    def state(self) -> str:
        if self._state == "open":
            if time.monotonic() - self._last_failure_time >= self.recovery_timeout:
                self._state = "half-open"
        return self._state

    def record_success(self) -> None:
        self._failures = 0
        self._state = "closed"

    def record_failure(self) -> None:
        self._failures += 1
        self._last_failure_time = time.monotonic()
        if self._failures >= self.failure_threshold:
            self._state = "open"
            logger.warning(
                "Circuit breaker OPEN after %d consecutive ML scoring failures; "
                "pattern-only scoring for %ds.",
                self._failures, self.recovery_timeout,
            )

    @property
    def is_open(self) -> bool:
        return self.state == "open"


class CircuitOpenError(Exception):
    """Raised when the circuit breaker is open."""


class GeminiProvider(LLMProvider):
    """Google Gemini provider with retry and circuit breaker."""

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key or settings.GEMINI_API_KEY
        self._model = model or settings.GEMINI_MODEL
        self._client: Optional[genai.Client] = None
        self.circuit_breaker = CircuitBreaker()

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise RuntimeError(
                    "GEMINI_API_KEY not set. Get one from "
                    "https://aistudio.google.com/apikey"
                )
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.0,
        json_mode: bool = False,
        max_retries: int = 3,
    ) -> str:
        if self.circuit_breaker.is_open:
            raise CircuitOpenError(
                "ML scoring circuit breaker is open; too many consecutive failures."
            )

        config = types.GenerateContentConfig(
            temperature=temperature,
            system_instruction=system_instruction,
        )
        if json_mode:
            config.response_mime_type = "application/json"

        client = self._get_client()
        for attempt in range(max_retries):
            try:
                response = await client.aio.models.generate_content(
                    model=self._model,
                    contents=prompt,
                    config=config,
                )
            except Exception as e:
                transient = any(k in str(e).lower() for k in _TRANSIENT_MARKERS)
                if transient and attempt < max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                    continue
                self.circuit_breaker.record_failure()
                raise
            self.circuit_breaker.record_success()
            return response.text

        raise RuntimeError("unreachable")  # pragma: no cover
