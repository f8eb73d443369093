"""
Gemini backend for the review, SEO advice and assisted-extraction calls.
"""
from __future__ import annotations

import threading
import time
from typing import Optional

from google import genai
from google.genai import types

from config import settings
from generative.base import Grounding, LLMProvider
from log_config import get_logger

logger = get_logger("generative.gemini")

FALLBACK_MODEL = "gemini-2.5-flash"
HTTP_TIMEOUT_MS = 60_000

# Attempts per model; only transient errors are retried
PRIMARY_ATTEMPTS = 2
FALLBACK_ATTEMPTS = 1

_TRANSIENT_MARKERS = (
    "429", "500", "503", "rate", "quota", "timeout",
    "connection", "unavailable", "overloaded",
)


def _is_transient(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


# ── Circuit breaker ───────────────────────────────────────────────────────────

class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    Counts consecutive failed calls. Once `failure_threshold` is reached the
    breaker opens and callers fail fast until `recovery_timeout` seconds have
    passed, after which one call is let through ("half-open").
    """

    def __init__(self, failure_threshold: int = 3, recovery_timeout: float = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._failures = 0
        self._opened_at: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> str:
        with self._lock:
            if self._opened_at is None:
                return "closed"
            if time.monotonic() - self._opened_at >= self.recovery_timeout:
                return "half-open"
            return "open"

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    def record_success(self) -> None:
        with self._lock:
            self._failures = 0
            self._opened_at = None

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._failures < self.failure_threshold:
                return
            self._opened_at = time.monotonic()
        logger.warning(
            "Gemini calls suspended for %ss after %d consecutive failures",
            self.recovery_timeout, self.failure_threshold,
        )


# ── Provider ──────────────────────────────────────────────────────────────────

class GeminiProvider(LLMProvider):

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key or settings.GEMINI_API_KEY
        self._model = model or settings.GEMINI_MODEL
        self._client: Optional[genai.Client] = None
        self.circuit_breaker = CircuitBreaker()

    @property
    def available(self) -> bool:
        return bool(self._api_key)

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
        grounding: Optional[str] = None,
    ) -> str:
        if self.circuit_breaker.is_open:
            raise CircuitOpenError("Gemini is unavailable; retry later")

        config = _request_config(system_instruction, temperature, json_mode, grounding)
        chain = [(self._model, PRIMARY_ATTEMPTS)]
        if self._model != FALLBACK_MODEL:
            chain.append((FALLBACK_MODEL, FALLBACK_ATTEMPTS))

        error: Optional[Exception] = None
        for model, attempts in chain:
            try:
                text = self._call(model, prompt, config, attempts)
            except Exception as exc:
                logger.warning("Gemini model %s failed: %s", model, exc, extra={"error": type(exc).__name__})
                error = exc
                continue
            self.circuit_breaker.record_success()
            return text

        self.circuit_breaker.record_failure()
        raise error

    def _client_or_raise(self) -> genai.Client:
        # Created on first use so the app starts without a key
        if self._client is None:
            if not self._api_key:
                raise RuntimeError("GEMINI_API_KEY is not set")
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=HTTP_TIMEOUT_MS),
            )
        return self._client

    def _call(self, model: str, prompt: str, config: types.GenerateContentConfig, attempts: int) -> str:
        client = self._client_or_raise()
        for attempt in range(attempts):
            try:
                response = client.models.generate_content(model=model, contents=prompt, config=config)
                return response.text or ""
            except Exception as exc:
                if attempt == attempts - 1 or not _is_transient(exc):
                    raise
                time.sleep(2 ** attempt)
        return ""


def _request_config(
    system_instruction: Optional[str],
    temperature: float,
    json_mode: bool,
    grounding: Optional[str],
) -> types.GenerateContentConfig:
    config = types.GenerateContentConfig(temperature=temperature, system_instruction=system_instruction)
    if json_mode:
        config.response_mime_type = "application/json"
    if grounding == Grounding.URL_CONTEXT:
        config.tools = [types.Tool(url_context=types.UrlContext())]
    elif grounding == Grounding.GOOGLE_SEARCH:
        config.tools = [types.Tool(google_search=types.GoogleSearch())]
    return config
