"""Generative model provider abstractions."""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request

from .config import LLMConfig

LOGGER = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS = ("429", "resource_exhausted", "quota", "rate limit")


class LLMError(RuntimeError):
    """Model call failed or produced no usable text."""


class LLMRateLimitError(LLMError):
    """Model provider refused the call due to quota or rate limiting."""


def is_rate_limit_message(message: str) -> bool:
    lowered = (message or "").lower()
    return any(marker in lowered for marker in _RATE_LIMIT_MARKERS)


def _http_error(provider: str, exc: urllib.error.HTTPError) -> LLMError:
    try:
        body = exc.read().decode("utf-8", errors="replace")
    except Exception:  # pragma: no cover - body is best effort
        body = ""
    message = f"{provider} HTTP error: {exc.code}"
    if exc.code == 429 or is_rate_limit_message(body):
        return LLMRateLimitError(message)
    return LLMError(message)


class LLMProvider:
    name = "llm"

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the raw response text."""
        raise NotImplementedError


class GeminiProvider(LLMProvider):
    """Call Google Gemini (Generative Language) models."""

    name = "gemini"

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    async def complete(self, prompt: str) -> str:
        payload = self._build_payload(prompt)
        return await asyncio.to_thread(self._call_api, payload)

    def _build_payload(self, prompt: str) -> dict:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt}],
                }
            ],
            "generationConfig": {
                "temperature": 0.2,
                "maxOutputTokens": 256,
                "responseMimeType": "application/json",
            },
        }

    def _call_api(self, payload: dict) -> str:
        if not self.config.gemini_api_key:
            raise LLMError("GEMINI_API_KEY is not set")
        model = (self.config.gemini_model or "").strip()
        if not model:
            raise LLMError("GEMINI_MODEL is not set")
        endpoint = f"{self.config.gemini_base_url.rstrip('/')}/models/{urllib.parse.quote(model)}:generateContent"

        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(
            url=endpoint,
            data=data,
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self.config.gemini_api_key,
            },
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.config.gemini_timeout) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise _http_error("Gemini", exc) from exc
        except urllib.error.URLError as exc:
            raise LLMError(f"Gemini request failed: {exc.reason}") from exc

        parsed = json.loads(body)
        candidates = parsed.get("candidates") or []
        for candidate in candidates:
            content = candidate.get("content") or {}
            if not isinstance(content, dict):
                continue
            parts = content.get("parts") or []
            if not isinstance(parts, list):
                continue
            for part in parts:
                if isinstance(part, dict):
                    text = part.get("text")
                    if isinstance(text, str) and text.strip():
                        return text

        prompt_feedback = parsed.get("promptFeedback")
        if isinstance(prompt_feedback, dict):
            block_reason = prompt_feedback.get("blockReason")
            if block_reason:
                raise LLMError(f"Gemini blocked prompt: {block_reason}")
        raise LLMError("LLM response missing content")


class OpenAIProvider(LLMProvider):
    """Call OpenAI-compatible chat completion endpoints."""

    name = "openai"

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    async def complete(self, prompt: str) -> str:
        payload = self._build_payload(prompt)
        return await asyncio.to_thread(self._call_api, payload)

    def _build_payload(self, prompt: str) -> dict:
        return {
            "model": self.config.openai_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.2,
            "max_tokens": 256,
            "response_format": {"type": "json_object"},
        }

    def _call_api(self, payload: dict) -> str:
        if not self.config.openai_api_key:
            raise LLMError("OPENAI_API_KEY is not set")

        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(
            url=f"{self.config.openai_base_url.rstrip('/')}/chat/completions",
            data=data,
            headers={
                "Authorization": f"Bearer {self.config.openai_api_key}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.config.openai_timeout) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise _http_error("OpenAI", exc) from exc
        except urllib.error.URLError as exc:
            raise LLMError(f"OpenAI request failed: {exc.reason}") from exc

        parsed = json.loads(body)
        choices = parsed.get("choices") or []
        if not choices:
            raise LLMError("LLM response missing choices")
        message = choices[0].get("message") or {}
        content = message.get("content")
        if not content:
            raise LLMError("LLM response missing content")
        return str(content)


def build_llm_provider(config: LLMConfig, logger: logging.Logger | None = None) -> LLMProvider | None:
    """Return the configured provider, or ``None`` when no API key is set."""
    log = logger or LOGGER
    if not config.has_credentials:
        key_name = "OPENAI_API_KEY" if config.provider == "openai" else "GEMINI_API_KEY"
        log.warning("%s not set. Command interpretation will use fallback heuristics.", key_name)
        return None
    if config.provider == "openai":
        return OpenAIProvider(config)
    return GeminiProvider(config)
