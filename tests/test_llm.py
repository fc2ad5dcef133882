"""Tests for generative model providers."""

from __future__ import annotations

import io
import json
import urllib.error
from typing import Any
from unittest.mock import MagicMock, Mock, patch

import pytest
from encore.assistant.config import LLMConfig
from encore.assistant.llm import (
    GeminiProvider,
    LLMError,
    LLMRateLimitError,
    OpenAIProvider,
    build_llm_provider,
    is_rate_limit_message,
)

# Mark async tests in this module to use anyio
pytestmark = pytest.mark.anyio


def make_llm_config(**overrides: Any) -> LLMConfig:
    """Create a complete LLMConfig with defaults."""
    defaults: dict[str, Any] = {
        "provider": "gemini",
        "gemini_model": "gemini-1.5-flash",
        "gemini_api_key": "test_gemini_key",
        "gemini_base_url": "https://generativelanguage.googleapis.com/v1beta",
        "gemini_timeout": 20,
        "openai_model": "gpt-4o-mini",
        "openai_api_key": None,
        "openai_base_url": "https://api.openai.com/v1",
        "openai_timeout": 20,
    }
    defaults.update(overrides)
    return LLMConfig(**defaults)


def _urlopen_returning(body: dict) -> MagicMock:
    mock_response = Mock()
    mock_response.read.return_value = json.dumps(body).encode()
    opener = MagicMock()
    opener.return_value.__enter__.return_value = mock_response
    return opener


def _http_error(code: int, body: str = "") -> urllib.error.HTTPError:
    return urllib.error.HTTPError(
        url="https://example.test",
        code=code,
        msg="error",
        hdrs=None,  # type: ignore[arg-type]
        fp=io.BytesIO(body.encode()),
    )


class TestGeminiProvider:
    """Test Gemini provider."""

    def test_build_payload(self):
        """The prompt is sent as a single user part."""
        provider = GeminiProvider(make_llm_config())
        payload = provider._build_payload("Command: pause")
        assert payload["contents"][0]["parts"][0]["text"] == "Command: pause"
        assert payload["generationConfig"]["responseMimeType"] == "application/json"

    def test_call_api_returns_first_text_part(self):
        provider = GeminiProvider(make_llm_config())
        body = {"candidates": [{"content": {"parts": [{"text": '{"action": "pause"}'}]}}]}
        with patch("urllib.request.urlopen", _urlopen_returning(body)) as opener:
            assert provider._call_api({}) == '{"action": "pause"}'
        request = opener.call_args[0][0]
        assert request.full_url.endswith("/models/gemini-1.5-flash:generateContent")
        assert request.get_header("X-goog-api-key") == "test_gemini_key"

    def test_call_api_blocked_prompt(self):
        provider = GeminiProvider(make_llm_config())
        body = {"candidates": [], "promptFeedback": {"blockReason": "SAFETY"}}
        with patch("urllib.request.urlopen", _urlopen_returning(body)):
            with pytest.raises(LLMError, match="SAFETY"):
                provider._call_api({})

    def test_call_api_missing_key(self):
        provider = GeminiProvider(make_llm_config(gemini_api_key=None))
        with pytest.raises(LLMError, match="GEMINI_API_KEY"):
            provider._call_api({})

    def test_http_429_is_rate_limit(self):
        provider = GeminiProvider(make_llm_config())
        with patch("urllib.request.urlopen", side_effect=_http_error(429)):
            with pytest.raises(LLMRateLimitError):
                provider._call_api({})

    def test_resource_exhausted_body_is_rate_limit(self):
        provider = GeminiProvider(make_llm_config())
        error = _http_error(400, '{"error": {"status": "RESOURCE_EXHAUSTED"}}')
        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(LLMRateLimitError):
                provider._call_api({})

    def test_other_http_errors(self):
        provider = GeminiProvider(make_llm_config())
        with patch("urllib.request.urlopen", side_effect=_http_error(500)):
            with pytest.raises(LLMError) as excinfo:
                provider._call_api({})
        assert not isinstance(excinfo.value, LLMRateLimitError)

    def test_network_error(self):
        provider = GeminiProvider(make_llm_config())
        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("unreachable")):
            with pytest.raises(LLMError, match="unreachable"):
                provider._call_api({})

    async def test_complete_runs_call_api(self):
        provider = GeminiProvider(make_llm_config())
        with patch.object(provider, "_call_api", return_value='{"action": "next"}') as call_api:
            assert await provider.complete("prompt") == '{"action": "next"}'
        call_api.assert_called_once()


class TestOpenAIProvider:
    """Test OpenAI provider."""

    def test_build_payload(self):
        provider = OpenAIProvider(make_llm_config(provider="openai", openai_api_key="sk"))
        payload = provider._build_payload("Command: next")
        assert payload["model"] == "gpt-4o-mini"
        assert payload["messages"] == [{"role": "user", "content": "Command: next"}]

    def test_call_api_headers(self):
        provider = OpenAIProvider(make_llm_config(provider="openai", openai_api_key="test_key_123"))
        body = {"choices": [{"message": {"content": '{"action": "pause"}'}}]}
        with patch("urllib.request.urlopen", _urlopen_returning(body)) as opener:
            assert provider._call_api({}) == '{"action": "pause"}'
        request = opener.call_args[0][0]
        assert request.get_header("Authorization") == "Bearer test_key_123"

    def test_call_api_missing_choices(self):
        provider = OpenAIProvider(make_llm_config(provider="openai", openai_api_key="sk"))
        with patch("urllib.request.urlopen", _urlopen_returning({"choices": []})):
            with pytest.raises(LLMError, match="choices"):
                provider._call_api({})


class TestBuildLLMProvider:
    """Test LLM provider factory."""

    def test_gemini_by_default(self):
        assert isinstance(build_llm_provider(make_llm_config()), GeminiProvider)

    def test_openai(self):
        config = make_llm_config(provider="openai", openai_api_key="sk")
        assert isinstance(build_llm_provider(config), OpenAIProvider)

    def test_no_key_returns_none_and_warns(self, mock_logger):
        config = make_llm_config(gemini_api_key=None)
        assert build_llm_provider(config, mock_logger) is None
        mock_logger.warning.assert_called_once()


class TestRateLimitDetection:
    @pytest.mark.parametrize(
        "message",
        ["HTTP 429 Too Many Requests", "RESOURCE_EXHAUSTED", "Quota exceeded", "rate limit reached"],
    )
    def test_detects_rate_limit(self, message):
        assert is_rate_limit_message(message)

    def test_ignores_other_errors(self):
        assert not is_rate_limit_message("connection reset")
