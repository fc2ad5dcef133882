"""Shared test fixtures and configuration for the Encore test suite.

This module provides reusable fixtures for common test scenarios including:
- Configuration objects (LLM, Spotify, server)
- Spotify client mocking
- LLM provider mocking
- Async test utilities
"""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from encore.assistant.config import LLMConfig, ServerConfig, SpotifyConfig
from encore.assistant.llm import LLMProvider
from encore.assistant.spotify import SpotifyClient, SpotifySession

# ============================================================================
# Pytest Configuration
# ============================================================================


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing.

    Returns a Mock with spec=logging.Logger to ensure only valid
    logger methods can be called.
    """
    return Mock(spec=logging.Logger)


# ============================================================================
# Configuration Fixtures
# ============================================================================


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


def make_spotify_config(**overrides: Any) -> SpotifyConfig:
    """Create a complete SpotifyConfig with defaults."""
    defaults: dict[str, Any] = {
        "client_id": "client123",
        "client_secret": "secret456",
        "redirect_uri": "http://127.0.0.1:8000/callback",
        "api_base_url": "https://api.spotify.test/v1",
        "accounts_base_url": "https://accounts.spotify.test",
        "market": "US",
        "playlist_limit": 50,
        "timeout": 5.0,
    }
    defaults.update(overrides)
    return SpotifyConfig(**defaults)


@pytest.fixture
def llm_config():
    return make_llm_config()


@pytest.fixture
def spotify_config():
    return make_spotify_config()


@pytest.fixture
def server_config():
    return ServerConfig(bind_address="127.0.0.1", port=0)


@pytest.fixture
def session():
    """An authenticated Spotify session."""
    return SpotifySession(access_token="access_abc", refresh_token="refresh_xyz")


# ============================================================================
# Spotify Fixtures
# ============================================================================


@pytest.fixture
def mock_spotify():
    """Create a mock SpotifyClient with every Web API call as an AsyncMock."""
    client = Mock(spec=SpotifyClient)
    client.play = AsyncMock(return_value=None)
    client.pause = AsyncMock(return_value=None)
    client.next_track = AsyncMock(return_value=None)
    client.previous_track = AsyncMock(return_value=None)
    client.search = AsyncMock(return_value=[])
    client.artist_top_tracks = AsyncMock(return_value=[])
    client.list_playlists = AsyncMock(return_value=[])
    return client


@pytest.fixture
def spotify_transport():
    """Factory for a SpotifyClient backed by an httpx.MockTransport.

    Usage:
        client, requests = spotify_transport(lambda request: httpx.Response(204))
    """

    def _create(handler, config: SpotifyConfig | None = None) -> tuple[SpotifyClient, list[httpx.Request]]:
        seen: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = SpotifyClient(config or make_spotify_config(), transport=httpx.MockTransport(_record))
        return client, seen

    return _create


# ============================================================================
# LLM Provider Fixtures
# ============================================================================


@pytest.fixture
def mock_llm_provider():
    """Create a mock LLM provider whose completion text can be set per test."""
    provider = Mock(spec=LLMProvider)
    provider.complete = AsyncMock(return_value='{"action": "play", "parameters": {}}')
    return provider
