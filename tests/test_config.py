"""Tests for encore.assistant.config: environment parsing."""

from __future__ import annotations

from dataclasses import replace

from encore.assistant.config import DEFAULT_SCOPES, EncoreConfig, _strip_or_none


class TestStripOrNone:
    def test_none_returns_none(self) -> None:
        assert _strip_or_none(None) is None

    def test_blank_returns_none(self) -> None:
        assert _strip_or_none("   ") is None

    def test_value_is_trimmed(self) -> None:
        assert _strip_or_none("  abc ") == "abc"


class TestDefaults:
    def test_empty_env(self) -> None:
        config = EncoreConfig.from_env({})
        assert config.llm.provider == "gemini"
        assert config.llm.gemini_model == "gemini-1.5-flash"
        assert config.llm.gemini_api_key is None
        assert config.llm.gemini_timeout == 20
        assert config.spotify.client_id is None
        assert config.spotify.redirect_uri == "http://127.0.0.1:8000/callback"
        assert config.spotify.api_base_url == "https://api.spotify.com/v1"
        assert config.spotify.market == "US"
        assert config.spotify.playlist_limit == 50
        assert config.spotify.timeout == 10.0
        assert config.spotify.scopes == DEFAULT_SCOPES
        assert config.server.port == 8000
        assert config.server.allowed_origins == ("*",)
        assert config.log_llm_messages is False


class TestOverrides:
    def test_spotify_values(self) -> None:
        config = EncoreConfig.from_env(
            {
                "SPOTIFY_CLIENT_ID": " cid ",
                "SPOTIFY_CLIENT_SECRET": "secret",
                "REDIRECT_URI": "https://encore.example/callback",
                "SPOTIFY_MARKET": "se",
                "SPOTIFY_TIMEOUT_SECONDS": "3.5",
                "SPOTIFY_API_BASE_URL": "https://proxy.example/v1/",
            }
        )
        assert config.spotify.client_id == "cid"
        assert config.spotify.redirect_uri == "https://encore.example/callback"
        assert config.spotify.market == "SE"
        assert config.spotify.timeout == 3.5
        assert config.spotify.api_base_url == "https://proxy.example/v1"

    def test_playlist_limit_is_clamped(self) -> None:
        assert EncoreConfig.from_env({"SPOTIFY_PLAYLIST_LIMIT": "500"}).spotify.playlist_limit == 50
        assert EncoreConfig.from_env({"SPOTIFY_PLAYLIST_LIMIT": "0"}).spotify.playlist_limit == 1
        assert EncoreConfig.from_env({"SPOTIFY_PLAYLIST_LIMIT": "abc"}).spotify.playlist_limit == 50

    def test_unknown_provider_falls_back_to_gemini(self) -> None:
        assert EncoreConfig.from_env({"ENCORE_LLM_PROVIDER": "claude"}).llm.provider == "gemini"

    def test_openai_provider(self) -> None:
        config = EncoreConfig.from_env(
            {"ENCORE_LLM_PROVIDER": "OpenAI", "OPENAI_API_KEY": "sk", "OPENAI_TIMEOUT_SECONDS": "7"}
        )
        assert config.llm.provider == "openai"
        assert config.llm.has_credentials
        assert config.llm.timeout == 7

    def test_server_values(self) -> None:
        config = EncoreConfig.from_env(
            {
                "ENCORE_BIND_ADDRESS": "0.0.0.0",
                "ENCORE_PORT": "9001",
                "ENCORE_ALLOWED_ORIGINS": "http://a.test, http://b.test",
                "ENCORE_LOG_LLM": "yes",
            }
        )
        assert config.server.bind_address == "0.0.0.0"
        assert config.server.port == 9001
        assert config.server.allowed_origins == ("http://a.test", "http://b.test")
        assert config.log_llm_messages is True

    def test_custom_scopes(self) -> None:
        config = EncoreConfig.from_env({"SPOTIFY_SCOPES": "streaming,user-read-email"})
        assert config.spotify.scopes == ("streaming", "user-read-email")


class TestLLMConfig:
    def test_credentials_follow_selected_provider(self, llm_config) -> None:
        assert llm_config.has_credentials
        assert not replace(llm_config, provider="openai").has_credentials
        assert not replace(llm_config, gemini_api_key=None).has_credentials

    def test_timeout_follows_selected_provider(self, llm_config) -> None:
        assert replace(llm_config, gemini_timeout=12).timeout == 12
        assert replace(llm_config, provider="openai", openai_timeout=4).timeout == 4
