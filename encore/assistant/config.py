"""Configuration helpers for the Encore command service."""

from __future__ import annotations

import os
from dataclasses import dataclass

from encore.utils import parse_bool, parse_float, parse_int, split_csv

DEFAULT_SCOPES = (
    "user-read-private",
    "user-read-email",
    "user-modify-playback-state",
    "user-read-playback-state",
    "streaming",
    "playlist-read-private",
)


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True)
class LLMConfig:
    provider: str
    gemini_model: str
    gemini_api_key: str | None
    gemini_base_url: str
    gemini_timeout: int
    openai_model: str
    openai_api_key: str | None
    openai_base_url: str
    openai_timeout: int

    @property
    def has_credentials(self) -> bool:
        """True when the selected provider has an API key configured."""
        if self.provider == "openai":
            return bool(self.openai_api_key)
        return bool(self.gemini_api_key)

    @property
    def timeout(self) -> int:
        if self.provider == "openai":
            return self.openai_timeout
        return self.gemini_timeout


@dataclass(frozen=True)
class SpotifyConfig:
    client_id: str | None
    client_secret: str | None
    redirect_uri: str
    api_base_url: str
    accounts_base_url: str
    market: str
    playlist_limit: int
    timeout: float
    scopes: tuple[str, ...] = DEFAULT_SCOPES


@dataclass(frozen=True)
class ServerConfig:
    bind_address: str
    port: int
    allowed_origins: tuple[str, ...] = ("*",)


@dataclass(frozen=True)
class EncoreConfig:
    llm: LLMConfig
    spotify: SpotifyConfig
    server: ServerConfig
    log_llm_messages: bool

    @staticmethod
    def from_env(env: dict[str, str] | None = None) -> EncoreConfig:
        source = env if env is not None else os.environ

        provider = (source.get("ENCORE_LLM_PROVIDER") or "gemini").strip().lower()
        if provider not in {"gemini", "openai"}:
            provider = "gemini"

        llm = LLMConfig(
            provider=provider,
            gemini_model=(source.get("GEMINI_MODEL") or "gemini-1.5-flash").strip(),
            gemini_api_key=_strip_or_none(source.get("GEMINI_API_KEY")),
            gemini_base_url=(
                source.get("GEMINI_BASE_URL") or "https://generativelanguage.googleapis.com/v1beta"
            ).rstrip("/"),
            gemini_timeout=max(1, parse_int(source.get("GEMINI_TIMEOUT_SECONDS"), 20)),
            openai_model=(source.get("OPENAI_MODEL") or "gpt-4o-mini").strip(),
            openai_api_key=_strip_or_none(source.get("OPENAI_API_KEY")),
            openai_base_url=(source.get("OPENAI_BASE_URL") or "https://api.openai.com/v1").rstrip("/"),
            openai_timeout=max(1, parse_int(source.get("OPENAI_TIMEOUT_SECONDS"), 20)),
        )

        scopes = tuple(split_csv(source.get("SPOTIFY_SCOPES"))) or DEFAULT_SCOPES
        spotify = SpotifyConfig(
            client_id=_strip_or_none(source.get("SPOTIFY_CLIENT_ID")),
            client_secret=_strip_or_none(source.get("SPOTIFY_CLIENT_SECRET")),
            redirect_uri=(source.get("REDIRECT_URI") or "http://127.0.0.1:8000/callback").strip(),
            api_base_url=(source.get("SPOTIFY_API_BASE_URL") or "https://api.spotify.com/v1").rstrip("/"),
            accounts_base_url=(source.get("SPOTIFY_ACCOUNTS_BASE_URL") or "https://accounts.spotify.com").rstrip(
                "/"
            ),
            market=(source.get("SPOTIFY_MARKET") or "US").strip().upper() or "US",
            playlist_limit=max(1, min(50, parse_int(source.get("SPOTIFY_PLAYLIST_LIMIT"), 50))),
            timeout=max(0.5, parse_float(source.get("SPOTIFY_TIMEOUT_SECONDS"), 10.0)),
            scopes=scopes,
        )

        origins = tuple(split_csv(source.get("ENCORE_ALLOWED_ORIGINS"))) or ("*",)
        server = ServerConfig(
            bind_address=(source.get("ENCORE_BIND_ADDRESS") or "127.0.0.1").strip(),
            port=parse_int(source.get("ENCORE_PORT"), 8000),
            allowed_origins=origins,
        )

        return EncoreConfig(
            llm=llm,
            spotify=spotify,
            server=server,
            log_llm_messages=parse_bool(source.get("ENCORE_LOG_LLM"), False),
        )
