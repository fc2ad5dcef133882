"""Spotify authorization-code flow helpers.

Only the two steps the command service needs: sending the user to Spotify's
consent page and trading the returned code for an access token. Tokens are
kept in memory by the caller; there is no refresh or persistence.
"""

from __future__ import annotations

import secrets
import string
import urllib.parse

import httpx

from .config import SpotifyConfig
from .spotify import SpotifyAuthError, SpotifySession

_STATE_ALPHABET = string.ascii_letters + string.digits


def generate_state(length: int = 16) -> str:
    return "".join(secrets.choice(_STATE_ALPHABET) for _ in range(length))


def build_authorize_url(config: SpotifyConfig, state: str) -> str:
    if not config.client_id:
        raise SpotifyAuthError("SPOTIFY_CLIENT_ID is not set")
    query = urllib.parse.urlencode(
        {
            "response_type": "code",
            "client_id": config.client_id,
            "scope": " ".join(config.scopes),
            "redirect_uri": config.redirect_uri,
            "state": state,
        }
    )
    return f"{config.accounts_base_url}/authorize?{query}"


async def exchange_code(
    config: SpotifyConfig,
    code: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SpotifySession:
    """Trade an authorization code for a session."""
    if not code:
        raise SpotifyAuthError("Authorization code is missing")
    if not config.client_id or not config.client_secret:
        raise SpotifyAuthError("Spotify client credentials are not configured")

    async with httpx.AsyncClient(timeout=config.timeout, transport=transport) as client:
        try:
            response = await client.post(
                f"{config.accounts_base_url}/api/token",
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": config.redirect_uri,
                },
                auth=(config.client_id, config.client_secret),
            )
        except httpx.RequestError as exc:
            raise SpotifyAuthError(f"Failed to contact Spotify accounts service: {exc}") from exc

    if response.status_code >= 400:
        raise SpotifyAuthError(f"Token exchange failed ({response.status_code}): {response.text}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise SpotifyAuthError("Token exchange returned invalid JSON") from exc

    access_token = payload.get("access_token") if isinstance(payload, dict) else None
    if not access_token:
        raise SpotifyAuthError("Token exchange response missing access_token")
    refresh_token = payload.get("refresh_token")
    return SpotifySession(
        access_token=str(access_token),
        refresh_token=str(refresh_token) if refresh_token else None,
    )
