"""Rule-based command interpretation used when the model is unavailable."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .actions import StructuredAction, sanitize_action

Candidate = dict[str, Any]

_ARTICLES = frozenset({"a", "the", "my"})


@dataclass(frozen=True)
class HeuristicRule:
    """A named pattern plus a builder turning its match into an action candidate.

    Builders may return ``None`` to decline a match, in which case evaluation
    continues with the next rule.
    """

    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], Candidate | None]

    def apply(self, text: str) -> Candidate | None:
        match = self.pattern.search(text)
        if not match:
            return None
        return self.build(match)


def _fixed(action: str) -> Callable[[re.Match[str]], Candidate]:
    def _build(_match: re.Match[str]) -> Candidate:
        return {"action": action, "parameters": {}}

    return _build


def _my_playlist(match: re.Match[str]) -> Candidate | None:
    name = (match.group("name") or match.group("word") or "").strip()
    if not name or name.lower() in _ARTICLES:
        return None
    return {"action": "play_my_playlist", "parameters": {"playlistName": name}}


def _artist_top_tracks(match: re.Match[str]) -> Candidate | None:
    artist = match.group("artist").strip()
    if not artist:
        return None
    return {"action": "play_artist_top_tracks", "parameters": {"artistName": artist}}


_LEADING_THE = re.compile(r"^the\s+", re.IGNORECASE)
_PLAYLIST_TOKEN = re.compile(r"\s*\bplaylist\b", re.IGNORECASE)


def _search_and_play(match: re.Match[str]) -> Candidate | None:
    query = _LEADING_THE.sub("", match.group("query").strip())
    search_type = "track"
    if _PLAYLIST_TOKEN.search(query):
        search_type = "playlist"
        query = _PLAYLIST_TOKEN.sub("", query, count=1).strip()
    if not query:
        return None
    return {"action": "search_and_play", "parameters": {"query": query, "type": search_type}}


# Order matters: the first rule that produces a candidate wins. The transport
# keywords match anywhere in the text, so "stopping" pauses and "skipped" skips.
RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule("pause", re.compile(r"pause|stop", re.IGNORECASE), _fixed("pause")),
    HeuristicRule("next", re.compile(r"next|skip", re.IGNORECASE), _fixed("next")),
    HeuristicRule("previous", re.compile(r"previous|back", re.IGNORECASE), _fixed("previous")),
    HeuristicRule(
        "my_playlist",
        re.compile(r"\bplay\s+(?:my\s+(?P<name>.+?)|(?P<word>\w+))\s+playlist\b", re.IGNORECASE),
        _my_playlist,
    ),
    HeuristicRule(
        "artist_top_tracks",
        re.compile(r"(?:\btop\s+(?:songs|tracks)\s+by|\bplay\s+top\s+songs\s+of)\s+(?P<artist>.+)$", re.IGNORECASE),
        _artist_top_tracks,
    ),
    HeuristicRule("search_and_play", re.compile(r"^play\s+(?P<query>.+)$", re.IGNORECASE), _search_and_play),
)


def interpret_heuristically(text: str | None, rules: tuple[HeuristicRule, ...] = RULES) -> StructuredAction:
    """Map free text onto an action using ordered pattern rules.

    Always succeeds; text no rule recognises becomes a parameterless ``play``.
    """
    stripped = (text or "").strip()
    for rule in rules:
        candidate = rule.apply(stripped)
        if candidate is not None:
            return sanitize_action(candidate)
    return sanitize_action({"action": "play", "parameters": {}})
