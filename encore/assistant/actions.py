"""Structured playback actions and the schema that guards them."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from encore.utils import clip_text

ActionKind = Literal[
    "play",
    "pause",
    "next",
    "previous",
    "search_and_play",
    "play_artist_top_tracks",
    "play_my_playlist",
]
SearchType = Literal["track", "artist", "playlist"]

ALLOWED_ACTIONS: tuple[str, ...] = (
    "play",
    "pause",
    "next",
    "previous",
    "search_and_play",
    "play_artist_top_tracks",
    "play_my_playlist",
)
SEARCH_TYPES: tuple[str, ...] = ("track", "artist", "playlist")
DEFAULT_SEARCH_TYPE = "track"

QUERY_MAX_LENGTH = 120
NAME_MAX_LENGTH = 80


@dataclass(frozen=True)
class ParameterSpec:
    key: str
    max_length: int
    aliases: tuple[str, ...] = ()

    def read(self, parameters: Mapping[str, Any]) -> str:
        for candidate in (self.key, *self.aliases):
            text = clip_text(parameters.get(candidate), self.max_length)
            if text:
                return text
        return ""


# Free-text parameters per action; search_and_play also carries "type".
PARAMETER_SCHEMA: dict[str, tuple[ParameterSpec, ...]] = {
    "play": (),
    "pause": (),
    "next": (),
    "previous": (),
    "search_and_play": (ParameterSpec("query", QUERY_MAX_LENGTH),),
    "play_artist_top_tracks": (ParameterSpec("artistName", NAME_MAX_LENGTH, aliases=("artist",)),),
    "play_my_playlist": (ParameterSpec("playlistName", NAME_MAX_LENGTH, aliases=("name",)),),
}


@dataclass(frozen=True)
class StructuredAction:
    action: ActionKind
    parameters: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "parameters": dict(self.parameters)}


DEFAULT_ACTION = StructuredAction(action="play")


def pick_search_type(value: Any) -> str:
    """Restrict a search type to track/artist/playlist, defaulting to track."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in SEARCH_TYPES:
            return lowered
    return DEFAULT_SEARCH_TYPE


def sanitize_action(candidate: Any) -> StructuredAction:
    """Validate an untrusted ``{action, parameters}`` object.

    Never raises. Unknown or malformed actions collapse to a parameterless
    ``play``; known actions keep only their schema keys, coerced to trimmed,
    length-capped strings (missing values become ``""``).
    """
    if isinstance(candidate, StructuredAction):
        candidate = candidate.to_dict()
    if not isinstance(candidate, Mapping):
        return StructuredAction(action=DEFAULT_ACTION.action)

    action = candidate.get("action")
    if not isinstance(action, str) or action not in PARAMETER_SCHEMA:
        return StructuredAction(action=DEFAULT_ACTION.action)

    raw_parameters = candidate.get("parameters")
    if not isinstance(raw_parameters, Mapping):
        raw_parameters = {}

    parameters = {spec.key: spec.read(raw_parameters) for spec in PARAMETER_SCHEMA[action]}
    if action == "search_and_play":
        parameters["type"] = pick_search_type(raw_parameters.get("type"))
    return StructuredAction(action=action, parameters=parameters)  # type: ignore[arg-type]
