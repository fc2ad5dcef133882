"""Turn free-text commands into structured actions via a model, with heuristic fallback."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any

from encore.utils import await_with_timeout

from .actions import ALLOWED_ACTIONS, StructuredAction, sanitize_action
from .heuristics import interpret_heuristically
from .llm import LLMProvider, LLMRateLimitError, is_rate_limit_message

LOGGER = logging.getLogger(__name__)

INSTRUCTIONS = f"""You translate natural language Spotify control commands into a compact JSON.
Return ONLY JSON with: {{"action": string, "parameters": object}}.
Allowed actions: {", ".join(ALLOWED_ACTIONS)}.
Rules: No commentary. No markdown fences. If searching, choose type among track, artist, playlist (best guess).
"""

EXAMPLES: tuple[tuple[str, dict[str, Any]], ...] = (
    ("Pause the current song", {"action": "pause", "parameters": {}}),
    ("Play the next track", {"action": "next", "parameters": {}}),
    (
        "Search for a Lofi playlist and play it",
        {"action": "search_and_play", "parameters": {"query": "Lofi", "type": "playlist"}},
    ),
    (
        "Play something by Tame Impala",
        {"action": "search_and_play", "parameters": {"query": "Tame Impala", "type": "artist"}},
    ),
    (
        "Play the top songs by AR Rahman",
        {"action": "play_artist_top_tracks", "parameters": {"artistName": "AR Rahman"}},
    ),
    (
        "Play relaxing music",
        {"action": "search_and_play", "parameters": {"query": "relaxing music", "type": "playlist"}},
    ),
    (
        "Play the song Hotel California",
        {"action": "search_and_play", "parameters": {"query": "Hotel California", "type": "track"}},
    ),
    ("Play my workout playlist", {"action": "play_my_playlist", "parameters": {"playlistName": "workout"}}),
)

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")


def build_prompt(command: str) -> str:
    sections = [INSTRUCTIONS]
    for example_command, expected in EXAMPLES:
        sections.append(f'Command: "{example_command}"\n{json.dumps(expected)}')
    sections.append(f'Command: "{command.strip()}"')
    return "\n\n".join(sections)


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    cleaned = _FENCE_START.sub("", cleaned)
    cleaned = _FENCE_END.sub("", cleaned)
    return cleaned.strip()


def _safe_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def extract_last_json_object(text: str) -> Any:
    """Parse the last top-level ``{...}`` block embedded in free text."""
    blocks: list[tuple[int, int]] = []
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for index, char in enumerate(text or ""):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"' and depth:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth:
            depth -= 1
            if depth == 0:
                blocks.append((start, index + 1))
    if not blocks:
        return None
    begin, end = blocks[-1]
    return _safe_json(text[begin:end])


def parse_model_output(raw: str) -> StructuredAction | None:
    """Recover a structured action from model text, or ``None`` if there is none."""
    for candidate in (_safe_json(strip_code_fences(raw)), extract_last_json_object(raw)):
        if isinstance(candidate, dict) and candidate.get("action"):
            return sanitize_action(candidate)
    return None


class CommandInterpreter:
    """Resolve commands with the model first and heuristics second."""

    def __init__(
        self,
        provider: LLMProvider | None,
        *,
        timeout: float | None = None,
        log_llm_messages: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.provider = provider
        self.timeout = timeout
        self.log_llm_messages = log_llm_messages
        self.logger = logger or LOGGER

    async def interpret(self, text: str) -> StructuredAction:
        """Never raises; every model failure resolves to the heuristic result."""
        resolved = await self.interpret_with_model(text)
        if resolved is not None:
            return resolved
        return interpret_heuristically(text)

    async def interpret_with_model(self, text: str) -> StructuredAction | None:
        if self.provider is None:
            return None
        prompt = build_prompt(text)
        try:
            raw = await await_with_timeout(self.provider.complete(prompt), self.timeout)
        except LLMRateLimitError as exc:
            self.logger.warning("[interpreter] Model quota/rate limit hit, falling back to heuristics: %s", exc)
            return None
        except asyncio.TimeoutError:
            self.logger.warning("[interpreter] Model call timed out after %ss, using heuristics", self.timeout)
            return None
        except Exception as exc:
            if is_rate_limit_message(str(exc)):
                self.logger.warning("[interpreter] Model quota/rate limit hit, falling back to heuristics: %s", exc)
            else:
                self.logger.warning("[interpreter] Model error, using heuristic fallback: %s", exc)
            return None

        if self.log_llm_messages:
            self.logger.debug("[interpreter] Model output: %s", raw)
        parsed = parse_model_output(raw if isinstance(raw, str) else "")
        if parsed is None:
            self.logger.info("[interpreter] Model output had no usable action, using heuristics")
        return parsed
