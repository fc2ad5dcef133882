"""
Shared utility functions for parsing and data manipulation

Provides common helpers for:
- String parsing: Environment variable conversion (parse_bool, parse_int, parse_float, split_csv)
- Text clamping: Trimming and length-capping untrusted strings
- Async utilities: Timeout wrappers

These utilities are used throughout Encore for configuration parsing and input handling.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any


def parse_bool(value: str | None, default: bool = False) -> bool:
    """Interpret env-style booleans."""
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_int(value: str | None, default: int) -> int:
    """Best-effort int parser with fallback."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_float(value: str | None, default: float) -> float:
    """Best-effort float parser with fallback."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def split_csv(value: str | None) -> list[str]:
    """Split comma-separated strings into trimmed tokens."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def clip_text(value: Any, limit: int) -> str:
    """Coerce to string, trim, and cap the length.

    Falsy values, containers and objects that cannot be rendered become an
    empty string. The result is trimmed again after truncation so a cut never
    leaves trailing whitespace behind.
    """
    try:
        if not value or isinstance(value, (dict, list, tuple, set)):
            return ""
        text = str(value).strip()
    except Exception:
        return ""
    if limit <= 0:
        return ""
    return text[:limit].strip()


async def await_with_timeout(awaitable: Awaitable[Any], timeout: float | None) -> Any:
    """Await a coroutine with an optional timeout."""
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout)
