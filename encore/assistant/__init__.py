"""
Command interpretation and playback dispatch

This package turns a free-text instruction into a structured playback action
and carries it out against the Spotify Web API:

- Interpretation: Generative model (Gemini or OpenAI-compatible) with a
  deterministic heuristic fallback
- Sanitization: Every candidate action is validated against a fixed schema
- Execution: Search, resolve and playback calls against Spotify
- Orchestration: Input checks, error translation, structured results

Key modules:
- config: Configuration management from environment variables
- actions: Structured actions and the sanitizer
- heuristics: Ordered pattern rules
- interpreter: Model prompt, output recovery and fallback
- executor: Per-action Spotify call sequences
- orchestrator: Command entry point
"""

from __future__ import annotations

__all__ = [
    "actions",
    "config",
    "errors",
    "executor",
    "heuristics",
    "interpreter",
    "llm",
    "orchestrator",
    "spotify",
    "spotify_auth",
]
