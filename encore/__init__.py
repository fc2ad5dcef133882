"""
Encore - natural-language playback control for Spotify

This is the root package for Encore. A free-text instruction ("play my
workout playlist") is resolved into a structured playback action, either by a
generative model or by deterministic heuristics, and then executed against the
Spotify Web API.

Core modules:
- utils: Environment parsing and small async helpers
- command_server: HTTP surface for login, OAuth callback and commands
- assistant: Command interpretation and action dispatch pipeline
"""

__version__ = "0.4.2"
