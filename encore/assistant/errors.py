"""Failure taxonomy for command handling.

Every error a caller can observe derives from :class:`CommandError` and carries
a stable ``code`` plus the HTTP status the command surface should answer with.
Interpretation failures have no class here: they are absorbed by the
heuristic fallback and never leave the interpreter.
"""

from __future__ import annotations


class CommandError(RuntimeError):
    """Base class for reportable command failures."""

    code = "command_failed"
    http_status = 500


class InvalidInputError(CommandError):
    """Raised when the command text is missing or blank."""

    code = "invalid_input"
    http_status = 400


class UnauthenticatedError(CommandError):
    """Raised when no Spotify access token is available."""

    code = "unauthenticated"
    http_status = 401


class NotFoundError(CommandError):
    """A search or library lookup produced no candidate."""

    code = "not_found"

    def __init__(self, query: str, kind: str | None = None) -> None:
        self.query = query
        self.kind = kind
        if kind:
            message = f"No {kind} found for query: {query}"
        else:
            message = f"Nothing found for: {query}"
        super().__init__(message)


class NoTracksError(CommandError):
    """The resolved artist has no playable top tracks."""

    code = "no_tracks"

    def __init__(self, artist_name: str) -> None:
        self.artist_name = artist_name
        super().__init__(f"No top tracks found for {artist_name}")


class RemoteActionError(CommandError):
    """A remote call failed at the transport level or returned non-2xx."""

    code = "remote_action_failed"


class UnknownActionError(CommandError):
    """An action outside the allowed set reached the executor."""

    code = "unknown_action"

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Unknown action: {action}")
