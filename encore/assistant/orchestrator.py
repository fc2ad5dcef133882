"""Command orchestration: interpret, execute, and report."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .errors import CommandError, InvalidInputError, UnauthenticatedError

if TYPE_CHECKING:
    from .executor import ActionExecutor
    from .interpreter import CommandInterpreter
    from .spotify import SpotifySession

LOGGER = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Command executed successfully."
FAILURE_MESSAGE = "Failed to process command."


@dataclass(frozen=True)
class CommandResult:
    success: bool
    message: str
    error: str | None = None
    details: str | None = None
    http_status: int = 200

    @classmethod
    def failure(cls, exc: CommandError) -> CommandResult:
        if isinstance(exc, InvalidInputError):
            message = "Command is required."
        elif isinstance(exc, UnauthenticatedError):
            message = "Not authenticated. Please visit /login first."
        else:
            message = FAILURE_MESSAGE
        return cls(
            success=False,
            message=message,
            error=exc.code,
            details=str(exc) or message,
            http_status=exc.http_status,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "message": self.message}
        if not self.success:
            payload["error"] = self.error
            payload["details"] = self.details
        return payload


class CommandOrchestrator:
    """Runs one command through interpretation and execution.

    Each call is independent; the only shared input is the session supplied
    by the caller, which is read and never modified here.
    """

    def __init__(
        self,
        interpreter: CommandInterpreter,
        executor: ActionExecutor,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.interpreter = interpreter
        self.executor = executor
        self.logger = logger or LOGGER

    async def handle(self, command: Any, session: SpotifySession | None) -> CommandResult:
        try:
            await self._run(command, session)
        except CommandError as exc:
            self.logger.info("[command] %s failed: %s", exc.code, exc)
            return CommandResult.failure(exc)
        except Exception as exc:
            self.logger.exception("[command] Unexpected failure while handling command")
            return CommandResult(
                success=False,
                message=FAILURE_MESSAGE,
                error="internal_error",
                details=str(exc) or exc.__class__.__name__,
                http_status=500,
            )
        return CommandResult(success=True, message=SUCCESS_MESSAGE)

    async def _run(self, command: Any, session: SpotifySession | None) -> None:
        if not isinstance(command, str) or not command.strip():
            raise InvalidInputError("Command is required.")
        if session is None or not session.is_authenticated:
            raise UnauthenticatedError("Not authenticated. Please visit /login first.")
        action = await self.interpreter.interpret(command)
        self.logger.info("[command] %r -> %s %s", command, action.action, action.parameters)
        await self.executor.execute(action, session)
