"""HTTP surface for Spotify login and natural-language commands."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import urllib.parse
from collections.abc import Awaitable, Callable
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import TYPE_CHECKING, Any

from encore.assistant.errors import InvalidInputError
from encore.assistant.orchestrator import CommandResult
from encore.assistant.spotify import SpotifyAuthError, SpotifySession
from encore.assistant.spotify_auth import build_authorize_url, exchange_code, generate_state

if TYPE_CHECKING:
    from encore.assistant.config import ServerConfig, SpotifyConfig
    from encore.assistant.orchestrator import CommandOrchestrator

LOGGER = logging.getLogger(__name__)

TokenExchange = Callable[["SpotifyConfig", str], Awaitable[SpotifySession]]


class CommandHttpServer:
    """Serve ``/login``, ``/callback`` and ``/command`` from a background thread.

    Coroutines are submitted to ``loop``, which must be running in another
    thread for the lifetime of the server. The session obtained in
    ``/callback`` is the only state the server keeps.
    """

    def __init__(
        self,
        *,
        orchestrator: CommandOrchestrator,
        spotify_config: SpotifyConfig,
        config: ServerConfig,
        loop: asyncio.AbstractEventLoop,
        token_exchange: TokenExchange = exchange_code,
        logger: logging.Logger | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.spotify_config = spotify_config
        self.config = config
        self.logger = logger or LOGGER
        self._loop = loop
        self._token_exchange = token_exchange
        self._session: SpotifySession | None = None
        self._pending_states: set[str] = set()
        self._lock = threading.Lock()
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def session(self) -> SpotifySession | None:
        with self._lock:
            return self._session

    @property
    def server_address(self) -> tuple[str, int] | None:
        if not self._server:
            return None
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    def start(self) -> None:
        if self._server:
            return
        handler_cls = self._build_handler()
        try:
            server = ThreadingHTTPServer((self.config.bind_address, self.config.port), handler_cls)
        except OSError as exc:  # pragma: no cover - dependant on environment
            self.logger.error(
                "command http: failed to bind %s:%s (%s)", self.config.bind_address, self.config.port, exc
            )
            raise
        self._server = server
        thread = threading.Thread(target=server.serve_forever, name="encore-command-http", daemon=True)
        thread.start()
        self._thread = thread
        host, port = self.server_address or (self.config.bind_address, self.config.port)
        self.logger.info("command http: serving on http://%s:%s (login at /login)", host, port)

    def stop(self) -> None:
        server = self._server
        if not server:
            return
        self.logger.info("command http: shutting down")
        server.shutdown()
        server.server_close()
        if self._thread:
            self._thread.join(timeout=2)
        self._server = None
        self._thread = None

    def begin_login(self) -> str:
        state = generate_state()
        with self._lock:
            self._pending_states.add(state)
        return build_authorize_url(self.spotify_config, state)

    def complete_login(self, code: str, state: str | None) -> SpotifySession:
        with self._lock:
            known = state in self._pending_states if state else False
            if known:
                self._pending_states.discard(state)
        if not known:
            raise SpotifyAuthError("Unknown or missing OAuth state")
        session = self._run_coroutine(self._token_exchange(self.spotify_config, code))
        with self._lock:
            self._session = session
        self.logger.info("command http: Spotify authentication succeeded")
        return session

    def run_command(self, command: Any) -> CommandResult:
        return self._run_coroutine(self.orchestrator.handle(command, self.session))

    def _run_coroutine(self, coro: Awaitable[Any]) -> Any:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)  # type: ignore[arg-type]
        return future.result()

    def _build_handler(self):
        outer = self

        class CommandRequestHandler(BaseHTTPRequestHandler):
            def log_message(self, _format, *_args):  # noqa: D401
                return

            def _set_common_headers(self) -> None:
                origin = self.headers.get("Origin")
                allowed_origin = outer._allowed_origin(origin)
                if allowed_origin:
                    self.send_header("Access-Control-Allow-Origin", allowed_origin)
                    if allowed_origin != "*":
                        self.send_header("Vary", "Origin")
                self.send_header("Access-Control-Allow-Methods", "GET, OPTIONS, POST")
                self.send_header("Access-Control-Allow-Headers", "Accept, Content-Type")
                self.send_header("Cache-Control", "no-store, max-age=0")

            def do_OPTIONS(self) -> None:  # noqa: N802
                self.send_response(HTTPStatus.NO_CONTENT)
                self._set_common_headers()
                self.end_headers()

            def do_GET(self) -> None:  # noqa: N802
                parsed = urllib.parse.urlsplit(self.path)
                if parsed.path == "/login":
                    self._handle_login()
                elif parsed.path == "/callback":
                    self._handle_callback(urllib.parse.parse_qs(parsed.query))
                else:
                    self.send_error(HTTPStatus.NOT_FOUND, "Not Found")

            def do_POST(self) -> None:  # noqa: N802
                path = self.path.split("?", 1)[0]
                if path == "/command":
                    self._handle_command()
                else:
                    self.send_error(HTTPStatus.NOT_FOUND, "Not Found")

            def _handle_login(self) -> None:
                try:
                    location = outer.begin_login()
                except SpotifyAuthError as exc:
                    outer.logger.error("command http: cannot start login: %s", exc)
                    self._send_text(HTTPStatus.SERVICE_UNAVAILABLE, "Spotify login is not configured.")
                    return
                self.send_response(HTTPStatus.FOUND)
                self._set_common_headers()
                self.send_header("Location", location)
                self.send_header("Content-Length", "0")
                self.end_headers()

            def _handle_callback(self, query: dict[str, list[str]]) -> None:
                code = (query.get("code") or [""])[0]
                state = (query.get("state") or [None])[0]
                denied = (query.get("error") or [None])[0]
                if denied:
                    outer.logger.warning("command http: authorization denied: %s", denied)
                    self._send_text(HTTPStatus.BAD_REQUEST, "Authorization was denied.")
                    return
                try:
                    outer.complete_login(code, state)
                except SpotifyAuthError as exc:
                    outer.logger.error("command http: error getting tokens: %s", exc)
                    self._send_text(HTTPStatus.INTERNAL_SERVER_ERROR, "Error during authentication.")
                    return
                self._send_text(
                    HTTPStatus.OK,
                    "Authentication successful! You can now close this tab and send commands to the /command endpoint.",
                )

            def _handle_command(self) -> None:
                try:
                    data = self._read_json()
                except ValueError as exc:
                    outer.logger.info("command http: invalid request: %s", exc)
                    result = CommandResult.failure(InvalidInputError("Request body must be a JSON object."))
                    self._send_json(result.http_status, result.to_dict())
                    return
                result = outer.run_command(data.get("command"))
                self._send_json(result.http_status, result.to_dict())

            def _read_json(self) -> dict[str, Any]:
                content_length = int(self.headers.get("Content-Length", 0))
                if content_length <= 0:
                    raise ValueError("Empty body")
                body = self.rfile.read(content_length)
                data = json.loads(body.decode("utf-8"))
                if not isinstance(data, dict):
                    raise ValueError("Expected a JSON object")
                return data

            def _send_json(self, status: int, payload: dict[str, Any]) -> None:
                body = json.dumps(payload).encode("utf-8")
                self.send_response(status)
                self._set_common_headers()
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _send_text(self, status: int, text: str) -> None:
                body = text.encode("utf-8")
                self.send_response(status)
                self._set_common_headers()
                self.send_header("Content-Type", "text/plain; charset=utf-8")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

        return CommandRequestHandler

    def _allowed_origin(self, origin: str | None) -> str | None:
        allowed = self.config.allowed_origins
        if not allowed or allowed == ("*",):
            return "*"
        if origin and origin in allowed:
            return origin
        return None
