#!/usr/bin/env python3
"""Encore command service daemon."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from dataclasses import replace

from encore.assistant.config import EncoreConfig
from encore.assistant.executor import ActionExecutor
from encore.assistant.interpreter import CommandInterpreter
from encore.assistant.llm import build_llm_provider
from encore.assistant.orchestrator import CommandOrchestrator
from encore.assistant.spotify import SpotifyClient
from encore.command_server import CommandHttpServer

LOGGER = logging.getLogger("encore")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Control Spotify playback with natural language.")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--port", type=int, default=None, help="Override ENCORE_PORT")
    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    config = EncoreConfig.from_env()
    server_config = config.server
    if args.port is not None:
        server_config = replace(server_config, port=args.port)

    provider = build_llm_provider(config.llm)
    interpreter = CommandInterpreter(
        provider,
        timeout=float(config.llm.timeout) + 5.0,
        log_llm_messages=config.log_llm_messages,
    )
    spotify = SpotifyClient(config.spotify)
    executor = ActionExecutor(
        spotify,
        market=config.spotify.market,
        playlist_limit=config.spotify.playlist_limit,
    )
    orchestrator = CommandOrchestrator(interpreter, executor)

    loop = asyncio.get_running_loop()
    server = CommandHttpServer(
        orchestrator=orchestrator,
        spotify_config=config.spotify,
        config=server_config,
        loop=loop,
    )

    stop_event = asyncio.Event()

    def _handle_signal(signum: int) -> None:
        LOGGER.info("Received signal %s, shutting down", signum)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _handle_signal, sig)

    server.start()
    try:
        await stop_event.wait()
    finally:
        await asyncio.to_thread(server.stop)
        await spotify.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
