"""
Command line entrypoint.

``play`` launches a session and blocks until the player exits; ``serve``
exposes the HTTP control surface through uvicorn.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List, Optional

from .api.server import create_app
from .api.state import SessionManager
from .config import load_settings
from .ipc.connection import CommandError, IPCError
from .session import Session, SessionError
from .utils.logging import configure_logging

LOG = logging.getLogger(__name__)


def _split_flag(raw: str) -> tuple[str, str]:
    name, _, value = raw.partition("=")
    return name.lstrip("-"), value


def build_session(args: argparse.Namespace) -> Session:
    settings = load_settings(args.profile)
    session = Session(socket_path=args.socket, settings=settings)
    for path in args.videos:
        session.add_video_source(path)
    for path in args.audio:
        session.add_audio_source(path)
    for raw in args.flag:
        session.add_flag(*_split_flag(raw))
    if args.audio_filter:
        session.add_global_audio_filter(args.audio_filter)
    return session


async def play(args: argparse.Namespace) -> int:
    session = build_session(args)
    if args.print_command:
        print(session.command_line())
        return 0

    try:
        await session.start()
        try:
            LOG.info("Now playing %s", await session.client.get_path())
        except CommandError as exc:
            # path stays unavailable until the first file loads.
            LOG.warning("Current path unavailable: %s", exc)
        if args.pause:
            await session.client.pause()
        returncode = await session.wait()
    finally:
        await session.stop()
    LOG.info("mpv exited with status %s", returncode)
    return returncode


async def serve(host: str = "127.0.0.1", port: int = 8090) -> None:
    import uvicorn

    app = create_app(manager=SessionManager())
    server_config = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_config=None,
        log_level="info",
        reload=False,
    )
    server = uvicorn.Server(config=server_config)
    await server.serve()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Launch and control mpv over its JSON IPC socket")
    parser.add_argument("--log-level", default=None, help="logging level (DEBUG, INFO, ...); defaults to $MPVCTL_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    play_parser = subparsers.add_parser("play", help="play media until mpv exits")
    play_parser.add_argument("videos", nargs="+", help="video sources, in playback order")
    play_parser.add_argument("--audio", action="append", default=[], help="audio source (repeatable)")
    play_parser.add_argument("--audio-filter", default=None, help="filter applied across every audio source")
    play_parser.add_argument(
        "--flag",
        action="append",
        default=[],
        help="extra mpv flag as NAME or NAME=VALUE (repeatable)",
    )
    play_parser.add_argument("--socket", default=None, help="IPC socket path")
    play_parser.add_argument("--profile", default="default", help="session profile to load")
    play_parser.add_argument("--pause", action="store_true", help="pause once connected")
    play_parser.add_argument("--print-command", action="store_true", help="print the mpv command and exit")

    serve_parser = subparsers.add_parser("serve", help="run the HTTP control API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="bind host for the API server")
    serve_parser.add_argument("--port", type=int, default=8090, help="bind port for the API server")
    return parser.parse_args(argv)


def run(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "serve":
            asyncio.run(serve(host=args.host, port=args.port))
            return 0
        return asyncio.run(play(args))
    except KeyboardInterrupt:
        LOG.info("Interrupted by user.")
        return 130
    except (SessionError, IPCError, KeyError) as exc:
        LOG.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(run())
