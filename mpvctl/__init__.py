"""
mpvctl: launch mpv and control it over its JSON IPC socket.

The package builds an mpv command line (flags, positional sources and a
``lavfi-complex`` filter graph), starts the player and keeps the process and
its control connection alive and dead together.
"""

from __future__ import annotations

from .command import Command
from .config import SessionSettings, load_settings
from .graph import FilterNode
from .ipc import DEFAULT_SOCKET_PATH, ControlClient, IPCConnection
from .session import (
    ClientOpenError,
    MissingAudioSource,
    ProcessStartError,
    Session,
    SessionAlreadyStarted,
    SessionError,
    SessionState,
    SocketNotReady,
    Source,
    TeardownError,
)

__all__ = [
    "DEFAULT_SOCKET_PATH",
    "ClientOpenError",
    "Command",
    "ControlClient",
    "FilterNode",
    "IPCConnection",
    "MissingAudioSource",
    "ProcessStartError",
    "Session",
    "SessionAlreadyStarted",
    "SessionError",
    "SessionSettings",
    "SessionState",
    "SocketNotReady",
    "Source",
    "TeardownError",
    "load_settings",
]
