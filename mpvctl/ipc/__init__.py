"""
JSON IPC control channel for the player process.
"""

from __future__ import annotations

from .client import DEFAULT_SOCKET_PATH, ControlClient
from .connection import CommandError, ConnectionClosedError, IPCConnection, IPCError

__all__ = [
    "DEFAULT_SOCKET_PATH",
    "ControlClient",
    "IPCConnection",
    "IPCError",
    "ConnectionClosedError",
    "CommandError",
]
