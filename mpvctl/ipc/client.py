"""
Control client bound to the player's IPC socket.
"""

from __future__ import annotations

from typing import Any, Optional

from .connection import EventCallback, IPCConnection

DEFAULT_SOCKET_PATH = "/tmp/mpv_socket"


class ControlClient:
    """
    Owns the socket path and wraps an :class:`IPCConnection`.

    Lifecycle and raw property access are delegated to the connection; the
    client only adds the ``path`` and ``pause`` helpers.
    """

    def __init__(
        self,
        socket_path: Optional[str] = None,
        *,
        connection: Optional[IPCConnection] = None,
        timeout: float = 5.0,
    ) -> None:
        self._socket_path = socket_path or ""
        self.connection = connection if connection is not None else IPCConnection(self.socket_path, timeout=timeout)

    @classmethod
    def from_connection(cls, connection: IPCConnection) -> "ControlClient":
        return cls(getattr(connection, "socket_path", None), connection=connection)

    @property
    def socket_path(self) -> str:
        return self._socket_path or DEFAULT_SOCKET_PATH

    @property
    def is_open(self) -> bool:
        return self.connection.is_open

    async def open(self) -> None:
        await self.connection.open()

    async def close(self) -> None:
        await self.connection.close()

    async def wait_until_closed(self) -> None:
        await self.connection.wait_until_closed()

    async def call(self, *command: Any) -> Any:
        return await self.connection.call(*command)

    async def get(self, name: str) -> Any:
        return await self.connection.get(name)

    async def set(self, name: str, value: Any) -> None:
        await self.connection.set(name, value)

    def subscribe(self, callback: EventCallback) -> int:
        return self.connection.subscribe(callback)

    def unsubscribe(self, token: int) -> None:
        self.connection.unsubscribe(token)

    # Convenience helpers -------------------------------------------------------

    async def get_path(self) -> str:
        """Return the path of the file currently playing."""

        path = await self.get("path")
        return str(path)

    async def pause(self) -> None:
        await self.set("pause", True)

    def __repr__(self) -> str:
        return f"ControlClient(socket_path={self.socket_path!r})"
