"""
Asyncio transport for mpv's JSON IPC protocol.

mpv exchanges newline-delimited JSON over the socket named by
``--input-ipc-server``.  Requests carry a ``request_id`` that the player echoes
back in its reply; unsolicited lines carrying an ``event`` key are player
events and are fanned out to subscribers.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, Callable, Dict, Optional

LOG = logging.getLogger(__name__)

EventCallback = Callable[[Dict[str, Any]], None]

DEFAULT_READ_LIMIT = 16 * 1024 * 1024


class IPCError(RuntimeError):
    """Base class for control connection errors."""


class ConnectionClosedError(IPCError):
    """Raised when a request is issued on a connection that is not open."""


class CommandError(IPCError):
    """Raised when the player answers a request with an error status."""


class IPCConnection:
    """
    A single JSON IPC connection to a running player.

    ``close`` is idempotent and ``wait_until_closed`` resolves however the
    connection ends: remote quit, local close or transport failure.
    """

    def __init__(self, socket_path: str, *, timeout: float = 5.0, limit: int = DEFAULT_READ_LIMIT) -> None:
        self.socket_path = socket_path
        self.timeout = timeout
        self.limit = limit
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._write_lock = asyncio.Lock()
        self._closed = asyncio.Event()
        self._pending: Dict[int, asyncio.Future] = {}
        self._request_counter = 0
        self._observer_counter = 0
        self._observers: Dict[int, EventCallback] = {}

    # ------------------------------------------------------------------ state

    @property
    def is_open(self) -> bool:
        return self._writer is not None and not self._closed.is_set()

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    # ------------------------------------------------------------------ lifecycle

    async def open(self) -> None:
        if self._writer is not None:
            return
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_unix_connection(self.socket_path, limit=self.limit), timeout=self.timeout
            )
        except (OSError, asyncio.TimeoutError) as exc:
            raise IPCError(f"failed to connect to {self.socket_path}: {exc}") from exc

        self._reader = reader
        self._writer = writer
        self._reader_task = asyncio.create_task(self._read_loop(reader), name="mpvctl-ipc-reader")
        LOG.debug("Connected to %s", self.socket_path)

    async def close(self) -> None:
        writer = self._writer
        if writer is None:
            return

        if not writer.is_closing():
            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()

        task = self._reader_task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.wait({task})

        self._mark_closed()

    async def wait_until_closed(self) -> None:
        await self._closed.wait()

    # ------------------------------------------------------------------ requests

    async def call(self, *command: Any) -> Any:
        """
        Send a raw IPC command and return the ``data`` field of the reply.
        """

        if not command:
            raise ValueError("command must not be empty")
        writer = self._writer
        if writer is None or self._closed.is_set():
            raise ConnectionClosedError(f"connection to {self.socket_path} is not open")

        self._request_counter += 1
        request_id = self._request_counter
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        payload = json.dumps({"command": list(command), "request_id": request_id}) + "\n"

        try:
            async with self._write_lock:
                writer.write(payload.encode("utf-8"))
                await writer.drain()
            reply = await asyncio.wait_for(future, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise IPCError(f"timed out waiting for reply to {command[0]!r}") from exc
        except OSError as exc:
            raise ConnectionClosedError(f"failed to send {command[0]!r}: {exc}") from exc
        finally:
            self._pending.pop(request_id, None)

        status = reply.get("error", "success")
        if status != "success":
            raise CommandError(f"{command[0]} failed: {status}")
        return reply.get("data")

    async def get(self, name: str) -> Any:
        return await self.call("get_property", name)

    async def set(self, name: str, value: Any) -> None:
        await self.call("set_property", name, value)

    # ------------------------------------------------------------------ events

    def subscribe(self, callback: EventCallback) -> int:
        if not callable(callback):
            raise TypeError("callback must be callable")
        self._observer_counter += 1
        token = self._observer_counter
        self._observers[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        self._observers.pop(token, None)

    # ------------------------------------------------------------------ helpers

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        try:
            while True:
                try:
                    line = await reader.readuntil(b"\n")
                except asyncio.LimitOverrunError as exc:
                    skipped = await self._skip_line(reader, exc.consumed)
                    LOG.warning("Discarded %d byte IPC line from %s (limit %d)", skipped, self.socket_path, self.limit)
                    continue
                self._dispatch(line)
        except asyncio.IncompleteReadError:
            LOG.debug("IPC peer %s closed the connection", self.socket_path)
        except OSError as exc:
            LOG.debug("IPC reader for %s stopped: %s", self.socket_path, exc)
        finally:
            if self._writer is not None and not self._writer.is_closing():
                self._writer.close()
            self._mark_closed()

    @staticmethod
    async def _skip_line(reader: asyncio.StreamReader, consumed: int) -> int:
        """Drop buffered bytes up to and including the next newline."""

        skipped = 0
        while True:
            skipped += len(await reader.readexactly(consumed))
            try:
                skipped += len(await reader.readuntil(b"\n"))
                return skipped
            except asyncio.LimitOverrunError as exc:
                consumed = exc.consumed

    def _dispatch(self, line: bytes) -> None:
        try:
            message = json.loads(line)
        except ValueError:
            LOG.warning("Discarding malformed IPC line: %r", line[:200])
            return
        if not isinstance(message, dict):
            return

        if "event" in message:
            self._notify(message)
            return

        future = self._pending.pop(message.get("request_id"), None)
        if future is not None and not future.done():
            future.set_result(message)

    def _notify(self, event: Dict[str, Any]) -> None:
        for token, callback in list(self._observers.items()):
            try:
                callback(event)
            except Exception:  # pragma: no cover - observer failures must not kill the reader
                LOG.exception("IPC event observer %s failed.", token)

    def _mark_closed(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(ConnectionClosedError(f"connection to {self.socket_path} closed"))
        LOG.debug("Connection to %s closed", self.socket_path)


__all__ = ["CommandError", "ConnectionClosedError", "IPCConnection", "IPCError"]
