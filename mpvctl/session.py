"""
Session orchestration for a single mpv process.

A :class:`Session` collects sources, filters and flags, renders them into an
mpv command line, launches the player and opens a control connection on the
socket passed through ``--input-ipc-server``.  Once running, two watcher tasks
keep both sides linked: when the connection closes the process is killed, and
when the process exits the connection is closed.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .command import Command
from .config import SessionSettings
from .graph.filters import AUDIO_OUTPUT, FilterNode
from .ipc.client import ControlClient
from .ipc.connection import IPCError

LOG = logging.getLogger(__name__)

IPC_SERVER_FLAG = "input-ipc-server"
AUDIO_FILE_FLAG = "audio-files"
AUDIO_APPEND_FLAG = "audio-files-append"
FILTER_GRAPH_FLAG = "lavfi-complex"

WATCHER_JOIN_TIMEOUT = 2.0


class SessionError(RuntimeError):
    """Base class for session lifecycle errors."""


class SessionAlreadyStarted(SessionError):
    """Raised when configuring or starting a session that has left configuration."""

    def __init__(self, message: str = "session already started") -> None:
        super().__init__(message)


class MissingAudioSource(SessionError):
    """Raised when an operation needs at least one audio source."""


class ProcessStartError(SessionError):
    """Raised when the player process could not be launched."""


class ClientOpenError(SessionError):
    """Raised when the control connection could not be opened."""


class SocketNotReady(ClientOpenError):
    """Raised when the control socket did not accept connections in time."""


class TeardownError(SessionError):
    """Raised by :meth:`Session.stop` when closing or killing failed."""

    def __init__(self, message: str, errors: Sequence[BaseException]) -> None:
        super().__init__(message)
        self.errors = list(errors)


class SessionState(str, Enum):
    CONFIGURING = "configuring"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Source:
    id: str
    path: str


class Session:
    """
    Configure, launch and supervise one mpv process.

    Configuration methods are only legal while the session is
    ``CONFIGURING``; afterwards they raise :class:`SessionAlreadyStarted`
    without touching any state.
    """

    def __init__(
        self,
        video_path: Optional[str] = None,
        *audio_paths: str,
        socket_path: Optional[str] = None,
        settings: Optional[SessionSettings] = None,
        program: Optional[Sequence[str]] = None,
    ) -> None:
        self.settings = settings or SessionSettings()
        self._program = tuple(program) if program else tuple(shlex.split(self.settings.mpv_path))
        self._client: Optional[ControlClient] = ControlClient(
            socket_path or self.settings.socket_path,
            timeout=self.settings.ipc_timeout,
        )
        self._command: Optional[Command] = None
        self._process: Optional[asyncio.subprocess.Process] = None
        self._watchers: List[asyncio.Task] = []
        self._state = SessionState.CONFIGURING
        self._videos: List[Source] = []
        self._audios: List[Source] = []
        self._filters: List[FilterNode] = []
        self.custom_flags: Dict[str, str] = dict(self.settings.flags)
        profile_socket = self.custom_flags.pop(IPC_SERVER_FLAG, "")
        if profile_socket and not socket_path:
            self.set_input_ipc_socket(profile_socket)

        if self.settings.osc is not None:
            self.set_osc(self.settings.osc)
        if not self.settings.input_default_bindings:
            self.set_no_input_default_bindings(True)
        if video_path:
            self.add_video_source(video_path)
        for audio_path in audio_paths:
            self.add_audio_source(audio_path)

    # ------------------------------------------------------------------ properties

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def client(self) -> Optional[ControlClient]:
        return self._client

    @property
    def process(self) -> Optional[asyncio.subprocess.Process]:
        return self._process

    @property
    def is_alive(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def videos(self) -> List[Source]:
        return list(self._videos)

    @property
    def audios(self) -> List[Source]:
        return list(self._audios)

    @property
    def filters(self) -> List[FilterNode]:
        return list(self._filters)

    # ------------------------------------------------------------------ configuration

    def add_video_source(self, path: str) -> Source:
        self._ensure_configuring()
        source = Source(id=f"vid{len(self._videos) + 1}", path=path)
        self._videos.append(source)
        self._command = None
        return source

    def add_audio_source(self, path: str) -> Source:
        self._ensure_configuring()
        source = Source(id=f"aid{len(self._audios) + 1}", path=path)
        self._audios.append(source)
        self._command = None
        return source

    def add_custom_filter(self, node: FilterNode) -> None:
        self._ensure_configuring()
        self._filters.append(node)
        self._command = None

    def add_global_audio_filter(self, operator: str) -> FilterNode:
        """
        Apply ``operator`` across every registered audio source, mixed into
        the audio output.
        """

        self._ensure_configuring()
        if not self._audios:
            raise MissingAudioSource("no audio sources available to add global audio filter")
        node = FilterNode(operator, *(audio.id for audio in self._audios))
        node.set_target(AUDIO_OUTPUT)
        self._filters.append(node)
        self._command = None
        return node

    def set_input_ipc_socket(self, socket_path: str) -> None:
        self._ensure_configuring()
        self._client = ControlClient(socket_path, timeout=self.settings.ipc_timeout)
        self._command = None

    def add_flag(self, name: str, value: str = "") -> None:
        """
        Set an extra mpv flag. ``input-ipc-server`` moves the control socket
        instead, so the player and the client always agree on the path.
        """

        if name == IPC_SERVER_FLAG:
            self.set_input_ipc_socket(value)
            return
        self._ensure_configuring()
        self.custom_flags[name] = value
        self._command = None

    def set_osc(self, value: bool) -> None:
        self.add_flag("osc", "yes" if value else "no")

    def set_no_input_default_bindings(self, value: bool) -> None:
        self._ensure_configuring()
        if value:
            self.custom_flags["no-input-default-bindings"] = ""
        else:
            self.custom_flags.pop("no-input-default-bindings", None)
        self._command = None

    # ------------------------------------------------------------------ command

    def build_command(self) -> Command:
        """
        Render sources, filters and flags into a :class:`Command`.

        The result is cached until the configuration changes.
        """

        if self._command is not None:
            return self._command

        command = Command(self._program)
        command.add_flag(IPC_SERVER_FLAG, self._require_client().socket_path)
        for name, value in self.custom_flags.items():
            command.add_flag(name, value)

        for index, audio in enumerate(self._audios):
            if index == 0:
                command.add_flag(AUDIO_FILE_FLAG, audio.path)
            else:
                command.append_flag(AUDIO_APPEND_FLAG, audio.path)

        for video in self._videos:
            command.add_arg(video.path)

        if len(self._filters) > 1:
            LOG.warning(
                "%d filter nodes registered; only the last one is kept as --%s",
                len(self._filters),
                FILTER_GRAPH_FLAG,
            )
        for node in self._filters:
            command.add_flag(FILTER_GRAPH_FLAG, node.render())

        self._command = command
        return command

    def command_line(self) -> str:
        return str(self.build_command())

    # ------------------------------------------------------------------ lifecycle

    async def start(self) -> None:
        if self._state is not SessionState.CONFIGURING:
            raise SessionAlreadyStarted()

        command_line = self.command_line()
        client = self._require_client()
        LOG.info("Starting mpv with command: %s", command_line)
        self._state = SessionState.STARTING

        try:
            # exec keeps the shell from sitting between us and the player.
            process = await asyncio.create_subprocess_shell(f"exec {command_line}")
        except OSError as exc:
            raise ProcessStartError(f"failed to start mpv process: {exc}") from exc
        self._process = process

        if self.settings.settle_delay > 0:
            await asyncio.sleep(self.settings.settle_delay)
        await self._open_client(process, client)

        self._watchers = [
            asyncio.create_task(_kill_on_disconnect(client, process), name="mpvctl-watch-connection"),
            asyncio.create_task(_close_on_exit(process, client), name="mpvctl-watch-process"),
        ]
        self._state = SessionState.RUNNING
        LOG.info("mpv running (pid %s) on %s", process.pid, client.socket_path)

    async def stop(self) -> None:
        """
        Close the control connection and kill the player.

        Both actions are always attempted. State is cleared even when one of
        them fails; the failure is then raised as :class:`TeardownError`.
        """

        process = self._process
        if process is None:
            return

        client = self._client
        close_error: Optional[Exception] = None
        kill_error: Optional[Exception] = None

        if client is not None:
            try:
                await client.close()
            except (IPCError, OSError) as exc:
                close_error = exc
        try:
            _kill(process)
        except OSError as exc:
            kill_error = exc

        self._process = None
        self._client = None
        self._state = SessionState.STOPPED
        await self._join(process)
        LOG.info("Session stopped")

        if close_error is not None and kill_error is not None:
            raise TeardownError(
                f"failed to stop session: {close_error}, {kill_error}",
                [close_error, kill_error],
            )
        if close_error is not None:
            raise TeardownError(f"failed to close mpv client: {close_error}", [close_error]) from close_error
        if kill_error is not None:
            raise TeardownError(f"failed to kill process: {kill_error}", [kill_error]) from kill_error

    async def wait(self) -> int:
        """Block until the player exits and return its exit status."""

        if self._process is None:
            raise SessionError("session has no running process")
        return await self._process.wait()

    async def __aenter__(self) -> "Session":
        try:
            await self.start()
        except SessionError:
            if self._state is not SessionState.STARTING:
                raise
            try:
                await self.stop()
            except TeardownError:
                LOG.warning("Cleanup after failed start also failed", exc_info=True)
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------ helpers

    def _ensure_configuring(self) -> None:
        if self._state is not SessionState.CONFIGURING:
            raise SessionAlreadyStarted()

    def _require_client(self) -> ControlClient:
        if self._client is None:
            raise SessionError("session has no control client")
        return self._client

    async def _open_client(self, process: asyncio.subprocess.Process, client: ControlClient) -> None:
        """
        Poll the control socket until it accepts a connection.

        With ``socket_timeout`` set to zero a single attempt is made.
        """

        loop = asyncio.get_running_loop()
        timeout = self.settings.socket_timeout
        deadline = loop.time() + timeout

        while True:
            if process.returncode is not None:
                raise ProcessStartError(
                    f"mpv exited with status {process.returncode} before its control socket was ready"
                )
            try:
                await client.open()
                return
            except IPCError as exc:
                if timeout <= 0:
                    raise ClientOpenError(f"failed to open mpv client: {exc}") from exc
                if loop.time() >= deadline:
                    raise SocketNotReady(
                        f"control socket {client.socket_path} not ready after {timeout:.1f}s"
                    ) from exc
            await asyncio.sleep(self.settings.poll_interval)

    async def _join(self, process: asyncio.subprocess.Process) -> None:
        watchers, self._watchers = self._watchers, []
        if not watchers:
            try:
                await asyncio.wait_for(process.wait(), timeout=WATCHER_JOIN_TIMEOUT)
            except asyncio.TimeoutError:
                LOG.warning("mpv (pid %s) did not exit after kill", process.pid)
            return

        _, pending = await asyncio.wait(watchers, timeout=WATCHER_JOIN_TIMEOUT)
        for task in pending:
            task.cancel()
        if pending:
            LOG.warning("Cancelled %d session watcher(s) that did not finish", len(pending))
            await asyncio.wait(pending)


def _kill(process: asyncio.subprocess.Process) -> bool:
    """Kill ``process`` unless it already exited."""

    if process.returncode is not None:
        return False
    # Signal the pid directly: Process.kill() polls, and may reap the child
    # before the event loop records its exit status.
    try:
        os.kill(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        return False
    return True


async def _kill_on_disconnect(client: ControlClient, process: asyncio.subprocess.Process) -> None:
    await client.wait_until_closed()
    try:
        if _kill(process):
            LOG.info("Control connection closed; killed mpv (pid %s)", process.pid)
    except OSError:
        LOG.debug("Ignoring failure to kill mpv (pid %s)", process.pid, exc_info=True)


async def _close_on_exit(process: asyncio.subprocess.Process, client: ControlClient) -> None:
    returncode = await process.wait()
    LOG.info("mpv (pid %s) exited with status %s", process.pid, returncode)
    try:
        await client.close()
    except (IPCError, OSError):
        LOG.debug("Ignoring failure to close control connection", exc_info=True)


__all__ = [
    "ClientOpenError",
    "MissingAudioSource",
    "ProcessStartError",
    "Session",
    "SessionAlreadyStarted",
    "SessionError",
    "SessionState",
    "SocketNotReady",
    "Source",
    "TeardownError",
]
