"""
Session bookkeeping shared by the HTTP handlers.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from ..config import load_settings
from ..session import Session, SessionAlreadyStarted, SessionError
from . import schemas

LOG = logging.getLogger(__name__)


class NoActiveSession(LookupError):
    """Raised when an operation needs a session and none is running."""


class SessionManager:
    """
    Holds at most one session at a time.

    A session whose player has exited is replaced on the next start; a live
    one has to be stopped first.
    """

    def __init__(
        self,
        *,
        program: Optional[Sequence[str]] = None,
        profiles_path: Optional[Path] = None,
    ) -> None:
        self._program = tuple(program) if program else None
        self._profiles_path = profiles_path
        self._session: Optional[Session] = None
        self._lock = asyncio.Lock()
        self.active_profile = "default"

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def require(self) -> Session:
        session = self._session
        if session is None or session.client is None:
            raise NoActiveSession("no active session")
        return session

    async def start(self, request: schemas.SessionRequest) -> Session:
        async with self._lock:
            current = self._session
            if current is not None and current.is_alive:
                raise SessionAlreadyStarted("a session is already running")
            if current is not None:
                await self._discard(current)

            settings = load_settings(request.profile, self._profiles_path)
            session = Session(socket_path=request.socket_path, settings=settings, program=self._program)
            for path in request.videos:
                session.add_video_source(path)
            for path in request.audios:
                session.add_audio_source(path)
            for name, value in request.flags.items():
                session.add_flag(name, value)
            if request.global_audio_filter:
                session.add_global_audio_filter(request.global_audio_filter)

            try:
                await session.start()
            except SessionError:
                await self._discard(session)
                raise

            self._session = session
            self.active_profile = request.profile
            return session

    async def stop(self) -> bool:
        async with self._lock:
            session, self._session = self._session, None
            if session is None:
                return False
            await session.stop()
            return True

    async def _discard(self, session: Session) -> None:
        self._session = None
        try:
            await session.stop()
        except SessionError:
            LOG.warning("Failed to tear down previous session", exc_info=True)
