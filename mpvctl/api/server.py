"""
FastAPI control surface for mpvctl sessions.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from ..config import list_profiles
from ..ipc.connection import CommandError, IPCError
from ..session import (
    MissingAudioSource,
    ProcessStartError,
    Session,
    SessionAlreadyStarted,
    SessionError,
    SessionState,
    TeardownError,
)
from . import schemas
from .state import NoActiveSession, SessionManager

LOG = logging.getLogger(__name__)


def _status(session: Optional[Session]) -> schemas.SessionStatus:
    if session is None:
        return schemas.SessionStatus(state=SessionState.STOPPED.value)
    process = session.process
    client = session.client
    return schemas.SessionStatus(
        state=session.state.value,
        pid=process.pid if process is not None else None,
        alive=session.is_alive,
        socket_path=client.socket_path if client is not None else None,
        command=session.command_line() if client is not None else None,
        videos=[schemas.SourceModel(id=source.id, path=source.path) for source in session.videos],
        audios=[schemas.SourceModel(id=source.id, path=source.path) for source in session.audios],
    )


def create_app(*, manager: Optional[SessionManager] = None) -> FastAPI:
    session_manager = manager or SessionManager()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        LOG.info("Control API starting")
        try:
            yield
        finally:
            try:
                await session_manager.stop()
            except TeardownError:
                LOG.exception("Failed to stop session cleanly on shutdown.")
            LOG.info("Control API shut down")

    app = FastAPI(title="mpvctl control API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def require_session() -> Session:
        try:
            return session_manager.require()
        except NoActiveSession as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.get("/healthz")
    async def healthz() -> dict:
        session = session_manager.session
        return {
            "status": "ok",
            "profile": session_manager.active_profile,
            "session": session.state.value if session is not None else None,
        }

    @app.get("/profiles")
    async def get_profiles() -> dict:
        return {"profiles": list_profiles()}

    @app.get("/session", response_model=schemas.SessionStatus)
    async def get_session() -> schemas.SessionStatus:
        session = session_manager.session
        if session is None:
            raise HTTPException(status_code=404, detail="no active session")
        return _status(session)

    @app.post("/session", response_model=schemas.SessionStatus)
    async def start_session(payload: schemas.SessionRequest) -> schemas.SessionStatus:
        try:
            session = await session_manager.start(payload)
        except KeyError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except (SessionAlreadyStarted, MissingAudioSource) as exc:
            status = 409 if isinstance(exc, SessionAlreadyStarted) else 400
            raise HTTPException(status_code=status, detail=str(exc)) from exc
        except ProcessStartError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        except SessionError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return _status(session)

    @app.delete("/session")
    async def stop_session() -> dict:
        try:
            stopped = await session_manager.stop()
        except TeardownError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {"stopped": stopped}

    @app.get("/session/path", response_model=schemas.PropertyValue)
    async def get_path() -> schemas.PropertyValue:
        client = require_session().client
        try:
            value = await client.get_path()
        except IPCError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return schemas.PropertyValue(name="path", value=value)

    @app.post("/session/pause")
    async def pause() -> dict:
        client = require_session().client
        try:
            await client.pause()
        except IPCError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"paused": True}

    @app.get("/session/property/{name}", response_model=schemas.PropertyValue)
    async def get_property(name: str) -> schemas.PropertyValue:
        client = require_session().client
        try:
            value = await client.get(name)
        except CommandError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except IPCError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return schemas.PropertyValue(name=name, value=value)

    @app.post("/session/property/{name}", response_model=schemas.PropertyValue)
    async def set_property(name: str, payload: schemas.PropertyUpdate) -> schemas.PropertyValue:
        client = require_session().client
        try:
            await client.set(name, payload.value)
        except CommandError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except IPCError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return schemas.PropertyValue(name=name, value=payload.value)

    return app
