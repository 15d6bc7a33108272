"""
Pydantic schemas for the HTTP control surface.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, validator


class SessionRequest(BaseModel):
    videos: List[str]
    audios: List[str] = Field(default_factory=list)
    profile: str = "default"
    socket_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("socket_path", "socketPath", "socket"),
    )
    global_audio_filter: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("global_audio_filter", "globalAudioFilter", "audioFilter"),
    )
    flags: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)

    @validator("videos")
    def _require_video(cls, value: List[str]) -> List[str]:
        paths = [str(path).strip() for path in value if str(path).strip()]
        if not paths:
            raise ValueError("at least one video source is required")
        return paths

    @validator("flags", pre=True)
    def _stringify_flags(cls, value: object) -> Dict[str, str]:
        if not value:
            return {}
        return {str(name): "" if raw is None or raw is True else str(raw) for name, raw in dict(value).items()}


class SourceModel(BaseModel):
    id: str
    path: str


class SessionStatus(BaseModel):
    state: str
    pid: Optional[int] = None
    alive: bool = False
    socket_path: Optional[str] = None
    command: Optional[str] = None
    videos: List[SourceModel] = Field(default_factory=list)
    audios: List[SourceModel] = Field(default_factory=list)


class PropertyValue(BaseModel):
    name: str
    value: Any = None


class PropertyUpdate(BaseModel):
    value: Any = None
