"""
Session settings and YAML profile loading.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, validator

from .ipc.client import DEFAULT_SOCKET_PATH

CONFIG_DIR = Path(__file__).resolve().parent / "configs"
PROFILES_PATH = CONFIG_DIR / "profiles.yaml"
DEFAULT_PROFILE = "default"

MIN_POLL_INTERVAL = 0.01

LOG = logging.getLogger(__name__)


class SessionSettings(BaseModel):
    mpv_path: str = Field(default_factory=lambda: os.getenv("MPV_PATH", "mpv"))
    socket_path: str = DEFAULT_SOCKET_PATH
    socket_timeout: float = 5.0
    poll_interval: float = 0.1
    ipc_timeout: float = 5.0
    settle_delay: float = 0.0
    osc: Optional[bool] = None
    input_default_bindings: bool = True
    flags: Dict[str, str] = Field(default_factory=dict)

    @validator("socket_timeout", "settle_delay", "ipc_timeout", pre=True)
    def _non_negative(cls, value: float) -> float:
        return max(0.0, float(value))

    @validator("poll_interval", pre=True)
    def _clamp_poll_interval(cls, value: float) -> float:
        return max(MIN_POLL_INTERVAL, float(value))

    @validator("flags", pre=True)
    def _stringify_flags(cls, value: object) -> Dict[str, str]:
        if not value:
            return {}
        flags: Dict[str, str] = {}
        for name, raw in dict(value).items():
            if raw is None or raw is True:
                flags[str(name)] = ""
            elif raw is False:
                flags[str(name)] = "no"
            else:
                flags[str(name)] = str(raw)
        return flags


def _read_profiles(path: Optional[Path] = None) -> Dict[str, dict]:
    source = Path(path) if path is not None else PROFILES_PATH
    try:
        with source.open("r", encoding="utf-8") as handle:
            profiles = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        LOG.debug("Profile file %s not found; using defaults", source)
        return {}
    if not isinstance(profiles, dict):
        raise ValueError(f"Profile file {source} must contain a mapping")
    return profiles


def list_profiles(path: Optional[Path] = None) -> Dict[str, dict]:
    return {str(name): dict(entry or {}) for name, entry in _read_profiles(path).items()}


def load_settings(profile: str = DEFAULT_PROFILE, path: Optional[Path] = None) -> SessionSettings:
    """
    Resolve ``profile`` from the profile file into :class:`SessionSettings`.

    A missing file or a missing ``default`` entry yields the built-in
    defaults; any other unknown profile raises ``KeyError``.
    """

    profiles = _read_profiles(path)
    if profile not in profiles:
        if profile == DEFAULT_PROFILE:
            return SessionSettings()
        raise KeyError(f"Unknown profile '{profile}'")
    return SessionSettings(**(profiles[profile] or {}))


__all__ = ["PROFILES_PATH", "SessionSettings", "list_profiles", "load_settings"]
