"""Tests covering session settings and profile loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from mpvctl.config import SessionSettings, list_profiles, load_settings
from mpvctl.ipc import DEFAULT_SOCKET_PATH


def test_bundled_profiles_load() -> None:
    profiles = list_profiles()
    assert {"default", "kiosk", "legacy"} <= set(profiles)

    kiosk = load_settings("kiosk")
    assert kiosk.osc is False
    assert kiosk.input_default_bindings is False
    assert kiosk.flags["fullscreen"] == ""
    assert kiosk.flags["keep-open"] == "yes"

    legacy = load_settings("legacy")
    assert legacy.settle_delay == 1.0
    assert legacy.socket_timeout == 0.0


def test_unknown_profile_raises(tmp_path: Path) -> None:
    path = tmp_path / "profiles.yaml"
    path.write_text("default:\n  socket_path: /tmp/a.sock\n", encoding="utf-8")

    assert load_settings("default", path).socket_path == "/tmp/a.sock"
    with pytest.raises(KeyError):
        load_settings("missing", path)


def test_missing_file_falls_back_to_defaults(tmp_path: Path) -> None:
    settings = load_settings(path=tmp_path / "absent.yaml")

    assert settings.socket_path == DEFAULT_SOCKET_PATH
    assert list_profiles(tmp_path / "absent.yaml") == {}


def test_non_mapping_profile_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "profiles.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(path=path)


def test_settings_normalise_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MPV_PATH", "/usr/local/bin/mpv")
    settings = SessionSettings(
        socket_timeout=-3,
        poll_interval=0,
        settle_delay="0.5",
        flags={"mute": True, "border": False, "volume": 40, "idle": None},
    )

    assert settings.mpv_path == "/usr/local/bin/mpv"
    assert settings.socket_timeout == 0.0
    assert settings.poll_interval > 0
    assert settings.settle_delay == 0.5
    assert settings.flags == {"mute": "", "border": "no", "volume": "40", "idle": ""}
