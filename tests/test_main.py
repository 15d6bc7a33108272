"""Tests covering the command line entrypoint."""

from __future__ import annotations

import logging
import shlex

import pytest

from mpvctl import main
from mpvctl.utils import resolve_level


def test_print_command(capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MPV_PATH", raising=False)
    code = main.run(
        [
            "play",
            "v1.mkv",
            "v2.mkv",
            "--audio",
            "a1.flac",
            "--audio",
            "a2.flac",
            "--audio-filter",
            "amix",
            "--flag",
            "fullscreen",
            "--flag",
            "volume=40",
            "--socket",
            "/tmp/cli.sock",
            "--print-command",
        ]
    )

    assert code == 0
    tokens = shlex.split(capsys.readouterr().out)
    assert tokens[0] == "mpv"
    assert "--input-ipc-server=/tmp/cli.sock" in tokens
    assert "--fullscreen" in tokens
    assert "--volume=40" in tokens
    assert "--audio-files=a1.flac" in tokens
    assert "--audio-files-append=a2.flac" in tokens
    assert "--lavfi-complex=[aid1] [aid2] amix [ao]" in tokens
    assert tokens[-2:] == ["v1.mkv", "v2.mkv"]


def test_play_runs_until_player_exits(fake_player, monkeypatch: pytest.MonkeyPatch, socket_path: str) -> None:
    monkeypatch.setenv("MPV_PATH", " ".join(shlex.quote(part) for part in fake_player))

    code = main.run(["play", "/media/clip.mkv", "--socket", socket_path, "--pause", "--flag", "fake-quit-after=0.5"])

    assert code == 0


def test_play_survives_missing_path(
    fake_player, monkeypatch: pytest.MonkeyPatch, socket_path: str, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("MPV_PATH", " ".join(shlex.quote(part) for part in fake_player))

    with caplog.at_level(logging.WARNING, logger="mpvctl.main"):
        code = main.run(
            ["play", "/media/clip.mkv", "--socket", socket_path, "--flag", "fake-no-path", "--flag", "fake-quit-after=0.5"]
        )

    assert code == 0
    assert "Current path unavailable" in caplog.text


def test_unknown_profile_exits_with_error(socket_path: str) -> None:
    assert main.run(["play", "v.mkv", "--profile", "missing", "--socket", socket_path]) == 1


def test_resolve_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MPVCTL_LOG_LEVEL", "debug")

    assert resolve_level(None) == logging.DEBUG
    assert resolve_level("warning") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("not-a-level") == logging.INFO
