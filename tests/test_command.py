"""Tests covering command line rendering."""

from __future__ import annotations

import shlex

from mpvctl.command import BOOLEAN_FLAG, Command


def test_empty_value_renders_as_bare_switch() -> None:
    command = Command()
    command.add_flag("fullscreen")
    command.add_flag("volume", "50")

    assert command.flags == {"fullscreen": BOOLEAN_FLAG, "volume": "50"}
    assert command.tokens() == ["mpv", "--fullscreen", "--volume=50"]


def test_flags_precede_args_in_insertion_order() -> None:
    command = Command()
    command.add_arg("b.mkv")
    command.add_flag("osc", "no")
    command.add_arg("a.mkv")
    command.add_arg("b.mkv")
    command.add_flag("mute")

    assert command.tokens() == ["mpv", "--osc=no", "--mute", "b.mkv", "a.mkv", "b.mkv"]


def test_overwriting_a_flag_keeps_its_slot() -> None:
    command = Command()
    command.add_flag("volume", "10")
    command.add_flag("mute")
    command.add_flag("volume", "90")

    assert command.tokens() == ["mpv", "--volume=90", "--mute"]


def test_repeated_flags_render_after_unique_flags() -> None:
    command = Command()
    command.append_flag("audio-files-append", "b.flac")
    command.add_flag("audio-files", "a.flac")
    command.append_flag("audio-files-append", "c.flac")

    assert command.tokens() == [
        "mpv",
        "--audio-files=a.flac",
        "--audio-files-append=b.flac",
        "--audio-files-append=c.flac",
    ]


def test_render_is_idempotent() -> None:
    command = Command()
    command.add_flag("input-ipc-server", "/tmp/mpv_socket")
    command.add_flag("lavfi-complex", "[aid1] [aid2] amix [ao]")
    command.add_arg("my video.mkv")

    first = str(command)
    assert str(command) == first
    assert command.tokens() == command.tokens()


def test_string_form_is_shell_escaped() -> None:
    command = Command()
    command.add_flag("lavfi-complex", "[aid1] [aid2] amix [ao]")
    command.add_arg("my video.mkv")

    assert shlex.split(str(command)) == command.tokens()
    assert "'--lavfi-complex=[aid1] [aid2] amix [ao]'" in str(command)


def test_custom_program_tokens() -> None:
    command = Command(["/usr/bin/env", "mpv"])
    command.add_flag("idle")

    assert command.tokens() == ["/usr/bin/env", "mpv", "--idle"]
    assert command.has_flag("idle")
    assert command.get_flag("missing") is None
