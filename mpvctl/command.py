"""
Command line assembly for the mpv process.
"""

from __future__ import annotations

import shlex
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

DEFAULT_PROGRAM = "mpv"

# Stored in place of a value for switches rendered without ``=value``.
BOOLEAN_FLAG = "true"


class Command:
    """
    Accumulates flags and positional arguments for a single invocation.

    Unique flags keep their insertion order; overwriting a flag keeps the
    slot it was first added in, so rendering is deterministic.
    """

    def __init__(self, program: Optional[Sequence[str]] = None) -> None:
        self.program: Tuple[str, ...] = tuple(program) if program else (DEFAULT_PROGRAM,)
        self.flags: Dict[str, str] = {}
        self.repeated_flags: List[Tuple[str, str]] = []
        self.args: List[str] = []

    def add_flag(self, name: str, value: str = "") -> None:
        self.flags[name] = value if value else BOOLEAN_FLAG

    def append_flag(self, name: str, value: str = "") -> None:
        """
        Record a flag that may legitimately appear more than once.
        """

        self.repeated_flags.append((name, value if value else BOOLEAN_FLAG))

    def add_arg(self, value: str) -> None:
        self.args.append(value)

    def has_flag(self, name: str) -> bool:
        return name in self.flags

    def get_flag(self, name: str) -> Optional[str]:
        return self.flags.get(name)

    def tokens(self) -> List[str]:
        rendered = list(self.program)
        rendered.extend(_render_flags(self.flags.items()))
        rendered.extend(_render_flags(self.repeated_flags))
        rendered.extend(self.args)
        return rendered

    def __str__(self) -> str:
        return " ".join(shlex.quote(token) for token in self.tokens())

    def __repr__(self) -> str:
        return f"Command({self.tokens()!r})"


def _render_flags(flags: Iterable[Tuple[str, str]]) -> List[str]:
    rendered: List[str] = []
    for name, value in flags:
        if value == BOOLEAN_FLAG:
            rendered.append(f"--{name}")
        else:
            rendered.append(f"--{name}={value}")
    return rendered


__all__ = ["BOOLEAN_FLAG", "Command", "DEFAULT_PROGRAM"]
