"""
Logging helpers for mpvctl.

The library modules only create module level loggers; handlers are installed
here, by the command line entrypoint, and never by library code.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LEVEL_ENV_VAR = "MPVCTL_LOG_LEVEL"


def resolve_level(level: Union[int, str, None]) -> int:
    """
    Turn ``level`` (a number, a name such as ``"debug"`` or ``None``) into a
    logging level; ``None`` consults ``MPVCTL_LOG_LEVEL`` and defaults to INFO.
    """

    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR, "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Union[int, str, None] = None, format: Optional[str] = None) -> None:
    """
    Ensure the root logger is configured exactly once.
    """

    if logging.getLogger().handlers:
        # Respect any user provided configuration.
        return

    logging.basicConfig(
        level=resolve_level(level),
        format=format or DEFAULT_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Unclosed-transport chatter from asyncio drowns out session messages.
    logging.getLogger("asyncio").setLevel(logging.WARNING)
