"""
Filter graph helpers.

Nodes are composed by the caller; the session only attaches their rendered
form to the command line.
"""

from __future__ import annotations

__all__ = [
    "AUDIO_OUTPUT",
    "VIDEO_OUTPUT",
    "FilterNode",
]

from .filters import AUDIO_OUTPUT, VIDEO_OUTPUT, FilterNode
