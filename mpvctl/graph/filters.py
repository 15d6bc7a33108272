"""
Filter graph nodes rendered into mpv's ``lavfi-complex`` syntax.
"""

from __future__ import annotations

from typing import List

AUDIO_OUTPUT = "ao"
VIDEO_OUTPUT = "vo"


class FilterNode:
    """
    A single filter applied to zero or more labelled inputs.

    Labels are not escaped; source ids are generated by the session and are
    always graph-safe.
    """

    def __init__(self, operator: str, *inputs: str, output: str = AUDIO_OUTPUT) -> None:
        self.operator = operator
        self.inputs: List[str] = list(inputs)
        self.output = output

    def set_target(self, label: str) -> None:
        self.output = label

    def add_input(self, label: str) -> None:
        self.inputs.append(label)

    def render(self) -> str:
        if not self.inputs:
            return self.operator
        labels = " ".join(f"[{label}]" for label in self.inputs)
        return f"{labels} {self.operator} [{self.output}]"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"FilterNode({self.operator!r}, inputs={self.inputs!r}, output={self.output!r})"
