"""
Progress events — what a lifecycle worker reports to the presentation layer.

Events for one operation are sequence-numbered and delivered in order.
Exactly one terminal event (``done`` or ``error``) closes the sequence.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Stage(str, Enum):
    FETCHING_MANIFEST = "fetching-manifest"
    CLONING = "cloning"
    FETCHING = "fetching"
    PULLING = "pulling"
    RUNNING_HOOK = "running-hook"
    REMOVING = "removing"
    DONE = "done"
    ERROR = "error"


TERMINAL_STAGES = frozenset({Stage.DONE, Stage.ERROR})


class ProgressEvent(BaseModel):
    """An ordered stage marker, or a terminal result/error."""

    seq: int
    stage: Stage
    package: str = ""
    message: str = ""
    error_kind: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES
