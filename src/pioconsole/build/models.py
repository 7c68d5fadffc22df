"""Pydantic models for build state and pushed build events."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class BuildPhase(StrEnum):
    """Coarse state of the build state machine."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class BuildState(BaseModel):
    """The single build/upload/test record.

    ``success`` and ``duration_ms`` stay None until a ``complete`` event has
    been seen since the last ``started``.
    """

    is_building: bool = False
    app_name: str | None = None
    environment: str | None = None
    success: bool | None = None
    duration_ms: int | None = None
    lines: list[str] = Field(default_factory=list)

    @property
    def phase(self) -> BuildPhase:
        if self.is_building:
            return BuildPhase.RUNNING
        if self.success is not None:
            return BuildPhase.COMPLETED
        return BuildPhase.IDLE


class BuildStartedEvent(BaseModel):
    type: Literal["started"] = "started"
    app_name: str | None = None
    environment: str | None = None


class BuildOutputEvent(BaseModel):
    type: Literal["output"] = "output"
    line: str | None = None


class BuildErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str | None = None


class BuildCompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    success: bool | None = None
    duration_ms: int | None = None


BuildEvent = Annotated[
    Union[BuildStartedEvent, BuildOutputEvent, BuildErrorEvent, BuildCompleteEvent],
    Field(discriminator="type"),
]

build_event_adapter: TypeAdapter[BuildEvent] = TypeAdapter(BuildEvent)
