"""Pydantic schemas for engine request bodies and responses."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class ProcessorState(str, Enum):
    """Run state of a processor."""
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


# === Request Models ===

class Revision(BaseModel):
    """Revision the caller asserts is current."""
    version: int = 0


class Position(BaseModel):
    """Canvas position of a component."""
    x: float = 0.0
    y: float = 0.0


class ProcessGroupComponent(BaseModel):
    name: str
    position: Position = Field(default_factory=Position)


class ProcessorComponent(BaseModel):
    type: str
    position: Position = Field(default_factory=Position)
    configurations: dict[str, str] = Field(default_factory=dict)


class RunStatusComponent(BaseModel):
    state: ProcessorState


class ProcessGroupRequest(BaseModel):
    """Body for creating a process group."""
    revision: Revision = Field(default_factory=Revision)
    component: ProcessGroupComponent


class ProcessorRequest(BaseModel):
    """Body for creating a processor."""
    revision: Revision = Field(default_factory=Revision)
    component: ProcessorComponent


class RunStatusRequest(BaseModel):
    """Body for updating a processor's run status."""
    revision: Revision = Field(default_factory=Revision)
    component: RunStatusComponent


# === Response Models ===

class CreatedEntity(BaseModel):
    """Response to a create call. Only the id matters to us."""
    model_config = ConfigDict(extra="ignore")

    id: StrictStr


class RevisionInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: StrictInt


class ProcessGroupEntity(BaseModel):
    """Response to reading a process group."""
    model_config = ConfigDict(extra="ignore")

    revision: RevisionInfo
