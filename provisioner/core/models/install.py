"""
Installation models — state machine states, detection results,
progress events and attempt outcomes.

An attempt moves strictly forward through ``STATE_ORDER``; ``FAILED``
may be entered from any non-terminal state after ``IDLE``.
"""

from __future__ import annotations

import time
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

from provisioner.core.errors import ErrorKind


class InstallationState(StrEnum):
    """Lifecycle of one installation attempt."""

    IDLE = "idle"
    CLEANING_REPO = "cleaning_repo"
    CLONING = "cloning"
    CLEANING_CONTAINERS = "cleaning_containers"
    DETECTING_STRUCTURE = "detecting_structure"
    MERGING_ENV = "merging_env"
    BUILDING = "building"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATES


# The forward path of a successful attempt
STATE_ORDER: tuple[InstallationState, ...] = (
    InstallationState.IDLE,
    InstallationState.CLEANING_REPO,
    InstallationState.CLONING,
    InstallationState.CLEANING_CONTAINERS,
    InstallationState.DETECTING_STRUCTURE,
    InstallationState.MERGING_ENV,
    InstallationState.BUILDING,
    InstallationState.RUNNING,
    InstallationState.SUCCEEDED,
)

TERMINAL_STATES = frozenset({InstallationState.SUCCEEDED, InstallationState.FAILED})


def is_valid_transition(current: InstallationState, new: InstallationState) -> bool:
    """Whether ``current → new`` is allowed.

    Forward moves go exactly one step along ``STATE_ORDER``.  Any
    non-terminal state may move to ``FAILED``.  Terminal states are final.
    """
    if current.terminal:
        return False
    if new is InstallationState.FAILED:
        return True
    idx = STATE_ORDER.index(current)
    return idx + 1 < len(STATE_ORDER) and STATE_ORDER[idx + 1] is new


InstallPath = Literal["single", "composed"]


class RepoStructure(BaseModel):
    """What a cloned repository offers for deployment."""

    has_compose_descriptor: bool = False
    has_dockerfile: bool = False
    compose_file_name: str | None = None


EventType = Literal["connected", "state-change", "succeeded", "error"]


class ProgressEvent(BaseModel):
    """One message on a progress channel."""

    type: EventType
    message: str
    state: InstallationState | None = None
    port: int | None = None
    address: str | None = None
    error_kind: ErrorKind | None = None
    seq: int = 0
    ts: float = Field(default_factory=time.time)

    def to_wire(self) -> dict[str, Any]:
        """Serialize for the wire, dropping fields that don't apply."""
        return self.model_dump(mode="json", exclude_none=True)


class InstallResult(BaseModel):
    """Outcome of one installation attempt."""

    solution_id: str
    state: InstallationState = InstallationState.IDLE
    history: list[InstallationState] = Field(default_factory=list)
    install_path: InstallPath | None = None
    port: int | None = None
    address: str | None = None
    error_kind: ErrorKind | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.state is InstallationState.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class HealthStatus(StrEnum):
    INSTALLING = "installing"
    RUNNING = "running"
    NOT_RUNNING = "not_running"
    ERROR = "error"


class HealthReport(BaseModel):
    """Point-in-time answer to "is this solution installed and running"."""

    status: HealthStatus
    message: str = ""
    container: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
