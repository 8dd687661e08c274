"""
Provisioning errors — one exception class per attempt-fatal failure kind.

Every error raised during an installation attempt is a
``ProvisionError`` carrying an ``ErrorKind``.  The orchestrator catches
them at the top of the pipeline and moves the attempt to ``failed``;
nothing here is retried automatically.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Stable identifiers for failure kinds (exposed on the wire)."""

    UNKNOWN_SOLUTION = "UnknownSolution"
    CLONE_FAILED = "CloneFailed"
    NO_DEPLOYMENT_DESCRIPTOR = "NoDeploymentDescriptor"
    BUILD_FAILED = "BuildFailed"
    RUN_FAILED = "RunFailed"
    COMPOSE_FAILED = "ComposeFailed"
    TOOL_UNAVAILABLE = "ToolUnavailable"
    INSTALL_IN_PROGRESS = "InstallInProgress"
    INTERNAL = "Internal"


# Keep this many trailing characters of command output in error messages
_OUTPUT_TAIL = 800


def output_tail(output: str, limit: int = _OUTPUT_TAIL) -> str:
    """Return the last ``limit`` characters of command output, stripped."""
    output = output.strip()
    if len(output) <= limit:
        return output
    return "…" + output[-limit:]


class ProvisionError(Exception):
    """Base class for attempt-fatal provisioning failures."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, output: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.output = output

    def to_dict(self) -> dict[str, str]:
        data = {"kind": str(self.kind), "message": self.message}
        if self.output:
            data["output"] = output_tail(self.output)
        return data


class UnknownSolution(ProvisionError):
    kind = ErrorKind.UNKNOWN_SOLUTION


class CloneFailed(ProvisionError):
    kind = ErrorKind.CLONE_FAILED


class NoDeploymentDescriptor(ProvisionError):
    kind = ErrorKind.NO_DEPLOYMENT_DESCRIPTOR


class BuildFailed(ProvisionError):
    kind = ErrorKind.BUILD_FAILED


class RunFailed(ProvisionError):
    kind = ErrorKind.RUN_FAILED


class ComposeFailed(ProvisionError):
    kind = ErrorKind.COMPOSE_FAILED


class ToolUnavailable(ProvisionError):
    kind = ErrorKind.TOOL_UNAVAILABLE


class InstallInProgress(ProvisionError):
    """Another attempt for the same solution holds its lock."""

    kind = ErrorKind.INSTALL_IN_PROGRESS


class InvalidTransition(RuntimeError):
    """Raised when the state machine is asked to skip or revisit a state.

    This is a programming error, not a provisioning failure.
    """
