"""
CommandResult — the outcome of one external command.

Runners return results, they never raise for a non-zero exit: callers
decide which exit statuses are fatal for their stage.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class CommandResult(BaseModel):
    """Exit status and combined output of a finished command."""

    command: list[str]
    exit_code: int
    output: str = ""
    cwd: str | None = None
    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.exit_code == 0

    @property
    def display(self) -> str:
        """Command line as a single string, for logs and messages."""
        return " ".join(self.command)

    @classmethod
    def success(cls, command: list[str], output: str = "", **kwargs) -> CommandResult:
        return cls(command=command, exit_code=0, output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        command: list[str],
        exit_code: int = 1,
        output: str = "",
        **kwargs,
    ) -> CommandResult:
        return cls(command=command, exit_code=exit_code, output=output, **kwargs)
