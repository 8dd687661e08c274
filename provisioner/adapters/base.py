"""
Command runner base — the contract between services and external tools.

Services never call ``subprocess`` directly.  They hand an argv list to
a ``CommandRunner`` and get a ``CommandResult`` back, which keeps the
orchestration logic testable without git or a container runtime.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from provisioner.core.models.command import CommandResult


class CommandRunner(ABC):
    """Abstract runner for external commands.

    Runners report failures through ``CommandResult.exit_code``.
    They NEVER raise for a non-zero exit, a missing binary or a timeout.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement name, is_available, run
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Runner identifier (e.g. 'subprocess', 'mock')."""

    @abstractmethod
    def is_available(self, tool: str) -> bool:
        """Check whether ``tool`` can be executed on this host.

        Should be fast and never raise.
        """

    @abstractmethod
    def run(
        self,
        command: list[str],
        *,
        cwd: Path | str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """Run ``command`` and return its exit status and combined output.

        MUST never raise for command failures.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
