"""
Mock runner — scriptable test double for the command runner.

Simulates git/docker without touching the host.  Responses are matched
by command prefix (longest prefix wins); anything unscripted succeeds
with the default output.  Handlers can be registered to produce side
effects, e.g. creating a fake clone directory.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

from provisioner.adapters.base import CommandRunner
from provisioner.core.models.command import CommandResult

Handler = Callable[[list[str], str | None], CommandResult]


class MockRunner(CommandRunner):
    """Universal mock runner for testing.

    By default every command succeeds.  ``available`` lists the tools
    ``is_available`` reports as present.
    """

    def __init__(
        self,
        available: Iterable[str] = ("git", "docker", "docker-compose"),
        default_output: str = "",
    ):
        self._available = set(available)
        self._default_output = default_output
        self._responses: dict[str, CommandResult | Handler] = {}
        self._call_log: list[tuple[list[str], str | None]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[tuple[list[str], str | None]]:
        """Every (command, cwd) pair this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Executed commands as display strings, in call order."""
        return [" ".join(cmd) for cmd, _ in self._call_log]

    def ran(self, prefix: str) -> bool:
        """Whether any executed command starts with ``prefix``."""
        return any(c.startswith(prefix) for c in self.commands)

    def is_available(self, tool: str) -> bool:
        return tool in self._available

    def set_available(self, tool: str, available: bool = True) -> None:
        if available:
            self._available.add(tool)
        else:
            self._available.discard(tool)

    def set_response(self, prefix: str, exit_code: int = 0, output: str = "") -> None:
        """Return a fixed result for commands starting with ``prefix``."""
        self._responses[prefix] = CommandResult(
            command=prefix.split(), exit_code=exit_code, output=output,
        )

    def set_failure(self, prefix: str, exit_code: int = 1, output: str = "Mock failure") -> None:
        """Configure commands starting with ``prefix`` to fail."""
        self.set_response(prefix, exit_code=exit_code, output=output)

    def set_handler(self, prefix: str, handler: Handler) -> None:
        """Call ``handler(command, cwd)`` for commands starting with ``prefix``."""
        self._responses[prefix] = handler

    def run(
        self,
        command: list[str],
        *,
        cwd: Path | str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        cwd_str = str(cwd) if cwd is not None else None
        self._call_log.append((list(command), cwd_str))

        display = " ".join(command)
        matches = [p for p in self._responses if display.startswith(p)]
        if matches:
            response = self._responses[max(matches, key=len)]
            if callable(response):
                return response(list(command), cwd_str)
            return response.model_copy(update={"command": list(command), "cwd": cwd_str})

        return CommandResult.success(list(command), output=self._default_output, cwd=cwd_str)

    def reset(self) -> None:
        """Clear call log and scripted responses."""
        self._call_log.clear()
        self._responses.clear()
