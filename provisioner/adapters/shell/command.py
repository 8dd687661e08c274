"""
Subprocess runner — execute commands on the host and capture output.

This is the only place in the provisioner where ``subprocess.run`` is
called.  stdout and stderr are merged because docker and git both
report progress on stderr.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path

from provisioner.adapters.base import CommandRunner
from provisioner.core.models.command import CommandResult

logger = logging.getLogger(__name__)

# Exit statuses used when the command never produced one
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124


class SubprocessRunner(CommandRunner):
    """Run argv lists through ``subprocess.run`` (no shell).

    Args:
        default_timeout: Timeout in seconds when the caller gives none.
    """

    def __init__(self, default_timeout: int = 300) -> None:
        self._default_timeout = default_timeout

    @property
    def name(self) -> str:
        return "subprocess"

    def is_available(self, tool: str) -> bool:
        return shutil.which(tool) is not None

    def run(
        self,
        command: list[str],
        *,
        cwd: Path | str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        timeout = timeout or self._default_timeout
        cwd_str = str(cwd) if cwd is not None else None

        logger.debug("Executing: %s (cwd=%s)", " ".join(command), cwd_str)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                cwd=cwd_str,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            return CommandResult.failure(
                command,
                exit_code=EXIT_NOT_FOUND,
                output=f"Command not found: {e.filename or command[0]}",
                cwd=cwd_str,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.output if isinstance(e.output, str) else ""
            return CommandResult.failure(
                command,
                exit_code=EXIT_TIMEOUT,
                output=(partial + f"\nCommand timed out after {timeout}s").strip(),
                cwd=cwd_str,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        except OSError as e:
            return CommandResult.failure(
                command,
                output=f"Command execution error: {e}",
                cwd=cwd_str,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = (result.stdout or "").strip()
        if result.returncode != 0:
            logger.debug(
                "Command exited %d after %dms: %s",
                result.returncode, elapsed_ms, " ".join(command),
            )

        return CommandResult(
            command=command,
            exit_code=result.returncode,
            output=output,
            cwd=cwd_str,
            duration_ms=elapsed_ms,
        )
