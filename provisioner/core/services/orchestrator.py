"""
Installation orchestrator — the state machine behind one install attempt.

Flow:
    idle → cleaning_repo → cloning → cleaning_containers
         → detecting_structure → merging_env → building → running → succeeded

Any ``ProvisionError`` moves the attempt straight to ``failed`` with the
error's kind.  Every transition goes through ``InstallAttempt.transition``,
which rejects skips and revisits and emits one progress event.

The orchestrator never retries.  A caller that wants another try starts a
new attempt from ``idle``; every cleanup step is idempotent.

Two attempts for the same solution never overlap: a per-solution lock is
taken before the clone directory is touched, and a concurrent attempt
fails immediately with ``InstallInProgress``.
"""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Callable
from pathlib import Path

from provisioner.adapters.base import CommandRunner
from provisioner.core.errors import (
    CloneFailed,
    ErrorKind,
    InstallInProgress,
    InvalidTransition,
    ProvisionError,
    ToolUnavailable,
)
from provisioner.core.models.install import (
    InstallationState,
    InstallResult,
    ProgressEvent,
    is_valid_transition,
)
from provisioner.core.models.settings import Settings
from provisioner.core.models.solution import SolutionConfig
from provisioner.core.services import repo_detect
from provisioner.core.services.containers import ContainerManager
from provisioner.core.services.solution_registry import SolutionRegistry

logger = logging.getLogger(__name__)

EventSink = Callable[[ProgressEvent], None]

State = InstallationState


class SolutionLocks:
    """Non-blocking, per-solution mutual exclusion."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, solution_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(solution_id, threading.Lock())

    def acquire(self, solution_id: str) -> bool:
        return self._lock_for(solution_id).acquire(blocking=False)

    def release(self, solution_id: str) -> None:
        self._lock_for(solution_id).release()

    def is_locked(self, solution_id: str) -> bool:
        return self._lock_for(solution_id).locked()


# Shared by every Installer in the process
solution_locks = SolutionLocks()


class InstallAttempt:
    """State and event emission for a single attempt."""

    def __init__(self, solution_id: str, sink: EventSink | None = None):
        self._sink = sink
        self.result = InstallResult(solution_id=solution_id, history=[State.IDLE])

    @property
    def state(self) -> InstallationState:
        return self.result.state

    def transition(self, new_state: InstallationState, message: str) -> None:
        """Move to ``new_state`` and emit a ``state-change`` event.

        Raises:
            InvalidTransition: The move would skip or revisit a state.
        """
        current = self.result.state
        if not is_valid_transition(current, new_state):
            raise InvalidTransition(f"{current} → {new_state} is not allowed")

        self.result.state = new_state
        self.result.history.append(new_state)
        logger.info("[%s] %s → %s: %s", self.result.solution_id, current, new_state, message)

        self._emit(ProgressEvent(
            type="state-change",
            state=new_state,
            message=message,
            error_kind=self.result.error_kind,
        ))

    def succeed(self, solution: SolutionConfig, address: str) -> None:
        self.result.port = solution.port
        self.result.address = address
        self.transition(State.SUCCEEDED, f"Installation completed! Solution running at {address}")

    def fail(self, kind: ErrorKind, message: str) -> None:
        self.result.error_kind = kind
        self.result.error = message
        self.transition(State.FAILED, f"Installation failed: {message}")

    def _emit(self, event: ProgressEvent) -> None:
        if self._sink is None:
            return
        try:
            self._sink(event)
        except Exception as e:
            # Delivery problems never break the install
            logger.warning("Progress sink raised for %s: %s", self.result.solution_id, e)


class Installer:
    """Runs installation attempts against the catalog.

    Args:
        registry: Solution catalog.
        runner: Command runner for git/docker.
        settings: Workspace, network, timeouts.
        containers: Container manager (default: built from runner/settings).
        locks: Per-solution lock table (default: process-wide table).
    """

    def __init__(
        self,
        registry: SolutionRegistry,
        runner: CommandRunner,
        settings: Settings,
        *,
        containers: ContainerManager | None = None,
        locks: SolutionLocks | None = None,
    ):
        self._registry = registry
        self._runner = runner
        self._settings = settings
        self._containers = containers or ContainerManager(runner, settings)
        self._locks = locks or solution_locks

    @property
    def registry(self) -> SolutionRegistry:
        return self._registry

    @property
    def settings(self) -> Settings:
        return self._settings

    def install(self, solution_id: str, sink: EventSink | None = None) -> InstallResult:
        """Run one attempt to a terminal state and return its result.

        Never raises for provisioning failures: they end in ``failed``.
        """
        attempt = InstallAttempt(solution_id, sink)

        try:
            solution = self._registry.lookup(solution_id)
        except ProvisionError as e:
            attempt.fail(e.kind, e.message)
            return attempt.result

        if not self._locks.acquire(solution.id):
            err = InstallInProgress(f"An installation of {solution.id} is already running")
            attempt.fail(err.kind, err.message)
            return attempt.result

        try:
            self._run(attempt, solution)
        except ProvisionError as e:
            logger.error("Installation of %s failed (%s): %s", solution.id, e.kind, e.message)
            if e.output:
                logger.debug("Command output:\n%s", e.output)
            attempt.fail(e.kind, e.message)
        except InvalidTransition:
            raise
        except Exception as e:
            logger.exception("Unexpected error installing %s", solution.id)
            attempt.fail(ErrorKind.INTERNAL, str(e) or e.__class__.__name__)
        finally:
            self._locks.release(solution.id)

        return attempt.result

    # ── Pipeline ────────────────────────────────────────────────

    def _run(self, attempt: InstallAttempt, solution: SolutionConfig) -> None:
        repo_path = self._settings.repo_path(solution)
        logger.info("Installing solution %s (%s)", solution.id, solution.install_type)

        attempt.transition(State.CLEANING_REPO, "Cleaning up existing repository...")
        self._remove_clone(repo_path)

        attempt.transition(
            State.CLONING,
            f"Cloning {solution.repo_url} (branch {solution.branch_name})...",
        )
        self._clone(solution, repo_path)

        attempt.transition(State.CLEANING_CONTAINERS, "Cleaning up existing containers...")
        self._containers.cleanup_containers(solution)

        attempt.transition(State.DETECTING_STRUCTURE, "Detecting repository structure...")
        structure = repo_detect.detect(repo_path)
        path = repo_detect.choose_install_path(solution.install_type, structure)

        if path == "composed":
            taken = self._containers.install_composed(
                solution, repo_path, structure, notify=attempt.transition,
            )
        else:
            self._containers.install_single(solution, repo_path, notify=attempt.transition)
            taken = "single"

        attempt.result.install_path = taken
        attempt.succeed(solution, self._settings.address_for(solution))

    def _remove_clone(self, repo_path: Path) -> None:
        if repo_path.exists():
            shutil.rmtree(repo_path)
            logger.debug("Removed previous clone at %s", repo_path)

    def _clone(self, solution: SolutionConfig, repo_path: Path) -> None:
        if not self._runner.is_available("git"):
            raise ToolUnavailable("git is not available on this host")

        repo_path.parent.mkdir(parents=True, exist_ok=True)
        r = self._runner.run(
            ["git", "clone", "-b", solution.branch_name, solution.repo_url, str(repo_path)],
            cwd=repo_path.parent,
            timeout=self._settings.clone_timeout,
        )
        if not r.ok:
            raise CloneFailed(
                f"git clone of {solution.repo_url} failed (exit {r.exit_code})",
                output=r.output,
            )
