"""
Container lifecycle — turn a chosen install path into docker commands.

Two install paths:

    single     materialize .env → merge root env (scratch file removed)
               → docker build → docker run → restore the repo's .env
    composed   ensure a compose tool → materialize/merge .env
               → compose -p <repo> up -d --build → keep merged .env

The manager owns no state.  It reports stage boundaries through the
``notify`` callback so the orchestrator can advance its state machine
at the moment the work actually starts.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from provisioner.adapters.base import CommandRunner
from provisioner.core.errors import (
    BuildFailed,
    ComposeFailed,
    NoDeploymentDescriptor,
    RunFailed,
    ToolUnavailable,
    output_tail,
)
from provisioner.core.models.command import CommandResult
from provisioner.core.models.install import InstallationState, InstallPath, RepoStructure
from provisioner.core.models.settings import Settings
from provisioner.core.models.solution import SolutionConfig
from provisioner.core.services.env_merge import materialize_template, merge_env_files

logger = logging.getLogger(__name__)

Notify = Callable[[InstallationState, str], None]

LOCAL_ENV = ".env"
SCRATCH_ENV = ".env.temp"

# Template searched for when a composed solution declares none
_FALLBACK_TEMPLATE = ".env.example"


def _no_notify(state: InstallationState, message: str) -> None:
    logger.debug("[%s] %s", state, message)


class ContainerManager:
    """Build, run and clean up solution containers.

    Args:
        runner: Command runner used for every docker invocation.
        settings: Network name, timeouts, root env path, compose installer.
    """

    def __init__(self, runner: CommandRunner, settings: Settings):
        self._runner = runner
        self._settings = settings

    # ── Cleanup ─────────────────────────────────────────────────

    def cleanup_containers(self, solution: SolutionConfig) -> None:
        """Remove the solution's container and free its additional ports.

        Best-effort and idempotent: nothing here ever raises.
        """
        try:
            self._cleanup(solution)
        except Exception as e:
            logger.warning("Container cleanup for %s failed: %s", solution.id, e)

    def _cleanup(self, solution: SolutionConfig) -> None:
        logger.info("Cleaning up existing containers for %s", solution.id)

        r = self._docker("rm", "-f", solution.container_name)
        if not r.ok and "no such container" not in r.output.lower():
            logger.warning("docker rm -f %s: %s", solution.container_name, output_tail(r.output, 200))

        for port in solution.additional_ports:
            r = self._docker("ps", "-q", "--filter", f"publish={port}")
            if not r.ok:
                logger.warning("Cannot list containers on port %s: %s", port, output_tail(r.output, 200))
                continue
            ids = r.output.split()
            if not ids:
                continue
            stop = self._docker("stop", *ids)
            if stop.ok:
                logger.info("Stopped %d container(s) publishing port %s", len(ids), port)
            else:
                logger.warning("Cannot stop containers on port %s: %s", port, output_tail(stop.output, 200))

    # ── Single container ────────────────────────────────────────

    def install_single(
        self,
        solution: SolutionConfig,
        repo_path: Path,
        notify: Notify = _no_notify,
    ) -> None:
        """Build the repo's Dockerfile and run it as one container.

        Raises:
            ToolUnavailable: docker is not on PATH.
            BuildFailed: ``docker build`` exited non-zero.
            RunFailed: ``docker run`` exited non-zero.
        """
        self._require_docker()

        notify(InstallationState.MERGING_ENV, "Merging environment configuration...")
        local_env = repo_path / LOCAL_ENV
        original = self._materialize_env(solution.env_file_name, repo_path)

        try:
            self._merge_root_env(repo_path)

            notify(InstallationState.BUILDING, f"Building Docker image {solution.image_name}...")
            r = self._docker(
                "build", "-t", solution.image_name, str(repo_path),
                cwd=repo_path, timeout=self._settings.build_timeout,
            )
            if not r.ok:
                raise BuildFailed(
                    f"Docker build failed for {solution.image_name} (exit {r.exit_code})",
                    output=r.output,
                )

            notify(InstallationState.RUNNING, f"Starting container {solution.container_name}...")
            r = self._docker(
                "run", "-d",
                "--name", solution.container_name,
                "--network", self._settings.network_name,
                "-p", f"{solution.port}:{solution.port}",
                solution.image_name,
                cwd=repo_path,
            )
            if not r.ok:
                raise RunFailed(
                    f"Container {solution.container_name} failed to start (exit {r.exit_code})",
                    output=r.output,
                )
        finally:
            # Root secrets must not stay in the repo's .env
            self._restore_env(local_env, original)

        logger.info("Container %s started on port %s", solution.container_name, solution.port)

    # ── Compose stack ───────────────────────────────────────────

    def install_composed(
        self,
        solution: SolutionConfig,
        repo_path: Path,
        structure: RepoStructure,
        notify: Notify = _no_notify,
    ) -> InstallPath:
        """Bring the repo's compose stack up, falling back to single.

        Returns the path actually taken (``"composed"`` or ``"single"``).

        Raises:
            NoDeploymentDescriptor: No compose file (or no usable compose
                tool) and no Dockerfile to fall back to.
            ComposeFailed: ``compose up`` exited non-zero.  Services that
                did start are left running.
        """
        if not structure.has_compose_descriptor:
            if structure.has_dockerfile:
                logger.info("No compose file in %s — using Dockerfile", repo_path)
                self.install_single(solution, repo_path, notify)
                return "single"
            raise NoDeploymentDescriptor("No Docker configuration found in repository")

        self._require_docker()

        compose = self.ensure_compose()
        if compose is None:
            if structure.has_dockerfile:
                logger.warning("Compose unavailable for %s — falling back to Dockerfile", solution.id)
                self.install_single(solution, repo_path, notify)
                return "single"
            raise NoDeploymentDescriptor(
                "Docker Compose is unavailable and the repository has no Dockerfile"
            )

        notify(InstallationState.MERGING_ENV, "Merging environment configuration...")
        self._materialize_env(solution.env_file_name or _FALLBACK_TEMPLATE, repo_path)
        # The running stack keeps reading the merged .env
        self._merge_root_env(repo_path)

        compose_file = structure.compose_file_name or ""
        notify(
            InstallationState.BUILDING,
            f"Building and starting services ({compose_file})...",
        )
        r = self._runner.run(
            [*compose, "-p", solution.repo_name, "-f", compose_file, "up", "-d", "--build"],
            cwd=repo_path,
            timeout=self._settings.build_timeout,
        )
        if not r.ok:
            raise ComposeFailed(
                f"docker compose up failed for {solution.id} (exit {r.exit_code})",
                output=r.output,
            )

        notify(InstallationState.RUNNING, "Services started")
        logger.info("Compose stack for %s is up (%s)", solution.id, compose_file)
        return "composed"

    # ── Compose tool ────────────────────────────────────────────

    def compose_command(self) -> list[str] | None:
        """The compose invocation available on this host, if any."""
        if self._runner.run(["docker-compose", "--version"], timeout=15).ok:
            return ["docker-compose"]
        if self._runner.run(["docker", "compose", "version"], timeout=15).ok:
            return ["docker", "compose"]
        return None

    def ensure_compose(self) -> list[str] | None:
        """Return a compose invocation, installing the tool once if missing."""
        compose = self.compose_command()
        if compose is not None:
            return compose

        logger.info("Installing Docker Compose...")
        r = self._runner.run(
            ["sh", "-c", self._settings.compose_install_command],
            timeout=self._settings.command_timeout,
        )
        if not r.ok:
            logger.warning("Docker Compose installation failed: %s", output_tail(r.output, 200))
            return None

        logger.info("Docker Compose installed")
        return self.compose_command()

    # ── Helpers ─────────────────────────────────────────────────

    def _require_docker(self) -> None:
        if not self._runner.is_available("docker"):
            raise ToolUnavailable("docker is not available on this host")

    def _materialize_env(self, template_name: str | None, repo_path: Path) -> bytes | None:
        """Materialize the repo's .env from its template; return those bytes."""
        materialize_template(repo_path, template_name)
        local_env = repo_path / LOCAL_ENV
        return local_env.read_bytes() if local_env.is_file() else None

    def _merge_root_env(self, repo_path: Path) -> None:
        """Merge the root .env into the repo's .env via the scratch file."""
        local_env = repo_path / LOCAL_ENV
        scratch = repo_path / SCRATCH_ENV
        try:
            merge_env_files(self._settings.root_env_path, local_env, scratch)
            shutil.copyfile(scratch, local_env)
        finally:
            scratch.unlink(missing_ok=True)

    @staticmethod
    def _restore_env(local_env: Path, original: bytes | None) -> None:
        if original is None:
            local_env.unlink(missing_ok=True)
        else:
            local_env.write_bytes(original)

    def _docker(
        self,
        *args: str,
        cwd: Path | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        return self._runner.run(
            ["docker", *args],
            cwd=cwd,
            timeout=timeout or self._settings.command_timeout,
        )
