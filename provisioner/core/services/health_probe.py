"""Health probe — is a solution installing, running, or neither?

Point-in-time and best-effort: callers poll it.  Nothing here changes
host state.
"""

from __future__ import annotations

import logging
import re

from provisioner.adapters.base import CommandRunner
from provisioner.core.models.install import HealthReport, HealthStatus
from provisioner.core.services.solution_registry import SolutionRegistry

logger = logging.getLogger(__name__)

_INSTALL_PROCESS = re.compile(r"docker-compose|docker compose|docker build")


class HealthProbe:
    """Answer health queries from ``ps`` and ``docker ps`` output.

    A build or compose process counts as "installing" only when its
    command line names the solution: one of its aliases or its image.
    Compose runs carry ``-p <repo_name>``; clone directories end in it.
    """

    def __init__(self, registry: SolutionRegistry, runner: CommandRunner):
        self._registry = registry
        self._runner = runner

    def probe(self, solution_id: str | None) -> HealthReport:
        if not solution_id:
            return HealthReport(status=HealthStatus.ERROR, message="Solution type is required")

        try:
            if self._install_in_progress(solution_id):
                return HealthReport(
                    status=HealthStatus.INSTALLING,
                    message="Installation in progress",
                )
            return self._container_status(solution_id)
        except Exception as e:
            logger.warning("Health probe for %s failed: %s", solution_id, e)
            return HealthReport(status=HealthStatus.ERROR, message=str(e))

    def _install_markers(self, solution_id: str) -> list[str]:
        markers = self._registry.aliases_for(solution_id)
        if solution_id in self._registry:
            markers.append(self._registry.lookup(solution_id).image_name)
        return markers

    def _install_in_progress(self, solution_id: str) -> bool:
        r = self._runner.run(["ps", "aux"], timeout=10)
        if not r.ok:
            logger.debug("ps aux failed: %s", r.output)
            return False

        markers = self._install_markers(solution_id)
        return any(
            _INSTALL_PROCESS.search(line)
            and "grep" not in line
            and any(m in line for m in markers)
            for line in r.output.splitlines()
        )

    def _container_status(self, solution_id: str) -> HealthReport:
        r = self._runner.run(
            ["docker", "ps", "--format", "{{.Names}} {{.Status}}"],
            timeout=10,
        )
        if not r.ok:
            return HealthReport(status=HealthStatus.NOT_RUNNING, message="Docker not available")

        names = self._registry.aliases_for(solution_id)
        for line in r.output.splitlines():
            line = line.strip()
            if not line:
                continue
            name, _, status = line.partition(" ")
            if "Up" in status and any(n in name for n in names):
                return HealthReport(status=HealthStatus.RUNNING, container=line)

        return HealthReport(
            status=HealthStatus.NOT_RUNNING,
            message="Container not found or not running",
        )
