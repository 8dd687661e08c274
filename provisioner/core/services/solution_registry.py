"""
Solution registry — the immutable catalog of installable solutions.

Built once at process start from the packaged catalog plus any
``solutions:`` overrides in provisioner.yml, then shared read-only by
the orchestrator, the gateway and the health probe.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from types import MappingProxyType

from provisioner.core.data import load_catalog
from provisioner.core.errors import UnknownSolution
from provisioner.core.models.settings import Settings
from provisioner.core.models.solution import SolutionConfig, SolutionOverride

logger = logging.getLogger(__name__)


class SolutionRegistry:
    """Read-only lookup of ``SolutionConfig`` by id.

    The backing mapping is a ``MappingProxyType`` over entries that are
    themselves frozen, so concurrent lookups need no locking.
    """

    def __init__(self, solutions: Iterable[SolutionConfig]):
        entries: dict[str, SolutionConfig] = {}
        for solution in solutions:
            if solution.id in entries:
                logger.warning("Duplicate catalog id '%s' — later entry wins", solution.id)
            entries[solution.id] = solution
        self._entries = MappingProxyType(entries)

    def lookup(self, solution_id: str | None) -> SolutionConfig:
        """Return the catalog entry for ``solution_id``.

        Raises:
            UnknownSolution: If the id is empty or not in the catalog.
        """
        if not solution_id:
            raise UnknownSolution("Solution type is required")
        try:
            return self._entries[solution_id]
        except KeyError:
            raise UnknownSolution(f"Unknown solution type: {solution_id}") from None

    def ids(self) -> list[str]:
        return list(self._entries)

    def all(self) -> list[SolutionConfig]:
        return list(self._entries.values())

    def aliases_for(self, solution_id: str) -> list[str]:
        """Name fragments identifying this solution's containers.

        The id itself, the clone directory name, the container name and
        any configured aliases — deduplicated, in that order.  Unknown ids
        yield just the id.
        """
        names = [solution_id]
        solution = self._entries.get(solution_id)
        if solution is not None:
            names += [solution.repo_name, solution.container_name, *solution.aliases]
        return list(dict.fromkeys(n for n in names if n))

    def __contains__(self, solution_id: object) -> bool:
        return solution_id in self._entries

    def __iter__(self) -> Iterator[SolutionConfig]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def apply_overrides(
    base: list[dict],
    overrides: Iterable[SolutionOverride],
) -> list[dict]:
    """Patch catalog entries by id; unknown ids are appended as new entries."""
    by_id = {entry["id"]: dict(entry) for entry in base}
    for override in overrides:
        patch = override.patch()
        if override.id in by_id:
            by_id[override.id].update(patch)
            logger.debug("Catalog entry '%s' overridden: %s", override.id, sorted(patch))
        else:
            by_id[override.id] = patch
            logger.debug("Catalog entry '%s' added from settings", override.id)
    return list(by_id.values())


def load_default_registry(settings: Settings | None = None) -> SolutionRegistry:
    """Build the registry from the packaged catalog and settings overrides."""
    entries = load_catalog("solutions")
    if settings is not None and settings.solutions:
        entries = apply_overrides(entries, settings.solutions)

    registry = SolutionRegistry(SolutionConfig.model_validate(e) for e in entries)
    logger.info("Solution catalog loaded (%d entries)", len(registry))
    return registry
