"""Repository structure detection — which deployment descriptors a clone ships."""

from __future__ import annotations

import logging
from pathlib import Path

from provisioner.core.errors import NoDeploymentDescriptor
from provisioner.core.models.install import InstallPath, RepoStructure
from provisioner.core.models.solution import InstallType

logger = logging.getLogger(__name__)

# Checked in this order; the first hit wins
COMPOSE_FILENAMES = (
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)

DOCKERFILE = "Dockerfile"


def find_compose_file(repo_path: Path) -> Path | None:
    """Return the first compose file at the repo root, or None."""
    for name in COMPOSE_FILENAMES:
        path = repo_path / name
        if path.is_file():
            return path
    return None


def detect(repo_path: Path) -> RepoStructure:
    """Inspect the repository root (never subdirectories or contents)."""
    compose = find_compose_file(repo_path)
    structure = RepoStructure(
        has_compose_descriptor=compose is not None,
        has_dockerfile=(repo_path / DOCKERFILE).is_file(),
        compose_file_name=compose.name if compose else None,
    )
    logger.debug(
        "Detected %s: compose=%s dockerfile=%s",
        repo_path, structure.compose_file_name, structure.has_dockerfile,
    )
    return structure


def choose_install_path(declared: InstallType, structure: RepoStructure) -> InstallPath:
    """Decide single vs. composed from the catalog hint and the clone.

    A ``COMPOSED`` declaration is only a hint: a repository without a
    compose file but with a Dockerfile is installed as a single
    container.  A ``SINGLE`` declaration always builds the Dockerfile.

    Raises:
        NoDeploymentDescriptor: The chosen path has nothing to build.
    """
    if declared is InstallType.COMPOSED and structure.has_compose_descriptor:
        return "composed"
    if structure.has_dockerfile:
        return "single"
    raise NoDeploymentDescriptor("No Docker configuration found in repository")
