"""
Settings — process-wide provisioner configuration.

Loaded once at startup from provisioner.yml (optional) plus ``SP_*``
environment variables, then passed by reference into the services.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from provisioner.core.models.solution import SolutionConfig, SolutionOverride

DEFAULT_WORKSPACE_DIR = Path("/workspace")
DEFAULT_NETWORK = "weam_app-network"
DEFAULT_COMPOSE_INSTALL_COMMAND = (
    'wget -O /usr/local/bin/docker-compose '
    '"https://github.com/docker/compose/releases/download/v2.20.2/'
    'docker-compose-$(uname -s)-$(uname -m)" '
    "&& chmod +x /usr/local/bin/docker-compose"
)


class Settings(BaseModel):
    """Provisioner configuration."""

    workspace_dir: Path = DEFAULT_WORKSPACE_DIR
    root_env_file: Path | None = None       # default: <workspace_dir>/.env
    network_name: str = DEFAULT_NETWORK
    compose_install_command: str = DEFAULT_COMPOSE_INSTALL_COMMAND
    host: str = "localhost"

    # ── Timeouts (seconds) ───────────────────────────────────────
    clone_timeout: int = 600
    build_timeout: int = 1800
    command_timeout: int = 120

    # ── Catalog overrides ────────────────────────────────────────
    solutions: list[SolutionOverride] = Field(default_factory=list)

    @property
    def root_env_path(self) -> Path:
        """Shared root environment file (read-only to the provisioner)."""
        return self.root_env_file or self.workspace_dir / ".env"

    def repo_path(self, solution: SolutionConfig) -> Path:
        """Deterministic clone directory for a solution."""
        return self.workspace_dir / solution.repo_name

    def address_for(self, solution: SolutionConfig) -> str:
        return f"http://{self.host}:{solution.port}"
