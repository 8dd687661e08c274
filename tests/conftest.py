"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from provisioner.adapters.mock import MockRunner
from provisioner.core import context
from provisioner.core.models.command import CommandResult
from provisioner.core.models.settings import Settings
from provisioner.core.services.solution_registry import SolutionRegistry, load_default_registry


def clone_with(files: dict[str, str]):
    """MockRunner handler for ``git clone`` that creates a fake checkout.

    The clone target is the last argument of the command; ``files`` maps
    paths relative to it to file contents.
    """

    def handler(command: list[str], cwd: str | None) -> CommandResult:
        target = Path(command[-1])
        target.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = target / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return CommandResult.success(command, output=f"Cloning into '{target.name}'...", cwd=cwd)

    return handler


@pytest.fixture(autouse=True)
def _reset_context() -> Iterator[None]:
    """Never leak process settings between tests."""
    yield
    context.set_settings(None)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Return an empty workspace directory."""
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


@pytest.fixture
def root_env(workspace: Path) -> Path:
    """Write the shared root .env and return its path."""
    path = workspace / ".env"
    path.write_text("OPENAI_API_KEY=sk-root\nSHARED=from-root\n")
    return path


@pytest.fixture
def settings(workspace: Path) -> Settings:
    return Settings(workspace_dir=workspace, compose_install_command="true")


@pytest.fixture
def registry() -> SolutionRegistry:
    return load_default_registry()


@pytest.fixture
def runner() -> MockRunner:
    """MockRunner where every command succeeds and git/docker are present."""
    return MockRunner()
