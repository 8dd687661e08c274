"""
Tests for CLI commands — global options, solutions and env groups.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from provisioner.adapters.mock import MockRunner
from provisioner.main import cli
from tests.conftest import clone_with


@pytest.fixture
def config(workspace: Path) -> Path:
    """Write a provisioner.yml pointing at the temp workspace."""
    path = workspace.parent / "provisioner.yml"
    path.write_text(f"workspace_dir: {workspace}\ncompose_install_command: 'true'\n")
    return path


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Solution Provisioner" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config(self, tmp_path: Path):
        bad = tmp_path / "provisioner.yml"
        bad.write_text("clone_timeout: soon\n")
        result = CliRunner().invoke(cli, ["--config", str(bad), "solutions", "list"])
        assert result.exit_code == 2
        assert "Invalid provisioner configuration" in result.output


class TestSolutionsCommands:
    def test_list(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "solutions", "list"])
        assert result.exit_code == 0
        assert "ai-recruiter" in result.output
        assert "seo-content-gen" in result.output

    def test_list_json(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "solutions", "list", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert {s["id"] for s in data} >= {"ai-recruiter", "ai-doc-editor"}

    def test_install(self, config: Path):
        mock = MockRunner()
        mock.set_handler("git clone", clone_with({"Dockerfile": "FROM node:20\n"}))
        result = CliRunner().invoke(
            cli,
            ["--config", str(config), "solutions", "install", "ai-recruiter"],
            obj={"runner": mock},
        )
        assert result.exit_code == 0
        assert "running at http://localhost:4000" in result.output
        assert mock.ran("docker build -t foloup-img")

    def test_install_json(self, config: Path):
        mock = MockRunner()
        mock.set_handler("git clone", clone_with({"docker-compose.yml": "services: {}\n"}))
        result = CliRunner().invoke(
            cli,
            ["--config", str(config), "solutions", "install", "ai-recruiter", "--json"],
            obj={"runner": mock},
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["state"] == "succeeded"
        assert data["install_path"] == "composed"
        assert data["events"][-1]["state"] == "succeeded"

    def test_install_unknown(self, config: Path):
        mock = MockRunner()
        result = CliRunner().invoke(
            cli,
            ["--config", str(config), "solutions", "install", "nope"],
            obj={"runner": mock},
        )
        assert result.exit_code == 1
        assert "UnknownSolution" in result.output
        assert mock.call_count == 0

    def test_install_clone_failure(self, config: Path):
        mock = MockRunner()
        mock.set_failure("git clone", exit_code=128)
        result = CliRunner().invoke(
            cli,
            ["--config", str(config), "solutions", "install", "ai-recruiter"],
            obj={"runner": mock},
        )
        assert result.exit_code == 1
        assert "CloneFailed" in result.output

    def test_health_json(self, config: Path):
        mock = MockRunner()
        mock.set_response("docker ps --format", output="foloup-container Up 2 minutes\n")
        result = CliRunner().invoke(
            cli,
            ["--config", str(config), "solutions", "health", "ai-recruiter", "--json"],
            obj={"runner": mock},
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout)["status"] == "running"

    def test_detect(self, config: Path, tmp_path: Path):
        repo = tmp_path / "repo"
        repo.mkdir()
        (repo / "compose.yaml").write_text("services: {}\n")
        result = CliRunner().invoke(
            cli, ["--config", str(config), "solutions", "detect", str(repo), "--json"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["compose_file_name"] == "compose.yaml"
        assert data["has_dockerfile"] is False


class TestEnvCommands:
    def test_merge(self, config: Path, tmp_path: Path):
        root = tmp_path / "root.env"
        local = tmp_path / "local.env"
        out = tmp_path / "out.env"
        root.write_text("A=1\nB=\n")
        local.write_text("B=2\nC=\n")

        result = CliRunner().invoke(
            cli, ["--config", str(config), "env", "merge", str(root), str(local), str(out)],
        )
        assert result.exit_code == 0
        assert "Total: 3" in result.output
        assert out.read_text() == "A=1\nB=2\nC="

    def test_merge_missing_inputs(self, config: Path, tmp_path: Path):
        out = tmp_path / "out.env"
        result = CliRunner().invoke(
            cli,
            ["--config", str(config), "env", "merge", str(tmp_path / "x"), str(tmp_path / "y"), str(out)],
        )
        assert result.exit_code == 0
        assert out.exists()
