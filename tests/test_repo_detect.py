"""
Tests for repository structure detection and install path choice.
"""

from pathlib import Path

import pytest

from provisioner.core.errors import NoDeploymentDescriptor
from provisioner.core.models.install import RepoStructure
from provisioner.core.models.solution import InstallType
from provisioner.core.services.repo_detect import choose_install_path, detect


class TestDetect:
    def test_empty_repo(self, tmp_path: Path):
        s = detect(tmp_path)
        assert not s.has_compose_descriptor
        assert not s.has_dockerfile
        assert s.compose_file_name is None

    def test_dockerfile_only(self, tmp_path: Path):
        (tmp_path / "Dockerfile").write_text("FROM alpine\n")
        s = detect(tmp_path)
        assert s.has_dockerfile
        assert not s.has_compose_descriptor

    @pytest.mark.parametrize(
        "name",
        ["docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"],
    )
    def test_compose_variants(self, tmp_path: Path, name: str):
        (tmp_path / name).write_text("services: {}\n")
        s = detect(tmp_path)
        assert s.has_compose_descriptor
        assert s.compose_file_name == name

    def test_compose_precedence(self, tmp_path: Path):
        (tmp_path / "compose.yaml").write_text("services: {}\n")
        (tmp_path / "docker-compose.yml").write_text("services: {}\n")
        assert detect(tmp_path).compose_file_name == "docker-compose.yml"

    def test_root_only(self, tmp_path: Path):
        (tmp_path / "deploy").mkdir()
        (tmp_path / "deploy" / "docker-compose.yml").write_text("services: {}\n")
        (tmp_path / "deploy" / "Dockerfile").write_text("FROM alpine\n")
        s = detect(tmp_path)
        assert not s.has_compose_descriptor
        assert not s.has_dockerfile


class TestChooseInstallPath:
    def test_composed_with_compose_file(self):
        s = RepoStructure(has_compose_descriptor=True, compose_file_name="docker-compose.yml")
        assert choose_install_path(InstallType.COMPOSED, s) == "composed"

    def test_compose_preferred_over_dockerfile(self):
        s = RepoStructure(
            has_compose_descriptor=True,
            has_dockerfile=True,
            compose_file_name="docker-compose.yml",
        )
        assert choose_install_path(InstallType.COMPOSED, s) == "composed"

    def test_composed_falls_back_to_dockerfile(self):
        s = RepoStructure(has_dockerfile=True)
        assert choose_install_path(InstallType.COMPOSED, s) == "single"

    def test_single_ignores_compose_file(self):
        s = RepoStructure(
            has_compose_descriptor=True,
            has_dockerfile=True,
            compose_file_name="compose.yml",
        )
        assert choose_install_path(InstallType.SINGLE, s) == "single"

    def test_single_without_dockerfile(self):
        s = RepoStructure(has_compose_descriptor=True, compose_file_name="compose.yml")
        with pytest.raises(NoDeploymentDescriptor):
            choose_install_path(InstallType.SINGLE, s)

    def test_nothing_to_build(self):
        with pytest.raises(NoDeploymentDescriptor, match="No Docker configuration"):
            choose_install_path(InstallType.COMPOSED, RepoStructure())
