"""
SolutionConfig — one immutable entry of the solution catalog.

Catalog entries are loaded once at process start (built-in JSON catalog
plus optional overrides from provisioner.yml) and are never mutated.
Derived names (clone directory, image, container) are filled in at
validation time so callers always see a fully resolved entry.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class InstallType(StrEnum):
    """Declared deployment topology of a solution."""

    SINGLE = "single"
    COMPOSED = "composed"


# Spellings accepted in catalog files
_INSTALL_TYPE_ALIASES = {
    "docker": InstallType.SINGLE,
    "single": InstallType.SINGLE,
    "docker-compose": InstallType.COMPOSED,
    "compose": InstallType.COMPOSED,
    "composed": InstallType.COMPOSED,
}


def repo_name_from_url(repo_url: str) -> str:
    """Derive a clone directory name from a repository URL.

    ``https://github.com/org/foloup.git`` → ``foloup``
    """
    tail = repo_url.rstrip("/").rsplit("/", 1)[-1]
    if tail.endswith(".git"):
        tail = tail[:-4]
    return tail


class SolutionConfig(BaseModel):
    """A catalogued, installable solution."""

    model_config = ConfigDict(frozen=True)

    id: str
    repo_url: str
    branch_name: str = "main"
    repo_name: str = ""
    image_name: str = ""
    container_name: str = ""
    port: int
    install_type: InstallType = InstallType.SINGLE
    env_file_name: str | None = None
    additional_ports: tuple[int, ...] = ()
    aliases: tuple[str, ...] = ()
    description: str = ""

    @field_validator("install_type", mode="before")
    @classmethod
    def _coerce_install_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            resolved = _INSTALL_TYPE_ALIASES.get(value.strip().lower())
            if resolved is None:
                raise ValueError(f"Unsupported installation type: {value}")
            return resolved
        return value

    @field_validator("additional_ports", mode="before")
    @classmethod
    def _coerce_ports(cls, value: Any) -> Any:
        if value is None:
            return ()
        return tuple(int(p) for p in value)

    @model_validator(mode="before")
    @classmethod
    def _derive_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        repo_name = data.get("repo_name") or repo_name_from_url(data.get("repo_url", ""))
        data["repo_name"] = repo_name
        data.setdefault("image_name", "")
        data.setdefault("container_name", "")
        if not data["image_name"]:
            data["image_name"] = f"{repo_name}-img"
        if not data["container_name"]:
            data["container_name"] = f"{repo_name}-container"
        return data

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class SolutionOverride(BaseModel):
    """A catalog entry as written in provisioner.yml.

    Same fields as :class:`SolutionConfig`, all optional except ``id``,
    so a settings file can patch one field of a built-in entry.
    """

    id: str
    repo_url: str | None = None
    branch_name: str | None = None
    repo_name: str | None = None
    image_name: str | None = None
    container_name: str | None = None
    port: int | None = None
    install_type: str | None = None
    env_file_name: str | None = None
    additional_ports: list[int] | None = None
    aliases: list[str] | None = None
    description: str | None = None

    def patch(self) -> dict[str, Any]:
        """Fields explicitly set in the override."""
        return self.model_dump(exclude_none=True)

