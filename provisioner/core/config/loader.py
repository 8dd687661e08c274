"""
Configuration loader — reads provisioner.yml into Settings.

The settings file is optional: without one, built-in defaults apply.
``SP_*`` environment variables override whatever the file says.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml

from provisioner.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "provisioner.yml"

# Environment variable → Settings field
_ENV_OVERRIDES = {
    "SP_WORKSPACE_DIR": "workspace_dir",
    "SP_ROOT_ENV_FILE": "root_env_file",
    "SP_NETWORK": "network_name",
    "SP_HOST": "host",
}


class ConfigError(Exception):
    """Raised when provisioner configuration is invalid or unreadable."""


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for provisioner.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to provisioner.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_yaml(path: Path) -> dict:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "provisioner" key or be flat
    return data.get("provisioner", data)


def load_settings(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    search: bool = True,
) -> Settings:
    """Load and validate provisioner settings.

    Args:
        path: Explicit path to provisioner.yml.  If None and ``search``
            is set, searches upward from the cwd; a missing file means
            defaults.
        environ: Environment to read ``SP_*`` overrides from
            (default: ``os.environ``).
        search: Whether to look for a settings file when ``path`` is None.

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If an explicit file is missing or any file is invalid.
    """
    if path is None and search:
        path = find_settings_file()

    data: dict = {}
    if path is not None:
        logger.debug("Loading settings from %s", path)
        data = _read_yaml(path)

    env = os.environ if environ is None else environ
    for var, field in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[field] = value

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid provisioner configuration: {e}") from e

    logger.info(
        "Settings loaded (workspace=%s, root_env=%s, overrides=%d)",
        settings.workspace_dir, settings.root_env_path, len(settings.solutions),
    )
    return settings
