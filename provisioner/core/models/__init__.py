"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from provisioner.core.models import SolutionConfig, InstallationState, ProgressEvent
"""

from provisioner.core.models.command import CommandResult
from provisioner.core.models.install import (
    STATE_ORDER,
    TERMINAL_STATES,
    HealthReport,
    HealthStatus,
    InstallationState,
    InstallResult,
    ProgressEvent,
    RepoStructure,
    is_valid_transition,
)
from provisioner.core.models.settings import Settings
from provisioner.core.models.solution import (
    InstallType,
    SolutionConfig,
    SolutionOverride,
    repo_name_from_url,
)

__all__ = [
    # command.py
    "CommandResult",
    # install.py
    "HealthReport",
    "HealthStatus",
    "InstallResult",
    "InstallationState",
    "ProgressEvent",
    "RepoStructure",
    "STATE_ORDER",
    "TERMINAL_STATES",
    "is_valid_transition",
    # settings.py
    "Settings",
    # solution.py
    "InstallType",
    "SolutionConfig",
    "SolutionOverride",
    "repo_name_from_url",
]
