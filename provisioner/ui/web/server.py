"""
Web server — Flask app factory.

Wires the shared services (catalog, runner, installer, health probe)
onto ``app.config`` and registers the install routes under ``/api``.
"""

from __future__ import annotations

import logging

from flask import Flask

from provisioner.adapters.base import CommandRunner
from provisioner.adapters.shell.command import SubprocessRunner
from provisioner.core import context
from provisioner.core.models.settings import Settings
from provisioner.core.services.health_probe import HealthProbe
from provisioner.core.services.orchestrator import Installer
from provisioner.core.services.solution_registry import SolutionRegistry, load_default_registry

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    runner: CommandRunner | None = None,
    registry: SolutionRegistry | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Provisioner settings (default: process settings).
        runner: Command runner (default: ``SubprocessRunner``).
        registry: Solution catalog (default: packaged catalog + overrides).

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    settings = settings or context.get_settings()
    context.set_settings(settings)
    runner = runner or SubprocessRunner(default_timeout=settings.command_timeout)
    registry = registry or load_default_registry(settings)

    app.config["SETTINGS"] = settings
    app.config["REGISTRY"] = registry
    app.config["INSTALLER"] = Installer(registry, runner, settings)
    app.config["HEALTH_PROBE"] = HealthProbe(registry, runner)

    from provisioner.ui.web.routes_install import install_bp

    app.register_blueprint(install_bp, url_prefix="/api")

    logger.info(
        "Web app created (workspace=%s, solutions=%d, runner=%s)",
        settings.workspace_dir, len(registry), runner.name,
    )
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server (threaded, for concurrent SSE streams)."""
    logger.info("Starting provisioner web server on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
