"""
Solution Provisioner — CLI entrypoint.

Usage:
    provisioner --help
    provisioner solutions list
    provisioner solutions install ai-recruiter
    provisioner web --port 8000
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from provisioner import __version__
from provisioner.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="provisioner")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to provisioner.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Solution Provisioner — install catalogued solutions on this host."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get("SP_LOG_FILE"),
        log_file_level=os.environ.get("SP_LOG_FILE_LEVEL"),
    )

    # ── Settings (once, registered in the process context) ──────
    from provisioner.core import context
    from provisioner.core.config.loader import ConfigError, load_settings

    try:
        settings = load_settings(ctx.obj["config_path"])
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)

    context.set_settings(settings)
    ctx.obj["settings"] = settings


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", default=8000, type=int, help="Port to listen on.")
@click.pass_context
def web(ctx: click.Context, host: str, port: int) -> None:
    """Start the provisioning web API."""
    from provisioner.ui.web.server import create_app, run_server

    app = create_app(settings=ctx.obj["settings"], runner=ctx.obj.get("runner"))

    click.secho(f"🚀 Provisioner API on http://{host}:{port}/api/solutions", fg="cyan")
    run_server(app, host=host, port=port)


# ── Sub-command groups ──────────────────────────────────────────

from provisioner.ui.cli.env import env  # noqa: E402
from provisioner.ui.cli.solutions import solutions  # noqa: E402

cli.add_command(solutions)
cli.add_command(env)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
