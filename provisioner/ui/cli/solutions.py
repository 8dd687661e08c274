"""
CLI commands for the solution catalog — list, install, health, detect.

Thin wrappers over the core services.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from provisioner.adapters.base import CommandRunner
from provisioner.adapters.shell.command import SubprocessRunner
from provisioner.core.models.install import ProgressEvent
from provisioner.core.services.solution_registry import SolutionRegistry, load_default_registry

_STATE_ICONS = {
    "cleaning_repo": "🧹",
    "cloning": "📥",
    "cleaning_containers": "🧹",
    "detecting_structure": "🔍",
    "merging_env": "📝",
    "building": "🔨",
    "running": "🚀",
    "succeeded": "✅",
    "failed": "❌",
}

_HEALTH_COLORS = {
    "installing": "yellow",
    "running": "green",
    "not_running": "white",
    "error": "red",
}


def _registry(ctx: click.Context) -> SolutionRegistry:
    return load_default_registry(ctx.obj["settings"])


def _runner(ctx: click.Context) -> CommandRunner:
    runner = ctx.obj.get("runner")
    if runner is None:
        runner = SubprocessRunner(default_timeout=ctx.obj["settings"].command_timeout)
    return runner


@click.group()
def solutions() -> None:
    """Solution catalog — list, install, health, detect."""


# ── Catalog ─────────────────────────────────────────────────────


@solutions.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_solutions(ctx: click.Context, as_json: bool) -> None:
    """List installable solutions."""
    registry = _registry(ctx)

    if as_json:
        click.echo(json.dumps([s.to_dict() for s in registry], indent=2))
        return

    click.secho(f"📦 Solutions ({len(registry)}):", fg="cyan", bold=True)
    for s in registry:
        click.echo(f"   • {s.id:<28} {s.install_type:<9} port {s.port}")
        click.echo(f"     {s.repo_url} @ {s.branch_name}")
    click.echo()


# ── Install ─────────────────────────────────────────────────────


@solutions.command("install")
@click.argument("solution_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, solution_id: str, as_json: bool) -> None:
    """Clone, build and start SOLUTION_ID, showing each stage."""
    from provisioner.core.services.orchestrator import Installer

    settings = ctx.obj["settings"]
    installer = Installer(_registry(ctx), _runner(ctx), settings)
    events: list[ProgressEvent] = []

    def show(event: ProgressEvent) -> None:
        events.append(event)
        if as_json or ctx.obj.get("quiet"):
            return
        icon = _STATE_ICONS.get(str(event.state), "•")
        click.echo(f"{icon} {event.message}")

    result = installer.install(solution_id, sink=show)

    if as_json:
        payload = result.to_dict()
        payload["events"] = [e.to_wire() for e in events]
        click.echo(json.dumps(payload, indent=2))
        sys.exit(0 if result.ok else 1)

    click.echo()
    if result.ok:
        click.secho(f"✅ {solution_id} is running at {result.address}", fg="green", bold=True)
        return

    click.secho(f"❌ {result.error_kind}: {result.error}", fg="red", bold=True)
    sys.exit(1)


# ── Health ──────────────────────────────────────────────────────


@solutions.command("health")
@click.argument("solution_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def health(ctx: click.Context, solution_id: str, as_json: bool) -> None:
    """Report whether SOLUTION_ID is installing, running or stopped."""
    from provisioner.core.services.health_probe import HealthProbe

    report = HealthProbe(_registry(ctx), _runner(ctx)).probe(solution_id)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.secho(f"{solution_id}: {report.status}", fg=_HEALTH_COLORS[report.status], bold=True)
        detail = report.container or report.message
        if detail:
            click.echo(f"   {detail}")

    if report.status == "error":
        sys.exit(1)


# ── Detect ──────────────────────────────────────────────────────


@solutions.command("detect")
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def detect(repo_path: Path, as_json: bool) -> None:
    """Show which deployment descriptors REPO_PATH ships."""
    from provisioner.core.services.repo_detect import detect as detect_structure

    structure = detect_structure(repo_path)

    if as_json:
        click.echo(json.dumps(structure.model_dump(), indent=2))
        return

    compose = structure.compose_file_name or "none"
    dockerfile = "yes" if structure.has_dockerfile else "no"
    click.echo(f"📋 Compose:    {compose}")
    click.echo(f"📄 Dockerfile: {dockerfile}")
