"""CLI commands for environment files."""

from __future__ import annotations

from pathlib import Path

import click


@click.group()
def env() -> None:
    """Environment files — merge root and solution .env files."""


@env.command("merge")
@click.argument("root", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("local", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
def merge(root: Path, local: Path, output: Path) -> None:
    """Merge ROOT and LOCAL into OUTPUT (non-empty LOCAL values win).

    Missing input files are treated as empty.
    """
    from provisioner.core.services.env_merge import merge_env_files

    merged = merge_env_files(root, local, output)
    empty = sum(1 for v in merged.values() if not v)

    click.secho(f"✅ Merge done. Total: {len(merged)}", fg="green")
    if empty:
        click.secho(f"   ⚠️  {empty} variable(s) still empty", fg="yellow")
