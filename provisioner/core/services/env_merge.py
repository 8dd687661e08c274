"""
Environment merger — combine the shared root .env with a solution's
own template without polluting the template.

Parsing is deliberately literal: no quote stripping, no ``export``
prefix handling, no interpolation.  What the file says after the first
``=`` is the value, trimmed.

Merge precedence per key:
    local (non-empty)  >  root (non-empty)  >  empty
Keys only in one of the two files are carried through unchanged.

Output is written atomically (temp file in the target directory, then
rename) so a concurrent reader never sees a half-written file.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

EnvMap = dict[str, str]

_LINE_SPLIT = re.compile(r"\r?\n")

# Directories never searched for templates
_SKIP_DIRS = {".git", "node_modules"}


# ── Parse ───────────────────────────────────────────────────────


def parse_env_text(text: str) -> EnvMap:
    """Parse .env content into an ordered key → value mapping.

    Within one file a repeated key keeps its first non-empty value;
    an empty value is replaced by a later non-empty one.
    """
    result: EnvMap = {}
    for raw in _LINE_SPLIT.split(text):
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()

        if key not in result or (result[key] == "" and value != ""):
            result[key] = value

    return result


def parse_env_file(path: Path) -> EnvMap:
    """Parse a .env file; a missing file is an empty mapping.

    Bytes that are not valid UTF-8 become U+FFFD instead of failing the read.
    """
    if not path.is_file():
        logger.debug("Env file %s not found — treating as empty", path)
        return {}
    text = path.read_bytes().decode("utf-8", errors="replace")
    if "\ufffd" in text:
        logger.warning("Env file %s is not valid UTF-8; undecodable bytes replaced", path)
    return parse_env_text(text)


# ── Merge ───────────────────────────────────────────────────────


def merge_env(root: EnvMap, local: EnvMap) -> EnvMap:
    """Merge root and local mappings (local wins when non-empty).

    Order: root keys in root order, then local-only keys in local order.
    """
    merged: EnvMap = dict(root)
    for key, local_value in local.items():
        root_value = root.get(key, "")
        if local_value.strip():
            merged[key] = local_value
        elif root_value.strip():
            merged[key] = root_value
        else:
            merged[key] = local_value or root_value or ""
    return merged


def serialize_env(env: EnvMap) -> str:
    """Render a mapping as ``KEY=VALUE`` lines."""
    return "\n".join(f"{key}={value}" for key, value in env.items())


# ── Write ───────────────────────────────────────────────────────


def write_env_atomic(env: EnvMap, path: Path) -> None:
    """Write ``env`` to ``path`` via temp-file-then-rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(serialize_env(env))
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def merge_env_files(root_path: Path, local_path: Path, output_path: Path) -> EnvMap:
    """Merge two env files into ``output_path`` and return the merged map.

    Missing inputs behave as empty mappings.  The inputs are never
    modified (unless ``output_path`` is one of them).
    """
    root = parse_env_file(root_path)
    local = parse_env_file(local_path)
    merged = merge_env(root, local)
    write_env_atomic(merged, output_path)

    logger.info(
        "Merged env → %s (root=%d, local=%d, total=%d)",
        output_path, len(root), len(local), len(merged),
    )
    return merged


# ── Templates ───────────────────────────────────────────────────


def find_templates(repo_path: Path, template_name: str) -> list[Path]:
    """Every file named ``template_name`` under ``repo_path`` (sorted)."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(repo_path):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        if template_name in filenames:
            found.append(Path(dirpath) / template_name)
    return found


def materialize_template(repo_path: Path, template_name: str | None) -> list[Path]:
    """Copy each ``template_name`` file to a sibling ``.env``.

    Returns the ``.env`` paths written.  No-op for an empty name.
    """
    if not template_name:
        return []

    written: list[Path] = []
    for template in find_templates(repo_path, template_name):
        target = template.with_name(".env")
        if template != target:
            shutil.copyfile(template, target)
        written.append(target)

    if written:
        logger.debug("Materialized %s → .env (%d files)", template_name, len(written))
    else:
        logger.info("No %s template found in %s", template_name, repo_path)
    return written
