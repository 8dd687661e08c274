"""
Static data shipped with the package.

Catalogs live in ``provisioner/core/data/catalogs/`` as JSON and are
read once per process.

Usage::

    from provisioner.core.data import load_catalog

    entries = load_catalog("solutions")   # list[dict]
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent


@lru_cache(maxsize=None)
def _load_json(relative_path: str) -> tuple:
    """Load a JSON list relative to the data directory (cached)."""
    path = _DATA_DIR / relative_path
    if not path.exists():
        logger.warning("Data file not found: %s", path)
        return ()
    with open(path, encoding="utf-8") as f:
        return tuple(json.load(f))


def load_catalog(name: str) -> list[dict]:
    """Return a fresh copy of catalog ``name`` (``catalogs/<name>.json``)."""
    entries = [dict(e) for e in _load_json(f"catalogs/{name}.json")]
    logger.debug("Loaded %d entries from catalog '%s'", len(entries), name)
    return entries
