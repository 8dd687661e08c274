"""
Process context — the settings the current process runs with.

Set ONCE at startup by whichever entry point launches the app:

    - Web server:   server.py → context.set_settings(settings)
    - CLI:          main.py   → context.set_settings(settings)
    - Tests:        conftest  → context.set_settings(tmp settings)

get_settings() lazily loads defaults (file + environment) when nothing
was registered, so library callers never see None.
"""

from __future__ import annotations

from typing import Optional

from provisioner.core.models.settings import Settings


_settings: Optional[Settings] = None


def set_settings(settings: Settings | None) -> None:
    """Register the settings for the current process (None to reset)."""
    global _settings
    _settings = settings


def get_settings() -> Settings:
    """Return the registered settings, loading defaults on first use."""
    global _settings
    if _settings is None:
        from provisioner.core.config.loader import load_settings

        _settings = load_settings()
    return _settings
