"""Shared FastAPI dependencies."""

from __future__ import annotations

from chartlint.config import Settings

_settings: Settings | None = None


def get_settings() -> Settings:
    """FastAPI dependency: return the service Settings."""
    assert _settings is not None, "Settings not initialised"
    return _settings
