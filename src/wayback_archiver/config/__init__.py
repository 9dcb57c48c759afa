"""Configuration package for wayback-archiver.

Re-exports the settings entry points so that callers can write::

    from wayback_archiver.config import get_settings
"""

from __future__ import annotations

from wayback_archiver.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
