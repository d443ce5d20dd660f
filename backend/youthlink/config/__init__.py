"""
Shortcut imports for configuration.
"""

from __future__ import annotations

from .settings import Settings, configure_logging, get_settings  # noqa: F401
