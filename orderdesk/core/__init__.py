"""
Core module initialization.
Exports configuration and logging utilities.
"""

from orderdesk.core.config import (
    BroadcastBackend,
    EnvironmentMode,
    Settings,
    get_settings,
    setup_logging,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "BroadcastBackend",
]
