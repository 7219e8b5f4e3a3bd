"""
Configuration management for the CPI debugger.

Loads thresholds and the optional program-registry override from
environment variables (and a project-root .env). Single source of truth
for every tunable the engine reads.
"""

from cpi_debugger.config.settings import (  # noqa: F401
    DebuggerSettings,
    get_settings,
    reset_settings_cache,
)

__all__ = ["DebuggerSettings", "get_settings", "reset_settings_cache"]
