"""
Typed debugger settings.

Defaults mirror the network constants the diagnostics are calibrated
against; every one can be overridden through the environment.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from pathlib import Path

from cpi_debugger.config.env import env_float, env_int, env_str, load_debugger_env

# Approximate rent-exempt minimum for a zero-data account, in lamports
DEFAULT_RENT_EXEMPT_MINIMUM = 890_880
# Consumed compute units above this raise a warning even on success
DEFAULT_COMPUTE_WARNING_THRESHOLD = 800_000
# Transactions conventionally request at least this many units
DEFAULT_MIN_REQUESTED_UNITS = 200_000
DEFAULT_REQUESTED_UNITS_MULTIPLIER = 1.2


@dataclass(frozen=True)
class DebuggerSettings:
    """Thresholds and data sources used by the analysis engine."""

    rent_exempt_minimum: int = DEFAULT_RENT_EXEMPT_MINIMUM
    compute_warning_threshold: int = DEFAULT_COMPUTE_WARNING_THRESHOLD
    min_requested_units: int = DEFAULT_MIN_REQUESTED_UNITS
    requested_units_multiplier: float = DEFAULT_REQUESTED_UNITS_MULTIPLIER
    program_registry_path: Path | None = None
    """Optional JSON object {address: name} merged over the built-in registry."""


@functools.lru_cache(maxsize=1)
def get_settings() -> DebuggerSettings:
    """
    Return the current settings, read once from the environment.

    Raises ConfigurationError when a numeric variable cannot be parsed.
    """
    load_debugger_env()
    registry_path = env_str("CPI_DEBUG_PROGRAM_REGISTRY_PATH")
    return DebuggerSettings(
        rent_exempt_minimum=env_int("CPI_DEBUG_RENT_EXEMPT_MINIMUM", DEFAULT_RENT_EXEMPT_MINIMUM),
        compute_warning_threshold=env_int(
            "CPI_DEBUG_COMPUTE_WARNING_THRESHOLD", DEFAULT_COMPUTE_WARNING_THRESHOLD
        ),
        min_requested_units=env_int("CPI_DEBUG_MIN_REQUESTED_UNITS", DEFAULT_MIN_REQUESTED_UNITS),
        requested_units_multiplier=env_float(
            "CPI_DEBUG_REQUESTED_UNITS_MULTIPLIER", DEFAULT_REQUESTED_UNITS_MULTIPLIER
        ),
        program_registry_path=Path(registry_path) if registry_path else None,
    )


def reset_settings_cache() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
