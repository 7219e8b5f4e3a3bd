"""
Environment variable loading for the CPI debugger.

- CPI_DEBUG_RENT_EXEMPT_MINIMUM: lamports below which a drained account is flagged
- CPI_DEBUG_COMPUTE_WARNING_THRESHOLD: consumed units above which a warning is raised
- CPI_DEBUG_MIN_REQUESTED_UNITS: floor for the requested-units estimate
- CPI_DEBUG_REQUESTED_UNITS_MULTIPLIER: consumed-units multiplier for the requested-units estimate
- CPI_DEBUG_PROGRAM_REGISTRY_PATH: optional JSON {address: name} merged into the registry
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from cpi_debugger.core.exceptions import ConfigurationError

# Project root: config is cpi_debugger/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"


def load_debugger_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides set vars."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str) -> str | None:
    """Return the stripped value of an env var, or None when unset or blank."""
    raw = (os.getenv(name) or "").strip()
    return raw or None


def env_int(name: str, default: int) -> int:
    """Return an env var as a non-negative int; raises ConfigurationError on junk."""
    raw = env_str(name)
    if raw is None:
        return default
    try:
        value = int(raw.replace("_", ""))
    except ValueError as e:
        raise ConfigurationError(name, raw, "integer") from e
    if value < 0:
        raise ConfigurationError(name, raw, "non-negative integer")
    return value


def env_float(name: str, default: float) -> float:
    raw = env_str(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(name, raw, "number") from e
    if value <= 0:
        raise ConfigurationError(name, raw, "positive number")
    return value
