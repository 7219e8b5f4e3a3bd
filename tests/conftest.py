"""
Pytest fixtures for CPI debugger tests. Fixed clock, default settings and
a record factory so every test builds transactions the same way.
"""

from __future__ import annotations

from typing import Any

import pytest

from cpi_debugger.analysis_engine import ProgramRegistry, TransactionDebugger
from cpi_debugger.config import DebuggerSettings, reset_settings_cache
from cpi_debugger.ingestion import RawTransactionRecord
from tests.factories import FIXED_NOW, PAYER, RECIPIENT, SYSTEM_PROGRAM, transfer_ix


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Each test reads settings from its own environment."""
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def settings() -> DebuggerSettings:
    return DebuggerSettings()


@pytest.fixture
def registry() -> ProgramRegistry:
    return ProgramRegistry()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def debugger(registry, settings, fixed_clock) -> TransactionDebugger:
    return TransactionDebugger(registry=registry, settings=settings, clock=fixed_clock)


@pytest.fixture
def make_record():
    """Factory: RawTransactionRecord with sensible defaults for a two-account transfer."""

    def _make(**overrides: Any) -> RawTransactionRecord:
        fields: dict[str, Any] = {
            "account_keys": (PAYER, RECIPIENT, SYSTEM_PROGRAM),
            "instructions": (transfer_ix(),),
            "pre_balances": (10_000_000, 1_000_000, 1),
            "post_balances": (9_990_000, 1_005_000, 1),
            "compute_units_consumed": 150,
            "fee": 5000,
            "slot": 12345,
            "block_time": int(FIXED_NOW.timestamp()) - 20,
            "signature": "5sigTest",
        }
        fields.update(overrides)
        return RawTransactionRecord(**fields)

    return _make
