"""
Application-level exceptions.

Only contract violations raise. Malformed per-instruction input is dropped
locally and never surfaces here; unknown programs and instruction types
degrade to generic labels.
"""

from __future__ import annotations


class CPIDebuggerError(Exception):
    """Base class for all debugger errors."""


class InvalidTransactionRecord(CPIDebuggerError):
    """Input violates the basic record contract (e.g. no address table)."""

    def __init__(self, message: str, *, signature: str | None = None) -> None:
        super().__init__(message)
        self.signature = signature


class ConfigurationError(CPIDebuggerError):
    """An environment setting could not be parsed."""

    def __init__(self, name: str, value: str, expected: str) -> None:
        super().__init__(f"Invalid value for {name}: {value!r} (expected {expected})")
        self.name = name
        self.value = value
        self.expected = expected
