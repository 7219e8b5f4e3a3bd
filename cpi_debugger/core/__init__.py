"""
Core utilities — shared exceptions and cross-cutting concerns.

Used by ingestion, the analysis engine and configuration.
"""

from cpi_debugger.core.exceptions import (
    ConfigurationError,
    CPIDebuggerError,
    InvalidTransactionRecord,
)

__all__ = [
    "ConfigurationError",
    "CPIDebuggerError",
    "InvalidTransactionRecord",
]
