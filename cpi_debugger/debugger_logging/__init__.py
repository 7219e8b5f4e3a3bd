"""
Structured logging for the CPI debugger.

Use get_logger() in all engine modules; event names are snake_case and
context is passed as keyword arguments.
"""

from cpi_debugger.debugger_logging.logger import bind_signature, configure_logging, get_logger

__all__ = ["bind_signature", "configure_logging", "get_logger"]
