"""
Analysis engine package — CPI flow, error classification, compute scoring.

Consumes normalized transaction records and produces a DiagnosticReport.
Pure and synchronous; safe to call concurrently on independent records.
"""

from cpi_debugger.analysis_engine.models import (
    CPIAccount,
    CPIFlowStep,
    DiagnosticReport,
    EfficiencyClass,
    ErrorKind,
    PerformanceReport,
    ReportMetadata,
    ReportStatus,
    Severity,
    TransactionError,
)
from cpi_debugger.analysis_engine.program_registry import (
    KNOWN_PROGRAMS,
    UNKNOWN_PROGRAM,
    ProgramRegistry,
    load_registry,
)
from cpi_debugger.analysis_engine.account_roles import (
    AccountFlags,
    resolve_account_flags,
    role_name,
)
from cpi_debugger.analysis_engine.compute_metrics import (
    calculate_performance,
    classify_step_efficiency,
    estimate_step_compute_units,
    suggest_optimizations,
)
from cpi_debugger.analysis_engine.cpi_flow import build_cpi_flow
from cpi_debugger.analysis_engine.error_classifier import (
    DEFAULT_RULES,
    ErrorRule,
    classify_errors,
    match_failure_rule,
)
from cpi_debugger.analysis_engine.debugger import TransactionDebugger, debug_transaction

__all__ = [
    "CPIAccount",
    "CPIFlowStep",
    "DiagnosticReport",
    "EfficiencyClass",
    "ErrorKind",
    "PerformanceReport",
    "ReportMetadata",
    "ReportStatus",
    "Severity",
    "TransactionError",
    "KNOWN_PROGRAMS",
    "UNKNOWN_PROGRAM",
    "ProgramRegistry",
    "load_registry",
    "AccountFlags",
    "resolve_account_flags",
    "role_name",
    "calculate_performance",
    "classify_step_efficiency",
    "estimate_step_compute_units",
    "suggest_optimizations",
    "build_cpi_flow",
    "DEFAULT_RULES",
    "ErrorRule",
    "classify_errors",
    "match_failure_rule",
    "TransactionDebugger",
    "debug_transaction",
]
