"""
Transaction debugger — composes the engine into one DiagnosticReport.

Single pass: build the CPI flow, classify errors, score compute usage,
then derive report metadata. No I/O during debug(); the optional registry
file is read once at construction. Instances hold only read-only state
and can be shared across threads.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from cpi_debugger.analysis_engine.compute_metrics import calculate_performance
from cpi_debugger.analysis_engine.cpi_flow import build_cpi_flow
from cpi_debugger.analysis_engine.error_classifier import classify_errors
from cpi_debugger.analysis_engine.models import (
    CPIFlowStep,
    DiagnosticReport,
    PerformanceReport,
    ReportMetadata,
    ReportStatus,
)
from cpi_debugger.analysis_engine.program_registry import ProgramRegistry, load_registry
from cpi_debugger.config import DebuggerSettings, get_settings
from cpi_debugger.debugger_logging import bind_signature
from cpi_debugger.ingestion.models import RawTransactionRecord
from cpi_debugger.ingestion.parser import parse_transaction

Clock = Callable[[], datetime]

# Rough finality horizon in confirmations and seconds per slot
CONFIRMATION_HORIZON = 200
SECONDS_PER_SLOT = 0.4


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat()


def _block_datetime(block_time: int | None) -> datetime | None:
    """UTC datetime for a unix block time; None when absent or not representable."""
    if block_time is None:
        return None
    try:
        return datetime.fromtimestamp(block_time, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _confirmation_estimate(slot: int, block_dt: datetime | None, now: datetime) -> int:
    if not slot:
        return 0
    elapsed = now.timestamp() - (block_dt.timestamp() if block_dt is not None else 0)
    estimate = CONFIRMATION_HORIZON - elapsed / SECONDS_PER_SLOT
    return int(min(float(CONFIRMATION_HORIZON), max(0.0, estimate)))


def _programs_involved(flow: Sequence[CPIFlowStep]) -> tuple[str, ...]:
    names = {s.program_name for s in flow} | {s.program_id for s in flow}
    return tuple(sorted(n for n in names if n))


def _accounts_touched(flow: Sequence[CPIFlowStep]) -> int:
    return len({a.address for s in flow for a in s.accounts})


class TransactionDebugger:
    """
    Diagnostic engine for one confirmed transaction at a time.

    registry, settings and clock are injectable so tests can pin the
    program table, thresholds and the report time.
    """

    def __init__(
        self,
        registry: ProgramRegistry | None = None,
        settings: DebuggerSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.registry = registry or load_registry(self.settings.program_registry_path)
        self._clock = clock or utc_now

    def not_found(self, signature: str) -> DiagnosticReport:
        """Report for a signature the ledger node did not return."""
        return DiagnosticReport(
            signature=signature,
            status=ReportStatus.NOT_FOUND,
            performance=PerformanceReport(),
            metadata=ReportMetadata(block_time=_iso(self._clock())),
        )

    def debug(self, signature: str | None, record: RawTransactionRecord | None) -> DiagnosticReport:
        """
        Build the diagnostic report for one record.

        A None record yields a not_found report. Raises nothing for
        structurally valid input; unknown programs and instruction types
        degrade to generic labels.
        """
        signature = signature or (record.signature if record is not None else None) or ""
        log = bind_signature(signature)
        if record is None:
            log.info("transaction_not_found")
            return self.not_found(signature)

        flow = build_cpi_flow(record, self.registry)
        errors = classify_errors(record, self.settings)
        performance = calculate_performance(
            record.compute_units_consumed, record.fee, record.slot, self.settings
        )

        now = self._clock()
        block_dt = _block_datetime(record.block_time)
        if block_dt is None and record.block_time is not None:
            log.warning("block_time_out_of_range", block_time=record.block_time)
        metadata = ReportMetadata(
            block_time=_iso(block_dt or now),
            confirmation_estimate=_confirmation_estimate(record.slot, block_dt, now),
            programs_involved=_programs_involved(flow),
            accounts_modified_count=_accounts_touched(flow),
            total_instruction_count=len(flow),
        )
        status = ReportStatus.ERROR if record.failed else ReportStatus.SUCCESS
        report = DiagnosticReport(
            signature=signature,
            status=status,
            flow=tuple(flow),
            errors=tuple(errors),
            performance=performance,
            metadata=metadata,
        )
        log.info(
            "transaction_debugged",
            status=status.value,
            steps=len(flow),
            errors=len(errors),
            critical=report.has_critical_errors,
            efficiency_percent=performance.efficiency_percent,
        )
        return report

    def debug_rpc_result(self, signature: str | None, rpc_result: Any) -> DiagnosticReport:
        """Parse a getTransaction result (dict, JSON string or solders object) and debug it."""
        record = parse_transaction(rpc_result, signature=signature)
        return self.debug(signature, record)


def debug_transaction(
    signature: str | None,
    record: RawTransactionRecord | None,
    *,
    registry: ProgramRegistry | None = None,
    settings: DebuggerSettings | None = None,
    clock: Clock | None = None,
) -> DiagnosticReport:
    """One-shot convenience wrapper around TransactionDebugger.debug()."""
    return TransactionDebugger(registry=registry, settings=settings, clock=clock).debug(
        signature, record
    )
