"""
Data models for analysis engine output.

Every report type exposes to_dict() returning JSON-serializable data with
stable snake_case keys. Numeric fields are always present (0, never
omitted) so downstream consumers can rely on the shape.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ErrorKind(str, Enum):
    ACCOUNT_BALANCE_MISMATCH = "account_balance_mismatch"
    REALLOC_CONSTRAINT_EXCEEDED = "realloc_constraint_exceeded"
    PROGRAM_ERROR = "program_error"
    COMPUTE_BUDGET_EXCEEDED = "compute_budget_exceeded"
    RENT_VIOLATION = "rent_violation"
    ACCOUNT_SIZE_EXCEEDED = "account_size_exceeded"
    AUTHORITY_MISMATCH = "authority_mismatch"


class EfficiencyClass(str, Enum):
    OPTIMAL = "optimal"
    GOOD = "good"
    POOR = "poor"


class ReportStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class CPIAccount:
    """An account touched by one flow step, with heuristic permission flags."""

    address: str
    role_name: str
    is_signer: bool
    is_writable: bool
    data_changed: bool
    pre_balance: int = 0
    post_balance: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "role_name": self.role_name,
            "is_signer": self.is_signer,
            "is_writable": self.is_writable,
            "data_changed": self.data_changed,
            "pre_balance": self.pre_balance,
            "post_balance": self.post_balance,
        }


@dataclass(frozen=True)
class CPIFlowStep:
    """
    One instruction in the call tree.

    depth 0 is a top-level instruction, depth 1 an inner instruction
    invoked through CPI by the top-level instruction it follows.
    """

    id: str
    program_name: str
    program_id: str
    instruction_type: str
    depth: int
    accounts: tuple[CPIAccount, ...]
    succeeded: bool
    compute_units_estimate: int
    efficiency_class: EfficiencyClass
    optimization_hints: tuple[str, ...] = ()
    error_message: str | None = None
    """Set only when the whole transaction failed."""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "program_name": self.program_name,
            "program_id": self.program_id,
            "instruction_type": self.instruction_type,
            "depth": self.depth,
            "accounts": [a.to_dict() for a in self.accounts],
            "succeeded": self.succeeded,
            "compute_units_estimate": self.compute_units_estimate,
            "efficiency_class": self.efficiency_class.value,
            "optimization_hints": list(self.optimization_hints),
        }
        if self.error_message is not None:
            out["error_message"] = self.error_message
        return out


@dataclass(frozen=True)
class TransactionError:
    """
    One classified finding. References an instruction index, not a flow
    step id.
    """

    kind: ErrorKind
    severity: Severity
    instruction_index: int
    program_id: str
    message: str
    suggested_fix: str
    code_example: str | None = None
    documentation_link: str | None = None
    estimated_fix_time: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "instruction_index": self.instruction_index,
            "program_id": self.program_id,
            "message": self.message,
            "suggested_fix": self.suggested_fix,
        }
        for key in ("code_example", "documentation_link", "estimated_fix_time"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


@dataclass(frozen=True)
class PerformanceReport:
    compute_units_used: int = 0
    compute_units_requested_estimate: int = 0
    fee_paid: int = 0
    slot: int = 0
    efficiency_percent: float = 0.0
    """Share of the requested-units estimate actually consumed, in [0, 100]."""
    optimization_narrative: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "compute_units_used": self.compute_units_used,
            "compute_units_requested_estimate": self.compute_units_requested_estimate,
            "fee_paid": self.fee_paid,
            "slot": self.slot,
            "efficiency_percent": self.efficiency_percent,
            "optimization_narrative": self.optimization_narrative,
        }


@dataclass(frozen=True)
class ReportMetadata:
    block_time: str
    """ISO 8601 UTC; the report construction time when the node gave none."""
    confirmation_estimate: int = 0
    programs_involved: tuple[str, ...] = ()
    accounts_modified_count: int = 0
    total_instruction_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "block_time": self.block_time,
            "confirmation_estimate": self.confirmation_estimate,
            "programs_involved": list(self.programs_involved),
            "accounts_modified_count": self.accounts_modified_count,
            "total_instruction_count": self.total_instruction_count,
        }


@dataclass(frozen=True)
class DiagnosticReport:
    """Final output for one debug request. Stateless; returned to the caller."""

    signature: str
    status: ReportStatus
    performance: PerformanceReport
    metadata: ReportMetadata
    flow: tuple[CPIFlowStep, ...] = field(default_factory=tuple)
    errors: tuple[TransactionError, ...] = field(default_factory=tuple)

    @property
    def has_critical_errors(self) -> bool:
        return any(e.severity is Severity.CRITICAL for e in self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "status": self.status.value,
            "flow": [s.to_dict() for s in self.flow],
            "errors": [e.to_dict() for e in self.errors],
            "performance": self.performance.to_dict(),
            "metadata": self.metadata.to_dict(),
        }

    def to_json(self, *, indent: int | None = None) -> str:
        """Deterministic JSON: identical reports serialize to identical bytes."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)
