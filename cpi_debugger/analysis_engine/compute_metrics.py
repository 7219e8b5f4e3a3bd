"""
Compute metrics: transaction efficiency score and per-step cost estimates.

The compute-unit limit a transaction requested is not recoverable from a
confirmed record, so the requested figure is estimated as
max(consumed * 1.2, 200k). Per-step costs are static estimates keyed by
instruction type; they are comparable across steps, not exact.
"""

from __future__ import annotations

from cpi_debugger.analysis_engine.models import EfficiencyClass, PerformanceReport
from cpi_debugger.config import DebuggerSettings, get_settings

BASE_COMPUTE_UNITS = {
    "transfer": 2300,
    "createAccount": 5000,
    "createIdempotent": 6000,
    "initialize": 8000,
    "swap": 25000,
    "stake": 15000,
    "unknown": 10000,
    "compiled": 15000,
}

OPTIMAL_UNITS_PER_ACCOUNT = 5000
GOOD_UNITS_PER_ACCOUNT = 15000

MAX_ACCOUNTS_BEFORE_SPLIT = 10

HINT_SPLIT_ACCOUNTS = "Consider reducing the number of accounts in single instruction"
HINT_DIRECT_ROUTES = "Use direct routes to minimize CPI calls"
HINT_BATCH_SWAPS = "Consider batching multiple swaps"
HINT_PARSED_INSTRUCTIONS = "Use parsed instructions for better debugging"

# (lower bound exclusive, narrative); first band whose bound is exceeded wins
NARRATIVE_BANDS = (
    (90.0, "Excellent - Highly optimized transaction with minimal compute waste"),
    (70.0, "Good - Well structured transaction with some optimization opportunities"),
    (50.0, "Moderate - Transaction could benefit from optimization"),
)
POOR_NARRATIVE = "Poor - Significant optimization needed to improve efficiency"


def estimate_requested_units(consumed: int, settings: DebuggerSettings | None = None) -> float:
    cfg = settings or get_settings()
    return max(consumed * cfg.requested_units_multiplier, float(cfg.min_requested_units))


def optimization_narrative(efficiency_percent: float) -> str:
    for bound, text in NARRATIVE_BANDS:
        if efficiency_percent > bound:
            return text
    return POOR_NARRATIVE


def calculate_performance(
    consumed: int,
    fee: int,
    slot: int,
    settings: DebuggerSettings | None = None,
) -> PerformanceReport:
    """
    Score how much of the (estimated) requested compute was actually used.

    efficiency_percent is rounded to one decimal and always within [0, 100].
    """
    consumed = max(0, int(consumed or 0))
    requested = estimate_requested_units(consumed, settings)
    efficiency = (consumed / requested) * 100 if requested > 0 else 0.0
    efficiency = min(100.0, max(0.0, round(efficiency, 1)))
    return PerformanceReport(
        compute_units_used=consumed,
        compute_units_requested_estimate=int(round(requested)),
        fee_paid=max(0, int(fee or 0)),
        slot=max(0, int(slot or 0)),
        efficiency_percent=efficiency,
        optimization_narrative=optimization_narrative(efficiency),
    )


def estimate_step_compute_units(semantic_type: str, account_count: int) -> int:
    """Base cost for the instruction type, scaled by one per three accounts (min 1x)."""
    base = BASE_COMPUTE_UNITS.get(semantic_type, BASE_COMPUTE_UNITS["unknown"])
    return base * max(1, account_count // 3)


def classify_step_efficiency(compute_units: int, account_count: int) -> EfficiencyClass:
    ratio = compute_units / max(1, account_count)
    if ratio < OPTIMAL_UNITS_PER_ACCOUNT:
        return EfficiencyClass.OPTIMAL
    if ratio < GOOD_UNITS_PER_ACCOUNT:
        return EfficiencyClass.GOOD
    return EfficiencyClass.POOR


def suggest_optimizations(semantic_type: str, account_count: int) -> list[str]:
    hints: list[str] = []
    if account_count > MAX_ACCOUNTS_BEFORE_SPLIT:
        hints.append(HINT_SPLIT_ACCOUNTS)
    if semantic_type == "swap":
        hints.append(HINT_DIRECT_ROUTES)
        hints.append(HINT_BATCH_SWAPS)
    if semantic_type in ("unknown", "compiled"):
        hints.append(HINT_PARSED_INSTRUCTIONS)
    return hints
