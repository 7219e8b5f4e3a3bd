"""
CPI flow builder: ordered, depth-tagged call tree of a transaction.

Walks top-level instructions in source order. Each one becomes a depth-0
step, immediately followed by the depth-1 steps of the inner instructions
anchored at its index, in their original order. Instructions that cannot
be normalized are skipped without raising; inner groups anchored at an
index with no top-level instruction are never reached and are dropped.
"""

from __future__ import annotations

from cpi_debugger.analysis_engine.account_roles import (
    data_changed,
    resolve_account_flags,
    role_name,
)
from cpi_debugger.analysis_engine.compute_metrics import (
    classify_step_efficiency,
    estimate_step_compute_units,
    suggest_optimizations,
)
from cpi_debugger.analysis_engine.models import CPIAccount, CPIFlowStep
from cpi_debugger.analysis_engine.program_registry import ProgramRegistry
from cpi_debugger.debugger_logging import get_logger
from cpi_debugger.ingestion.models import CanonicalInstruction, RawTransactionRecord
from cpi_debugger.ingestion.normalizer import normalize_instruction

logger = get_logger(__name__)

TOP_LEVEL_DEPTH = 0
CPI_DEPTH = 1


def _build_accounts(
    instruction: CanonicalInstruction,
    record: RawTransactionRecord,
) -> tuple[CPIAccount, ...]:
    accounts: list[CPIAccount] = []
    for ref in instruction.account_refs:
        flags = resolve_account_flags(
            ref.address,
            record.account_keys,
            record.header,
            record.loaded_writable_count,
            record.loaded_readonly_count,
        )
        pre, post = record.balances_for(ref.address)
        accounts.append(
            CPIAccount(
                address=ref.address,
                role_name=role_name(ref),
                is_signer=flags.is_signer,
                is_writable=flags.is_writable,
                data_changed=data_changed(instruction.kind, flags),
                pre_balance=pre,
                post_balance=post,
            )
        )
    return tuple(accounts)


def _build_step(
    step_id: str,
    instruction: CanonicalInstruction,
    depth: int,
    record: RawTransactionRecord,
    registry: ProgramRegistry,
    failure: str | None,
) -> CPIFlowStep:
    accounts = _build_accounts(instruction, record)
    units = estimate_step_compute_units(instruction.semantic_type, len(accounts))
    return CPIFlowStep(
        id=step_id,
        program_name=registry.name_for(instruction.program_id),
        program_id=instruction.program_id,
        instruction_type=instruction.semantic_type,
        depth=depth,
        accounts=accounts,
        # No per-instruction attribution: a failed transaction fails every step
        succeeded=failure is None,
        error_message=failure,
        compute_units_estimate=units,
        efficiency_class=classify_step_efficiency(units, len(accounts)),
        optimization_hints=tuple(suggest_optimizations(instruction.semantic_type, len(accounts))),
    )


def build_cpi_flow(
    record: RawTransactionRecord,
    registry: ProgramRegistry,
) -> list[CPIFlowStep]:
    """
    Build the ordered CPI flow for one transaction.

    Step ids are "<i>" for top-level instruction i and "<i>.<k>" for its
    k-th inner instruction (1-based).
    """
    failure = record.failure_text
    flow: list[CPIFlowStep] = []
    skipped = 0

    for index, raw_ix in enumerate(record.instructions):
        instruction = normalize_instruction(raw_ix, record.account_keys)
        if instruction is None:
            skipped += 1
            logger.debug("cpi_flow_instruction_skipped", index=index, depth=TOP_LEVEL_DEPTH)
        else:
            flow.append(
                _build_step(str(index), instruction, TOP_LEVEL_DEPTH, record, registry, failure)
            )

        for inner_pos, raw_inner in enumerate(record.inner_instructions.get(index, ()), start=1):
            inner = normalize_instruction(raw_inner, record.account_keys)
            if inner is None:
                skipped += 1
                logger.debug(
                    "cpi_flow_instruction_skipped",
                    index=index,
                    inner_position=inner_pos,
                    depth=CPI_DEPTH,
                )
                continue
            flow.append(
                _build_step(f"{index}.{inner_pos}", inner, CPI_DEPTH, record, registry, failure)
            )

    unreachable = [i for i in record.inner_instructions if not 0 <= i < len(record.instructions)]
    if unreachable:
        logger.debug("cpi_flow_inner_groups_dropped", anchors=sorted(unreachable))

    logger.debug(
        "cpi_flow_built",
        steps=len(flow),
        cpi_steps=sum(1 for s in flow if s.depth == CPI_DEPTH),
        skipped=skipped,
    )
    return flow
