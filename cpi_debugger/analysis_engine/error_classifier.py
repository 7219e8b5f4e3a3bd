"""
Error classifier: transaction-level failure and resource signals to findings.

Three independent checks, each appending its own findings:
1. failure signal: the serialized meta.err is matched against an ordered
   rule table; the first matching rule wins, and a program_error fallback
   applies when nothing matches
2. compute ceiling: consumed units above the warning threshold
3. rent exemption: an account that lost lamports and ended below the
   rent-exempt minimum

Deterministic and text-based. Malformed instructions never show up here;
they are dropped by the flow builder.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Sequence

from cpi_debugger.analysis_engine.models import ErrorKind, Severity, TransactionError
from cpi_debugger.config import DebuggerSettings, get_settings
from cpi_debugger.debugger_logging import get_logger
from cpi_debugger.ingestion.models import RawTransactionRecord
from cpi_debugger.ingestion.normalizer import normalize_instruction

logger = get_logger(__name__)

# Program id reported when a finding cannot be attributed to one instruction
TRANSACTION_LEVEL_PROGRAM = "System"

COMPUTE_BUDGET_DOC = "https://docs.solana.com/developing/programming-model/runtime#compute-budget"

REALLOC_CODE_EXAMPLE = """// Split large accounts using PDA chunking
#[derive(Accounts)]
#[instruction(chunk_id: u8)]
pub struct InitializeChunk<'info> {
    #[account(
        init,
        payer = user,
        space = 8 + 8_000, // 8KB chunks
        seeds = [b"data_chunk", user.key().as_ref(), &[chunk_id]],
        bump
    )]
    pub data_chunk: Account<'info, DataChunk>,
    // ... rest of accounts
}"""


@dataclass(frozen=True)
class ErrorRule:
    """
    One entry of the failure-signal rule table.

    message may reference {failure}, the serialized failure value.
    """

    pattern: re.Pattern[str]
    kind: ErrorKind
    severity: Severity
    message: str
    suggested_fix: str
    code_example: str | None = None
    documentation_link: str | None = None
    estimated_fix_time: str | None = None

    def matches(self, serialized: str) -> bool:
        return self.pattern.search(serialized) is not None

    def to_error(self, serialized: str, instruction_index: int, program_id: str) -> TransactionError:
        return TransactionError(
            kind=self.kind,
            severity=self.severity,
            instruction_index=instruction_index,
            program_id=program_id,
            message=self.message.format(failure=serialized),
            suggested_fix=self.suggested_fix,
            code_example=self.code_example,
            documentation_link=self.documentation_link,
            estimated_fix_time=self.estimated_fix_time,
        )


def _rule(pattern: str, kind: ErrorKind, severity: Severity, message: str, fix: str, **extra: Any) -> ErrorRule:
    return ErrorRule(re.compile(pattern, re.IGNORECASE), kind, severity, message, fix, **extra)


# Order matters: rent before balance so InsufficientFundsForRent is not read as a balance error
DEFAULT_RULES: tuple[ErrorRule, ...] = (
    _rule(
        r"insufficientfundsforrent|rent[\s_-]?exempt",
        ErrorKind.RENT_VIOLATION,
        Severity.WARNING,
        "Account would not remain rent exempt after this transaction",
        "Fund the account up to the rent-exempt minimum before debiting it",
        documentation_link="https://docs.solana.com/developing/programming-model/accounts#rent-exemption",
        estimated_fix_time="10-20 minutes",
    ),
    _rule(
        r"insufficient.*balance|insufficient\s*(funds|lamports)",
        ErrorKind.ACCOUNT_BALANCE_MISMATCH,
        Severity.CRITICAL,
        "Account has insufficient balance for the requested operation",
        "Ensure the account has enough SOL or tokens before executing the transaction",
        documentation_link="https://docs.solana.com/developing/programming-model/accounts#account-balance",
        estimated_fix_time="5-10 minutes",
    ),
    _rule(
        r"realloc.*constraint|invalidrealloc",
        ErrorKind.REALLOC_CONSTRAINT_EXCEEDED,
        Severity.CRITICAL,
        "Account reallocation exceeded maximum allowed size limit",
        "Implement PDA chunking pattern to split large data across multiple accounts",
        code_example=REALLOC_CODE_EXAMPLE,
        documentation_link="https://docs.rs/anchor-lang/latest/anchor_lang/accounts/account/struct.Account.html#account-reallocation",
        estimated_fix_time="2-4 hours",
    ),
    _rule(
        r"accountdatatoosmall|accountdatasizechanged|maxaccountsdata\w*exceeded|account.*size.*exceed",
        ErrorKind.ACCOUNT_SIZE_EXCEEDED,
        Severity.WARNING,
        "Account data size is outside the allowed bounds for this operation",
        "Allocate the account with enough space up front or grow it in bounded realloc steps",
        estimated_fix_time="30-60 minutes",
    ),
    _rule(
        r"missingrequiredsignature|illegalowner|constrainthasone|(authority|owner).*mismatch",
        ErrorKind.AUTHORITY_MISMATCH,
        Severity.CRITICAL,
        "Signer or owner does not match the authority the program expects",
        "Check that the expected authority signs the transaction and owns the target account",
        estimated_fix_time="15-30 minutes",
    ),
    _rule(
        r"comput.*budget.*exceeded",
        ErrorKind.COMPUTE_BUDGET_EXCEEDED,
        Severity.WARNING,
        "Transaction exceeded the compute budget limit",
        "Optimize instruction logic or request additional compute units",
        documentation_link=COMPUTE_BUDGET_DOC,
        estimated_fix_time="1-2 hours",
    ),
)

PROGRAM_ERROR_RULE = _rule(
    r".",
    ErrorKind.PROGRAM_ERROR,
    Severity.CRITICAL,
    "Transaction failed: {failure}",
    "Review transaction parameters and retry",
)


def match_failure_rule(serialized: str, rules: Sequence[ErrorRule] = DEFAULT_RULES) -> ErrorRule | None:
    """Return the first rule whose pattern matches, preserving table order."""
    for rule in rules:
        if rule.matches(serialized):
            return rule
    return None


def _failing_instruction(err: Any) -> int | None:
    """Instruction index from {"InstructionError": [index, detail]}; None otherwise."""
    if not isinstance(err, dict):
        return None
    detail = err.get("InstructionError")
    if not isinstance(detail, (list, tuple)) or not detail:
        return None
    try:
        return int(detail[0])
    except (TypeError, ValueError):
        return None


def _attribute_failure(record: RawTransactionRecord) -> tuple[int, str]:
    index = _failing_instruction(record.err)
    if index is None or not 0 <= index < len(record.instructions):
        return 0, TRANSACTION_LEVEL_PROGRAM
    instruction = normalize_instruction(record.instructions[index], record.account_keys)
    if instruction is None:
        return index, TRANSACTION_LEVEL_PROGRAM
    return index, instruction.program_id


def check_failure_signal(
    record: RawTransactionRecord,
    rules: Sequence[ErrorRule] = DEFAULT_RULES,
) -> list[TransactionError]:
    """
    Classify meta.err. Always yields at least one critical finding when the
    transaction failed: a non-critical match is followed by program_error.
    """
    if not record.failed:
        return []
    serialized = record.failure_text or ""
    index, program_id = _attribute_failure(record)
    rule = match_failure_rule(serialized, rules)
    if rule is None:
        rule = PROGRAM_ERROR_RULE
    findings = [rule.to_error(serialized, index, program_id)]
    if rule.severity is not Severity.CRITICAL:
        findings.append(PROGRAM_ERROR_RULE.to_error(serialized, index, program_id))
    logger.debug(
        "error_classifier_failure_matched",
        kind=rule.kind.value,
        instruction_index=index,
        failure=serialized,
    )
    return findings


def check_compute_ceiling(consumed: int, threshold: int) -> list[TransactionError]:
    if consumed <= threshold:
        return []
    return [
        TransactionError(
            kind=ErrorKind.COMPUTE_BUDGET_EXCEEDED,
            severity=Severity.WARNING,
            instruction_index=0,
            program_id=TRANSACTION_LEVEL_PROGRAM,
            message=f"High compute usage detected: {consumed:,} units",
            suggested_fix="Consider optimizing instruction logic or splitting into multiple transactions",
            documentation_link=COMPUTE_BUDGET_DOC,
            estimated_fix_time="1-3 hours",
        )
    ]


def check_rent_exemption(
    account_keys: Sequence[str],
    pre_balances: Sequence[int],
    post_balances: Sequence[int],
    rent_exempt_minimum: int,
) -> list[TransactionError]:
    """One warning per account whose balance fell and ended below the minimum."""
    findings: list[TransactionError] = []
    for idx, post in enumerate(post_balances):
        pre = pre_balances[idx] if idx < len(pre_balances) else 0
        if post >= rent_exempt_minimum or post >= pre:
            continue
        address = account_keys[idx] if idx < len(account_keys) else f"#{idx}"
        findings.append(
            TransactionError(
                kind=ErrorKind.RENT_VIOLATION,
                severity=Severity.WARNING,
                instruction_index=0,
                program_id=TRANSACTION_LEVEL_PROGRAM,
                message=f"Account {address} may not be rent exempt: {post} lamports",
                suggested_fix="Ensure account has sufficient balance for rent exemption",
                estimated_fix_time="10-20 minutes",
            )
        )
    return findings


def classify_errors(
    record: RawTransactionRecord,
    settings: DebuggerSettings | None = None,
    rules: Sequence[ErrorRule] = DEFAULT_RULES,
) -> list[TransactionError]:
    """Run all three checks in order and return the combined findings."""
    cfg = settings or get_settings()
    errors = check_failure_signal(record, rules)
    errors.extend(check_compute_ceiling(record.compute_units_consumed, cfg.compute_warning_threshold))
    errors.extend(
        check_rent_exemption(
            record.account_keys,
            record.pre_balances,
            record.post_balances,
            cfg.rent_exempt_minimum,
        )
    )
    if errors:
        logger.debug(
            "error_classifier_result",
            findings=len(errors),
            critical=sum(1 for e in errors if e.severity is Severity.CRITICAL),
        )
    return errors
