"""
Instruction normalizer — RPC instruction encodings to CanonicalInstruction.

getTransaction returns each instruction in one of three shapes:
- parsed: {"programId", "parsed": {"type", "info"}} for programs the node can decode
- partially decoded: {"programId", "accounts": [address...], "data"}
- compiled: {"programIdIndex", "accounts": [index...], "data"}

The variant is resolved once here; downstream code only sees the canonical
shape. An instruction that cannot be resolved returns None and the caller
skips it.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

from cpi_debugger.debugger_logging import get_logger
from cpi_debugger.ingestion.models import AccountRef, CanonicalInstruction, InstructionKind

logger = get_logger(__name__)

# Parsed-info fields that carry account addresses, in extraction order
PARSED_ACCOUNT_FIELDS = ("account", "source", "destination", "authority", "mint", "owner")

UNKNOWN_TYPE = "unknown"
COMPILED_TYPE = "compiled"


def as_mapping(instruction: Any) -> Mapping[str, Any] | None:
    """Return the instruction as a mapping; solders objects go through to_json()."""
    if isinstance(instruction, Mapping):
        return instruction
    to_json = getattr(instruction, "to_json", None)
    if callable(to_json):
        try:
            decoded = json.loads(to_json())
        except (TypeError, ValueError):
            return None
        return decoded if isinstance(decoded, Mapping) else None
    return None


def classify_instruction(instruction: Mapping[str, Any]) -> InstructionKind | None:
    """Return which encoding the instruction uses, or None for an unrecognized shape."""
    if "programId" in instruction:
        if "parsed" in instruction:
            return InstructionKind.PARSED
        return InstructionKind.PARTIALLY_DECODED
    if "programIdIndex" in instruction:
        return InstructionKind.COMPILED
    return None


def _resolve_index(account_keys: Sequence[str], raw_index: Any) -> str | None:
    try:
        idx = int(raw_index)
    except (TypeError, ValueError):
        return None
    if not 0 <= idx < len(account_keys):
        return None
    return account_keys[idx]


def _normalize_parsed(ix: Mapping[str, Any]) -> CanonicalInstruction:
    parsed = ix.get("parsed")
    semantic_type = UNKNOWN_TYPE
    refs: list[AccountRef] = []
    # Some programs (e.g. memo) return parsed as a bare string
    if isinstance(parsed, Mapping):
        semantic_type = str(parsed.get("type") or UNKNOWN_TYPE)
        info = parsed.get("info")
        if isinstance(info, Mapping):
            for name in PARSED_ACCOUNT_FIELDS:
                value = info.get(name)
                if value and isinstance(value, str):
                    refs.append(AccountRef(address=value, source_index=len(refs), field=name))
    return CanonicalInstruction(
        program_id=str(ix["programId"]),
        kind=InstructionKind.PARSED,
        semantic_type=semantic_type,
        account_refs=tuple(refs),
    )


def _normalize_partial(ix: Mapping[str, Any]) -> CanonicalInstruction:
    refs = tuple(
        AccountRef(address=str(addr), source_index=i)
        for i, addr in enumerate(ix.get("accounts") or [])
    )
    return CanonicalInstruction(
        program_id=str(ix["programId"]),
        kind=InstructionKind.PARTIALLY_DECODED,
        semantic_type=UNKNOWN_TYPE,
        account_refs=refs,
    )


def _normalize_compiled(
    ix: Mapping[str, Any],
    account_keys: Sequence[str],
) -> CanonicalInstruction | None:
    program_id = _resolve_index(account_keys, ix.get("programIdIndex"))
    if program_id is None:
        logger.debug(
            "instruction_program_index_unresolved",
            program_id_index=ix.get("programIdIndex"),
            address_count=len(account_keys),
        )
        return None
    # Out-of-range account indices resolve to the empty address rather than dropping the ref
    refs = tuple(
        AccountRef(address=_resolve_index(account_keys, raw) or "", source_index=i)
        for i, raw in enumerate(ix.get("accounts") or [])
    )
    return CanonicalInstruction(
        program_id=program_id,
        kind=InstructionKind.COMPILED,
        semantic_type=COMPILED_TYPE,
        account_refs=refs,
    )


def normalize_instruction(
    instruction: Any,
    account_keys: Sequence[str],
) -> CanonicalInstruction | None:
    """
    Normalize one instruction in any supported encoding.

    Returns None for malformed input (unrecognized shape, or a compiled
    instruction whose program index is outside the address table).
    """
    ix = as_mapping(instruction)
    if ix is None:
        return None
    kind = classify_instruction(ix)
    if kind is InstructionKind.PARSED:
        return _normalize_parsed(ix)
    if kind is InstructionKind.PARTIALLY_DECODED:
        return _normalize_partial(ix)
    if kind is InstructionKind.COMPILED:
        return _normalize_compiled(ix, account_keys)
    return None
