"""
Tests for the instruction normalizer (normalize_instruction, classify_instruction).

Covers the three getTransaction encodings: jsonParsed, partially decoded
and compiled, plus malformed input that must be skipped, not raised.
"""

from __future__ import annotations

import json

from cpi_debugger.ingestion import InstructionKind, classify_instruction, normalize_instruction
from tests.factories import PAYER, RECIPIENT, SYSTEM_PROGRAM, TOKEN_ACCOUNT, TOKEN_PROGRAM, WSOL_MINT, transfer_ix

KEYS = (PAYER, RECIPIENT, TOKEN_ACCOUNT, SYSTEM_PROGRAM, TOKEN_PROGRAM)


class _SoldersLike:
    """Stands in for a solders UiInstruction: exposes to_json() only."""

    def __init__(self, payload: dict) -> None:
        self._payload = payload

    def to_json(self) -> str:
        return json.dumps(self._payload)


def test_classify_instruction_variants():
    """Each encoding is recognized by its distinguishing keys."""
    assert classify_instruction(transfer_ix()) is InstructionKind.PARSED
    assert classify_instruction({"programId": TOKEN_PROGRAM, "accounts": [], "data": ""}) is InstructionKind.PARTIALLY_DECODED
    assert classify_instruction({"programIdIndex": 3, "accounts": [0, 1], "data": ""}) is InstructionKind.COMPILED
    assert classify_instruction({"data": "3Bxs"}) is None


def test_parsed_transfer_extracts_field_tagged_accounts():
    """Parsed transfer: type from parsed.type, source/destination as field-tagged refs."""
    ix = normalize_instruction(transfer_ix(), KEYS)
    assert ix is not None
    assert ix.kind is InstructionKind.PARSED
    assert ix.program_id == SYSTEM_PROGRAM
    assert ix.semantic_type == "transfer"
    assert [(r.address, r.field) for r in ix.account_refs] == [
        (PAYER, "source"),
        (RECIPIENT, "destination"),
    ]


def test_parsed_fields_follow_fixed_order_and_skip_non_strings():
    """Refs follow account, source, destination, authority, mint, owner; non-string values ignored."""
    raw = {
        "programId": TOKEN_PROGRAM,
        "parsed": {
            "type": "initializeAccount",
            "info": {
                "owner": PAYER,
                "mint": WSOL_MINT,
                "account": TOKEN_ACCOUNT,
                "authority": {"multisig": True},
                "rentSysvar": "SysvarRent111111111111111111111111111111111",
            },
        },
    }
    ix = normalize_instruction(raw, KEYS)
    assert [r.field for r in ix.account_refs] == ["account", "mint", "owner"]
    assert [r.source_index for r in ix.account_refs] == [0, 1, 2]


def test_parsed_string_payload_is_unknown_type():
    """Memo-style parsed string: type unknown, no account refs."""
    raw = {"program": "spl-memo", "programId": "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr", "parsed": "hello"}
    ix = normalize_instruction(raw, KEYS)
    assert ix.semantic_type == "unknown"
    assert ix.account_refs == ()


def test_partially_decoded_positional_refs():
    """Partially decoded: every listed address becomes a positional ref."""
    raw = {"programId": TOKEN_PROGRAM, "accounts": [TOKEN_ACCOUNT, PAYER], "data": "3Bxs4h24hBtQy9rw"}
    ix = normalize_instruction(raw, KEYS)
    assert ix.kind is InstructionKind.PARTIALLY_DECODED
    assert ix.semantic_type == "unknown"
    assert [(r.address, r.source_index, r.field) for r in ix.account_refs] == [
        (TOKEN_ACCOUNT, 0, None),
        (PAYER, 1, None),
    ]


def test_compiled_resolves_through_address_table():
    """Compiled: program and accounts resolved by index into the address table."""
    raw = {"programIdIndex": 3, "accounts": [0, 1], "data": "3Bxs4h24hBtQy9rw", "stackHeight": None}
    ix = normalize_instruction(raw, KEYS)
    assert ix.kind is InstructionKind.COMPILED
    assert ix.program_id == SYSTEM_PROGRAM
    assert ix.semantic_type == "compiled"
    assert [r.address for r in ix.account_refs] == [PAYER, RECIPIENT]


def test_compiled_program_index_out_of_range_returns_none():
    """Program index past the table end is malformed input: None, no exception."""
    assert normalize_instruction({"programIdIndex": 9, "accounts": [0]}, KEYS) is None
    assert normalize_instruction({"programIdIndex": -1, "accounts": [0]}, KEYS) is None


def test_compiled_account_index_out_of_range_is_empty_address():
    """Account index past the table end resolves to an empty address."""
    ix = normalize_instruction({"programIdIndex": 3, "accounts": [0, 42]}, KEYS)
    assert [r.address for r in ix.account_refs] == [PAYER, ""]


def test_unrecognized_shapes_return_none():
    """Non-instruction values are skipped."""
    assert normalize_instruction({"data": "abc"}, KEYS) is None
    assert normalize_instruction(None, KEYS) is None
    assert normalize_instruction(42, KEYS) is None


def test_solders_like_object_is_accepted():
    """Objects exposing to_json() are decoded before classification."""
    ix = normalize_instruction(_SoldersLike(transfer_ix()), KEYS)
    assert ix is not None
    assert ix.semantic_type == "transfer"
