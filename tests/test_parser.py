"""
Tests for parse_transaction: json / jsonParsed encodings, versioned
messages, envelopes and not-found payloads.
"""

from __future__ import annotations

import json

import pytest

from cpi_debugger.core.exceptions import InvalidTransactionRecord
from cpi_debugger.ingestion import MessageHeader, parse_transaction
from tests.factories import (
    PAYER,
    RECIPIENT,
    SYSTEM_PROGRAM,
    TOKEN_ACCOUNT,
    TOKEN_PROGRAM,
    WSOL_MINT,
    compiled_ix,
    token_transfer_ix,
    transfer_ix,
)


def _json_parsed_result(**meta_overrides):
    meta = {
        "err": None,
        "fee": 5000,
        "computeUnitsConsumed": 150000,
        "preBalances": [10_000_000, 1_000_000, 1],
        "postBalances": [9_990_000, 1_005_000, 1],
        "innerInstructions": [],
    }
    meta.update(meta_overrides)
    return {
        "slot": 12345,
        "blockTime": 1714564780,
        "meta": meta,
        "transaction": {
            "signatures": ["5sigFromPayload"],
            "message": {
                "accountKeys": [
                    {"pubkey": PAYER, "signer": True, "writable": True},
                    {"pubkey": RECIPIENT, "signer": False, "writable": True},
                    {"pubkey": SYSTEM_PROGRAM, "signer": False, "writable": False},
                ],
                "instructions": [transfer_ix(), transfer_ix()],
            },
        },
    }


def _json_versioned_result():
    return {
        "slot": 200,
        "blockTime": None,
        "meta": {
            "err": {"InstructionError": [0, {"Custom": 6001}]},
            "fee": "5000",
            "computeUnitsConsumed": 42000,
            "preBalances": [1, 2, 3, 4, 5, 6],
            "postBalances": [1, 2, 3, 4, 5, 6],
            "innerInstructions": [{"index": 0, "instructions": [compiled_ix(4, [2, 1, 0])]}],
            "loadedAddresses": {"writable": [TOKEN_ACCOUNT], "readonly": [WSOL_MINT]},
        },
        "transaction": {
            "signatures": ["5sigVersioned"],
            "message": {
                "header": {
                    "numRequiredSignatures": 1,
                    "numReadonlySignedAccounts": 0,
                    "numReadonlyUnsignedAccounts": 2,
                },
                "accountKeys": [PAYER, RECIPIENT, SYSTEM_PROGRAM, TOKEN_PROGRAM],
                "instructions": [compiled_ix(2, [0, 1])],
            },
        },
    }


class _FakeSoldersResponse:
    """Stand-in for a solders response object: only to_json() is used."""

    def __init__(self, payload):
        self._payload = payload

    def to_json(self):
        return json.dumps(self._payload)


def test_json_parsed_payload():
    """jsonParsed: keys from {pubkey} objects, no header, meta fields copied."""
    record = parse_transaction(_json_parsed_result())
    assert record.account_keys == (PAYER, RECIPIENT, SYSTEM_PROGRAM)
    assert record.header is None
    assert len(record.instructions) == 2
    assert record.compute_units_consumed == 150000
    assert record.fee == 5000
    assert record.slot == 12345
    assert record.block_time == 1714564780
    assert record.signature == "5sigFromPayload"
    assert record.failed is False


def test_versioned_json_payload():
    """json: header parsed, loaded addresses appended writable then readonly."""
    record = parse_transaction(_json_versioned_result())
    assert record.account_keys == (PAYER, RECIPIENT, SYSTEM_PROGRAM, TOKEN_PROGRAM, TOKEN_ACCOUNT, WSOL_MINT)
    assert record.loaded_writable_count == 1
    assert record.loaded_readonly_count == 1
    assert record.header == MessageHeader(1, 0, 2)
    assert record.fee == 5000
    assert record.block_time is None
    assert record.failed is True
    assert record.failure_text == '{"InstructionError":[0,{"Custom":6001}]}'
    assert list(record.inner_instructions) == [0]


def test_loaded_addresses_not_duplicated():
    """jsonParsed already lists lookup-table keys; they are not appended twice."""
    payload = _json_parsed_result(loadedAddresses={"writable": [RECIPIENT], "readonly": []})
    record = parse_transaction(payload)
    assert record.account_keys == (PAYER, RECIPIENT, SYSTEM_PROGRAM)
    assert record.loaded_writable_count == 0


def test_explicit_signature_wins():
    """A caller-supplied signature overrides the one in the payload."""
    record = parse_transaction(_json_parsed_result(), signature="callerSig")
    assert record.signature == "callerSig"


def test_none_is_not_found():
    """None, a JSON null and a null envelope result all mean not found."""
    assert parse_transaction(None) is None
    assert parse_transaction("null") is None
    assert parse_transaction({"jsonrpc": "2.0", "id": 1, "result": None}) is None


def test_json_string_and_envelope():
    """A JSON string of a full JSON-RPC response is unwrapped."""
    envelope = {"jsonrpc": "2.0", "id": 1, "result": _json_parsed_result()}
    record = parse_transaction(json.dumps(envelope))
    assert record.signature == "5sigFromPayload"
    assert parse_transaction(envelope).signature == "5sigFromPayload"


def test_solders_style_object():
    """Objects exposing to_json() are accepted."""
    record = parse_transaction(_FakeSoldersResponse(_json_versioned_result()))
    assert record.signature == "5sigVersioned"
    assert record.compute_units_consumed == 42000


def test_missing_message_raises():
    """A payload with no message is invalid."""
    with pytest.raises(InvalidTransactionRecord):
        parse_transaction({"slot": 1, "meta": {}, "transaction": {}}, signature="bad")


def test_missing_account_keys_raises():
    """A message with no address table is invalid."""
    payload = _json_parsed_result()
    del payload["transaction"]["message"]["accountKeys"]
    with pytest.raises(InvalidTransactionRecord):
        parse_transaction(payload)


def test_unsupported_payload_type_raises():
    """Non-JSON payload types are rejected."""
    with pytest.raises(InvalidTransactionRecord):
        parse_transaction(12345)


def test_duplicate_inner_group_first_wins():
    """Two groups for the same index: the first one is kept."""
    first = token_transfer_ix()
    payload = _json_parsed_result(
        innerInstructions=[
            {"index": 0, "instructions": [first]},
            {"index": 0, "instructions": [transfer_ix(), transfer_ix()]},
            {"index": "bad", "instructions": []},
        ]
    )
    record = parse_transaction(payload)
    assert dict(record.inner_instructions) == {0: (first,)}


class _TruncatedResponse:
    """Object whose to_json() output was cut off mid-document."""

    def to_json(self):
        return '{"slot": 1, "meta": {'


@pytest.mark.parametrize("payload", ["{not json", b'{"slot": "\xff"}', _TruncatedResponse()])
def test_undecodable_payload_raises(payload):
    """Malformed JSON text or non-UTF-8 bytes are reported as invalid records."""
    with pytest.raises(InvalidTransactionRecord):
        parse_transaction(payload)
