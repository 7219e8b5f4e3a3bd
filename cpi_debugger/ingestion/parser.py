"""
Solana transaction parser — raw getTransaction payloads to RawTransactionRecord.

Handles json and jsonParsed encodings, legacy and versioned messages
(meta.loadedAddresses are appended to the address table), and solders
response objects. Purely structural; no diagnostics here.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from cpi_debugger.core.exceptions import InvalidTransactionRecord
from cpi_debugger.debugger_logging import get_logger
from cpi_debugger.ingestion.models import MessageHeader, RawTransactionRecord

logger = get_logger(__name__)


def _to_dict(raw: Any) -> dict[str, Any] | None:
    """Accept a dict, a JSON string, or a solders object exposing to_json()."""
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        decoded: Any = dict(raw)
    elif isinstance(raw, (str, bytes)) or callable(getattr(raw, "to_json", None)):
        text = raw if isinstance(raw, (str, bytes)) else raw.to_json()
        try:
            decoded = json.loads(text)
        except ValueError as e:
            raise InvalidTransactionRecord(f"Transaction payload is not valid JSON: {e}") from e
    else:
        raise InvalidTransactionRecord(f"Unsupported transaction payload type: {type(raw).__name__}")
    if isinstance(decoded, dict) and "transaction" not in decoded and "result" in decoded:
        # Full JSON-RPC envelope
        decoded = decoded["result"]
    if decoded is None:
        return None
    if not isinstance(decoded, dict):
        raise InvalidTransactionRecord("Transaction payload is not a JSON object")
    return decoded


def _get_message_and_meta(raw: dict[str, Any]) -> tuple[dict[str, Any] | None, dict[str, Any]]:
    """Return (transaction.message, meta) from getTransaction-style result."""
    tx_obj = raw.get("transaction")
    message = tx_obj.get("message") if isinstance(tx_obj, dict) else None
    meta = raw.get("meta")
    if not isinstance(meta, dict):
        meta = {}
    return (message if isinstance(message, dict) else None), meta


def _get_account_keys(message: dict[str, Any], meta: dict[str, Any]) -> tuple[list[str], int, int]:
    """
    Resolve accountKeys to base58 strings (handles json vs jsonParsed).
    For versioned transactions, appends meta.loadedAddresses (writable + readonly).
    Returns (keys, loaded_writable_count, loaded_readonly_count).
    """
    keys = message.get("accountKeys")
    if keys is None:
        raise InvalidTransactionRecord("Transaction message has no accountKeys")
    out: list[str] = []
    for k in keys:
        if isinstance(k, str):
            out.append(k)
        elif isinstance(k, dict):
            out.append(str(k.get("pubkey", "")))
    loaded = meta.get("loadedAddresses") or {}
    counts = []
    for role in ("writable", "readonly"):
        addrs = [str(a) for a in loaded.get(role) or []]
        # jsonParsed already lists lookup-table keys in accountKeys
        addrs = [a for a in addrs if a not in out]
        out.extend(addrs)
        counts.append(len(addrs))
    return out, counts[0], counts[1]


def _get_inner_instructions(meta: dict[str, Any]) -> dict[int, tuple[dict[str, Any], ...]]:
    """innerInstructions [{index, instructions}] -> {index: instructions}; first group wins."""
    out: dict[int, tuple[dict[str, Any], ...]] = {}
    for group in meta.get("innerInstructions") or []:
        if not isinstance(group, dict):
            continue
        try:
            idx = int(group.get("index"))
        except (TypeError, ValueError):
            continue
        if idx in out:
            logger.debug("parser_duplicate_inner_group", index=idx)
            continue
        out[idx] = tuple(group.get("instructions") or ())
    return out


def _int_or(value: Any, default: int | None) -> int | None:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _int_list(values: Any) -> tuple[int, ...]:
    return tuple(_int_or(v, 0) for v in values or ())


def parse_transaction(raw: Any, signature: str | None = None) -> RawTransactionRecord | None:
    """
    Parse a single getTransaction result into a RawTransactionRecord.

    Returns None when the node returned no transaction (not found).
    Raises InvalidTransactionRecord when the payload is not valid JSON or
    exists but has no message or address table.
    """
    data = _to_dict(raw)
    if data is None:
        return None

    message, meta = _get_message_and_meta(data)
    if message is None:
        raise InvalidTransactionRecord("Transaction payload has no message", signature=signature)

    account_keys, loaded_writable, loaded_readonly = _get_account_keys(message, meta)

    header_raw = message.get("header")
    header = MessageHeader.from_rpc_item(header_raw) if isinstance(header_raw, dict) else None

    if signature is None:
        sigs = (data.get("transaction") or {}).get("signatures") or []
        signature = str(sigs[0]) if sigs else None

    record = RawTransactionRecord(
        account_keys=tuple(account_keys),
        instructions=tuple(message.get("instructions") or ()),
        inner_instructions=_get_inner_instructions(meta),
        header=header,
        loaded_writable_count=loaded_writable,
        loaded_readonly_count=loaded_readonly,
        pre_balances=_int_list(meta.get("preBalances")),
        post_balances=_int_list(meta.get("postBalances")),
        err=meta.get("err"),
        compute_units_consumed=_int_or(meta.get("computeUnitsConsumed"), 0),
        fee=_int_or(meta.get("fee"), 0),
        slot=_int_or(data.get("slot"), 0),
        block_time=_int_or(data.get("blockTime"), None),
        signature=signature,
    )
    logger.debug(
        "transaction_parsed",
        signature=signature,
        instructions=len(record.instructions),
        inner_groups=len(record.inner_instructions),
        accounts=len(record.account_keys),
        failed=record.failed,
    )
    return record
