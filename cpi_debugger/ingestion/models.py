"""
Data models for ingested transactions.

Responsibilities:
- RawTransactionRecord: the already-fetched transaction the engine consumes.
- CanonicalInstruction: the single instruction shape every downstream
  component works with, whatever encoding the RPC node returned.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from cpi_debugger.core.exceptions import InvalidTransactionRecord
from cpi_debugger.debugger_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MessageHeader:
    """Signer/readonly counts from the compiled message header."""

    num_required_signatures: int
    num_readonly_signed_accounts: int = 0
    num_readonly_unsigned_accounts: int = 0

    @classmethod
    def from_rpc_item(cls, item: Mapping[str, Any]) -> "MessageHeader":
        """Build from a message.header object of a getTransaction response."""
        return cls(
            num_required_signatures=int(item.get("numRequiredSignatures") or 0),
            num_readonly_signed_accounts=int(item.get("numReadonlySignedAccounts") or 0),
            num_readonly_unsigned_accounts=int(item.get("numReadonlyUnsignedAccounts") or 0),
        )


@dataclass(frozen=True)
class RawTransactionRecord:
    """
    One confirmed transaction as produced by the ledger-fetch collaborator.

    Immutable for the duration of a debug call. Instructions are kept in
    their source encoding (parsed, partially decoded or compiled); the
    normalizer resolves them.
    """

    account_keys: tuple[str, ...]
    """Address table: static keys, then loaded writable, then loaded readonly."""
    instructions: tuple[Mapping[str, Any], ...] = ()
    inner_instructions: Mapping[int, tuple[Mapping[str, Any], ...]] = field(
        default_factory=dict
    )
    """Top-level instruction index -> CPI-triggered instructions, in order."""
    header: MessageHeader | None = None
    """None for jsonParsed payloads, which carry no raw header counts."""
    loaded_writable_count: int = 0
    loaded_readonly_count: int = 0
    pre_balances: tuple[int, ...] = ()
    post_balances: tuple[int, ...] = ()
    err: Any = None
    """Opaque failure value from meta.err; None if the transaction succeeded."""
    compute_units_consumed: int = 0
    fee: int = 0
    slot: int = 0
    block_time: int | None = None
    """Unix timestamp (seconds); None if the node did not report one."""
    signature: str | None = None

    def __post_init__(self) -> None:
        if self.account_keys is None:
            raise InvalidTransactionRecord(
                "Transaction record has no account address table",
                signature=self.signature,
            )
        object.__setattr__(self, "account_keys", tuple(self.account_keys))
        object.__setattr__(self, "instructions", tuple(self.instructions or ()))
        inner: dict[int, tuple[Mapping[str, Any], ...]] = {}
        for anchor, group in (self.inner_instructions or {}).items():
            try:
                index = int(anchor)
            except (TypeError, ValueError):
                # No top-level instruction can match; same as an unreachable group
                logger.debug("inner_group_anchor_invalid", anchor=repr(anchor), signature=self.signature)
                continue
            inner[index] = tuple(group or ())
        object.__setattr__(self, "inner_instructions", MappingProxyType(inner))
        object.__setattr__(self, "pre_balances", tuple(self.pre_balances or ()))
        object.__setattr__(self, "post_balances", tuple(self.post_balances or ()))

    @property
    def failed(self) -> bool:
        return self.err is not None

    @property
    def failure_text(self) -> str | None:
        """Compact JSON of err; the text the error rules match against."""
        if self.err is None:
            return None
        try:
            return json.dumps(self.err, separators=(",", ":"))
        except (TypeError, ValueError):
            return str(self.err)

    def balances_for(self, address: str) -> tuple[int, int]:
        """Return (pre, post) lamports for an address; (0, 0) when unknown."""
        try:
            idx = self.account_keys.index(address)
        except ValueError:
            return 0, 0
        pre = self.pre_balances[idx] if idx < len(self.pre_balances) else 0
        post = self.post_balances[idx] if idx < len(self.post_balances) else 0
        return pre, post


class InstructionKind(str, Enum):
    PARSED = "parsed"
    PARTIALLY_DECODED = "partially_decoded"
    COMPILED = "compiled"


@dataclass(frozen=True)
class AccountRef:
    """An account referenced by an instruction, before role resolution."""

    address: str
    source_index: int
    """Position within the instruction's own account references."""
    field: str | None = None
    """Parsed-info field name (source, authority, ...); None for positional refs."""


@dataclass(frozen=True)
class CanonicalInstruction:
    """Encoding-independent instruction; transient, used during flow building."""

    program_id: str
    kind: InstructionKind
    semantic_type: str
    account_refs: tuple[AccountRef, ...] = ()
