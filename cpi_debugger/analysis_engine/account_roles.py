"""
Account role resolver: signer/writable flags and display role names.

Permissions are inferred from an account's position in the address table.
Two explicit branches:
- exact: the compiled message header is available (json encoding)
- conservative fallback: no header (jsonParsed encoding); assume one
  required signer and treat all but the first five addresses as read-only

The fallback is approximate and may misclassify accounts in larger
transactions. Optimization hints downstream are calibrated against it,
so it is kept as is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from cpi_debugger.ingestion.models import AccountRef, InstructionKind, MessageHeader

# Fallback: addresses beyond this many are assumed read-only
FALLBACK_WRITABLE_WINDOW = 5

ROLE_NAMES = {
    "account": "Target Account",
    "source": "Source Account",
    "destination": "Destination Account",
    "authority": "Authority Account",
    "mint": "Token Mint",
    "owner": "Owner Account",
}
DEFAULT_ROLE_NAME = "Account"


@dataclass(frozen=True)
class AccountFlags:
    is_signer: bool
    is_writable: bool


NO_FLAGS = AccountFlags(is_signer=False, is_writable=False)


def _flags_from_header(
    idx: int,
    total: int,
    header: MessageHeader,
    loaded_writable_count: int,
    loaded_readonly_count: int,
) -> AccountFlags:
    static_count = total - loaded_writable_count - loaded_readonly_count
    num_signers = header.num_required_signatures
    if idx < num_signers:
        writable = idx < num_signers - header.num_readonly_signed_accounts
        return AccountFlags(is_signer=True, is_writable=writable)
    if idx < static_count:
        writable = idx < static_count - header.num_readonly_unsigned_accounts
        return AccountFlags(is_signer=False, is_writable=writable)
    # Lookup-table addresses: writable ones precede readonly ones
    return AccountFlags(is_signer=False, is_writable=idx < static_count + loaded_writable_count)


def _flags_fallback(idx: int, total: int) -> AccountFlags:
    num_required_signatures = 1
    num_readonly_signed = 0
    num_readonly_unsigned = max(0, total - FALLBACK_WRITABLE_WINDOW)
    return AccountFlags(
        is_signer=idx < num_required_signatures,
        is_writable=num_readonly_signed <= idx < total - num_readonly_unsigned,
    )


def resolve_account_flags(
    address: str,
    account_keys: Sequence[str],
    header: MessageHeader | None,
    loaded_writable_count: int = 0,
    loaded_readonly_count: int = 0,
) -> AccountFlags:
    """
    Return signer/writable flags for an address.

    Addresses missing from the table are neither signer nor writable.
    """
    try:
        idx = list(account_keys).index(address)
    except ValueError:
        return NO_FLAGS
    total = len(account_keys)
    if header is not None:
        return _flags_from_header(idx, total, header, loaded_writable_count, loaded_readonly_count)
    return _flags_fallback(idx, total)


def role_name(ref: AccountRef) -> str:
    """Field-tagged refs get a role label; positional refs are numbered from 1."""
    if ref.field is not None:
        return ROLE_NAMES.get(ref.field, DEFAULT_ROLE_NAME)
    return f"{DEFAULT_ROLE_NAME} {ref.source_index + 1}"


def data_changed(kind: InstructionKind, flags: AccountFlags) -> bool:
    """Parsed refs name accounts the instruction acts on; others change only if writable."""
    if kind is InstructionKind.PARSED:
        return True
    return flags.is_writable
