"""
Tests for the account role resolver (resolve_account_flags, role_name, data_changed).

Exact branch uses header counts; the fallback branch (no header) assumes
one signer and only the first five addresses writable.
"""

from __future__ import annotations

from cpi_debugger.analysis_engine.account_roles import (
    AccountFlags,
    data_changed,
    resolve_account_flags,
    role_name,
)
from cpi_debugger.ingestion import AccountRef, InstructionKind, MessageHeader

KEYS = tuple(f"Addr{i}" for i in range(7))


def _flags(keys, header=None, **loaded):
    return [resolve_account_flags(k, keys, header, **loaded) for k in keys]


def test_fallback_small_table():
    """Fallback, 3 addresses: first is signer, all writable."""
    flags = _flags(KEYS[:3])
    assert flags[0] == AccountFlags(is_signer=True, is_writable=True)
    assert flags[1] == AccountFlags(is_signer=False, is_writable=True)
    assert flags[2] == AccountFlags(is_signer=False, is_writable=True)


def test_fallback_reserves_tail_as_readonly():
    """Fallback, 7 addresses: last max(0, 7 - 5) = 2 are read-only."""
    flags = _flags(KEYS)
    assert [f.is_writable for f in flags] == [True, True, True, True, True, False, False]
    assert [f.is_signer for f in flags] == [True, False, False, False, False, False, False]


def test_exact_header_ranges():
    """Header (2 signers, 1 readonly signed, 2 readonly unsigned) over 6 keys."""
    keys = KEYS[:6]
    header = MessageHeader(
        num_required_signatures=2,
        num_readonly_signed_accounts=1,
        num_readonly_unsigned_accounts=2,
    )
    flags = _flags(keys, header)
    assert flags[0] == AccountFlags(is_signer=True, is_writable=True)
    assert flags[1] == AccountFlags(is_signer=True, is_writable=False)
    assert flags[2] == AccountFlags(is_signer=False, is_writable=True)
    assert flags[3] == AccountFlags(is_signer=False, is_writable=True)
    assert flags[4] == AccountFlags(is_signer=False, is_writable=False)
    assert flags[5] == AccountFlags(is_signer=False, is_writable=False)


def test_exact_header_with_lookup_table_addresses():
    """Loaded writable addresses are writable, loaded readonly are not; neither signs."""
    header = MessageHeader(num_required_signatures=1, num_readonly_unsigned_accounts=1)
    # 4 static keys, 2 loaded writable, 1 loaded readonly
    flags = _flags(KEYS, header, loaded_writable_count=2, loaded_readonly_count=1)
    assert [f.is_writable for f in flags] == [True, True, True, False, True, True, False]
    assert [f.is_signer for f in flags] == [True, False, False, False, False, False, False]


def test_address_not_in_table():
    """Unknown address is neither signer nor writable."""
    assert resolve_account_flags("Elsewhere", KEYS, None) == AccountFlags(False, False)
    assert resolve_account_flags("Elsewhere", KEYS, MessageHeader(1)) == AccountFlags(False, False)


def test_role_names():
    """Field-tagged refs get role labels; unknown fields 'Account'; positional refs numbered."""
    assert role_name(AccountRef("a", 0, "authority")) == "Authority Account"
    assert role_name(AccountRef("a", 0, "account")) == "Target Account"
    assert role_name(AccountRef("a", 0, "mint")) == "Token Mint"
    assert role_name(AccountRef("a", 0, "rentSysvar")) == "Account"
    assert role_name(AccountRef("a", 0)) == "Account 1"
    assert role_name(AccountRef("a", 4)) == "Account 5"


def test_data_changed_rule():
    """Parsed refs always count as changed; others only when writable."""
    readonly = AccountFlags(is_signer=False, is_writable=False)
    writable = AccountFlags(is_signer=False, is_writable=True)
    assert data_changed(InstructionKind.PARSED, readonly) is True
    assert data_changed(InstructionKind.COMPILED, readonly) is False
    assert data_changed(InstructionKind.PARTIALLY_DECODED, writable) is True
