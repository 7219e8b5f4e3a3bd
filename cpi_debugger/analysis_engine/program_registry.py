"""
Program registry — program address to human-readable display name.

Immutable after construction so it can be shared across concurrent debug
calls. The built-in table covers system, token, compute-budget, voting,
staking and common DEX programs; a JSON file can extend or override it
without a code change.
"""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from solders.pubkey import Pubkey

from cpi_debugger.debugger_logging import get_logger

logger = get_logger(__name__)

UNKNOWN_PROGRAM = "Unknown Program"

KNOWN_PROGRAMS: Mapping[str, str] = MappingProxyType(
    {
        "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA": "Token Program",
        "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL": "Associated Token Program",
        "ComputeBudget111111111111111111111111111111": "Compute Budget Program",
        "11111111111111111111111111111111": "System Program",
        "BPFLoaderUpgradeab1e11111111111111111111111": "BPF Upgradeable Loader",
        "Vote111111111111111111111111111111111111111": "Vote Program",
        "Stake11111111111111111111111111111111111111": "Stake Program",
        # DEX programs
        "DjVE6JNiYqPL2QXyCUUh8rNjHrbz9hXHNYt99MQ59qw1": "Dex Program",
        "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM": "AMM Program",
        "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8": "Raydium AMM Program",
        "EhpADApTrarMJx1rMHj8SBgaTKMCvvzM27RBBe8S9xwL": "Raydium CLMM Program",
        "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc": "Orca Whirlpools Program",
    }
)


class ProgramRegistry:
    """Read-only address -> name lookup. Never fails; unknown maps to UNKNOWN_PROGRAM."""

    __slots__ = ("_names",)

    def __init__(self, names: Mapping[str, str] | None = None) -> None:
        self._names: Mapping[str, str] = MappingProxyType(
            dict(KNOWN_PROGRAMS if names is None else names)
        )

    def name_for(self, program_id: str) -> str:
        return self._names.get(program_id, UNKNOWN_PROGRAM)

    def __contains__(self, program_id: object) -> bool:
        return program_id in self._names

    def __len__(self) -> int:
        return len(self._names)

    def as_dict(self) -> dict[str, str]:
        return dict(self._names)


def _is_valid_address(address: str) -> bool:
    try:
        Pubkey.from_string(address)
    except ValueError:
        return False
    return True


def _load_registry_file(path: Path) -> dict[str, str]:
    """Load {address: name} from JSON. Returns empty dict on failure."""
    if not path.is_file():
        logger.warning("program_registry_file_missing", path=str(path))
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("program_registry_file_load_failed", path=str(path), error=str(e))
        return {}
    if not isinstance(data, dict):
        logger.warning("program_registry_file_not_object", path=str(path))
        return {}
    out: dict[str, str] = {}
    for address, name in data.items():
        address = str(address).strip()
        if not name or not _is_valid_address(address):
            logger.warning("program_registry_entry_invalid", path=str(path), address=address)
            continue
        out[address] = str(name).strip()
    return out


def load_registry(path: Path | str | None = None) -> ProgramRegistry:
    """
    Built-in table merged with an optional JSON override file.

    File entries win over built-in names for the same address.
    """
    names = dict(KNOWN_PROGRAMS)
    if path is not None:
        extra = _load_registry_file(Path(path))
        names.update(extra)
        logger.debug("program_registry_loaded", path=str(path), extra_entries=len(extra))
    return ProgramRegistry(names)
