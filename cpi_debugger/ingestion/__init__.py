"""
Transaction ingestion package.

Turns already-fetched getTransaction payloads into immutable records and
resolves each instruction encoding to one canonical shape for the
analysis engine.
"""

from cpi_debugger.ingestion.models import (
    AccountRef,
    CanonicalInstruction,
    InstructionKind,
    MessageHeader,
    RawTransactionRecord,
)
from cpi_debugger.ingestion.normalizer import classify_instruction, normalize_instruction
from cpi_debugger.ingestion.parser import parse_transaction

__all__ = [
    "AccountRef",
    "CanonicalInstruction",
    "InstructionKind",
    "MessageHeader",
    "RawTransactionRecord",
    "classify_instruction",
    "normalize_instruction",
    "parse_transaction",
]
