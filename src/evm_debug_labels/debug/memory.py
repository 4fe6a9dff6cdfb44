"""Resolve the 32-byte memory word touched by MLOAD / MSTORE."""

from __future__ import annotations

from evm_debug_labels.debug.instruction import DebugStep, OpCode
from evm_debug_labels.debug.opcodes import MLOAD, MSTORE

WORD_SIZE = 32


def affected_memory_word(step: DebugStep) -> tuple[int, int] | None:
    """Return (opcode, word_index) for MLOAD/MSTORE, else None.

    The word index comes from the byte offset on top of the stack. It is not
    clamped; a huge offset yields a huge index.
    """
    if not step.stack:
        return None

    instruction = step.instruction
    if isinstance(instruction, OpCode) and instruction.opcode in (MLOAD, MSTORE):
        return (instruction.opcode, step.stack[0] // WORD_SIZE)
    return None


def word_byte_range(word_index: int) -> tuple[int, int]:
    """Half-open byte range [start, end) covered by a memory word."""
    start = word_index * WORD_SIZE
    return (start, start + WORD_SIZE)
