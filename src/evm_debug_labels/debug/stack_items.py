"""Named stack operands per opcode, for operand tooltips."""

from __future__ import annotations

from evm_debug_labels.debug.instruction import Instruction, OpCode

_AB = ((0, "a"), (1, "b"))
_CALL = (
    (0, "gas"),
    (1, "address"),
    (2, "value"),
    (3, "argsOffset"),
    (4, "argsSize"),
    (5, "retOffset"),
    (6, "retSize"),
)
# DELEGATECALL / STATICCALL transfer no value
_CALL_NO_VALUE = (
    (0, "gas"),
    (1, "address"),
    (2, "argsOffset"),
    (3, "argsSize"),
    (4, "retOffset"),
    (5, "retSize"),
)
_COPY = ((0, "destOffset"), (1, "offset"), (2, "size"))
_OFFSET_SIZE = ((0, "offset"), (1, "size"))

# (index, label); index 0 is the top of the stack
_NAMED: dict[int, tuple[tuple[int, str], ...]] = {
    # Arithmetic
    0x01: _AB,
    0x02: _AB,
    0x03: _AB,
    0x04: _AB,
    0x05: _AB,
    0x06: _AB,
    0x07: _AB,
    0x08: _AB + ((2, "N"),),
    0x09: _AB + ((2, "N"),),
    0x0A: ((0, "a"), (1, "exponent")),
    0x0B: ((0, "b"), (1, "x")),
    # Comparison & bitwise
    0x10: _AB,
    0x11: _AB,
    0x12: _AB,
    0x13: _AB,
    0x14: _AB,
    0x15: ((0, "a"),),
    0x16: _AB,
    0x17: _AB,
    0x18: _AB,
    0x19: ((0, "a"),),
    0x1A: ((0, "i"), (1, "x")),
    0x1B: ((0, "shift"), (1, "value")),
    0x1C: ((0, "shift"), (1, "value")),
    0x1D: ((0, "shift"), (1, "value")),
    # SHA3
    0x20: _OFFSET_SIZE,
    # Environmental
    0x31: ((0, "address"),),
    0x35: ((0, "offset"),),
    0x37: _COPY,
    0x39: _COPY,
    0x3B: ((0, "address"),),
    0x3C: ((0, "address"), (1, "destOffset"), (2, "offset"), (3, "size")),
    0x3E: _COPY,
    0x3F: ((0, "address"),),
    # Block
    0x40: ((0, "blockNumber"),),
    # Stack / memory / storage
    0x50: ((0, "y"),),
    0x51: ((0, "offset"),),
    0x52: ((0, "offset"), (1, "value")),
    0x53: ((0, "offset"), (1, "value")),
    0x54: ((0, "key"),),
    0x55: ((0, "key"), (1, "value")),
    0x56: ((0, "jump_to"),),
    0x57: ((0, "jump_to"), (1, "if")),
    # DUPn labels only the slot being copied
    **{0x80 + i: ((i, "dup_value"),) for i in range(16)},
    # SWAPn labels the top and the slot it trades places with
    **{0x90 + i: ((0, "a"), (i + 1, "swap_value")) for i in range(16)},
    # Logging
    0xA0: _OFFSET_SIZE,
    0xA1: _OFFSET_SIZE + ((2, "topic"),),
    0xA2: _OFFSET_SIZE + ((2, "topic1"), (3, "topic2")),
    0xA3: _OFFSET_SIZE + ((2, "topic1"), (3, "topic2"), (4, "topic3")),
    0xA4: _OFFSET_SIZE + ((2, "topic1"), (3, "topic2"), (4, "topic3"), (5, "topic4")),
    # System
    0xF0: ((0, "value"), (1, "offset"), (2, "size")),
    0xF1: _CALL,
    0xF2: _CALL,
    0xF3: _OFFSET_SIZE,
    0xF4: _CALL_NO_VALUE,
    0xF5: ((0, "value"), (1, "offset"), (2, "size"), (3, "salt")),
    0xFA: _CALL_NO_VALUE,
    0xFD: _OFFSET_SIZE,
    0xFF: ((0, "address"),),
}

# Indexed directly by opcode byte; every byte has an entry, most are empty.
STACK_ITEMS: tuple[tuple[tuple[int, str], ...], ...] = tuple(
    _NAMED.get(op, ()) for op in range(256)
)


def affected_stack_items(instruction: Instruction) -> list[tuple[int, str]]:
    """Return the (stack_index, label) pairs the instruction reads, top first.

    Empty for instructions without named operands and for anything that is
    not a plain opcode.
    """
    if isinstance(instruction, OpCode) and 0 <= instruction.opcode <= 0xFF:
        return list(STACK_ITEMS[instruction.opcode])
    return []
