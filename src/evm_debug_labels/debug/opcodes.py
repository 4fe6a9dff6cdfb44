"""EVM opcode table: int → (name, immediate_size, stack_inputs)."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

MLOAD = 0x51
MSTORE = 0x52

# (name, immediate_size, stack_inputs); immediate_size is only non-zero for PUSH1..PUSH32
OPCODES: dict[int, tuple[str, int, int]] = {
    # Stop & arithmetic
    0x00: ("STOP", 0, 0),
    0x01: ("ADD", 0, 2),
    0x02: ("MUL", 0, 2),
    0x03: ("SUB", 0, 2),
    0x04: ("DIV", 0, 2),
    0x05: ("SDIV", 0, 2),
    0x06: ("MOD", 0, 2),
    0x07: ("SMOD", 0, 2),
    0x08: ("ADDMOD", 0, 3),
    0x09: ("MULMOD", 0, 3),
    0x0A: ("EXP", 0, 2),
    0x0B: ("SIGNEXTEND", 0, 2),
    # Comparison & bitwise
    0x10: ("LT", 0, 2),
    0x11: ("GT", 0, 2),
    0x12: ("SLT", 0, 2),
    0x13: ("SGT", 0, 2),
    0x14: ("EQ", 0, 2),
    0x15: ("ISZERO", 0, 1),
    0x16: ("AND", 0, 2),
    0x17: ("OR", 0, 2),
    0x18: ("XOR", 0, 2),
    0x19: ("NOT", 0, 1),
    0x1A: ("BYTE", 0, 2),
    0x1B: ("SHL", 0, 2),
    0x1C: ("SHR", 0, 2),
    0x1D: ("SAR", 0, 2),
    # SHA3
    0x20: ("SHA3", 0, 2),
    # Environmental
    0x30: ("ADDRESS", 0, 0),
    0x31: ("BALANCE", 0, 1),
    0x32: ("ORIGIN", 0, 0),
    0x33: ("CALLER", 0, 0),
    0x34: ("CALLVALUE", 0, 0),
    0x35: ("CALLDATALOAD", 0, 1),
    0x36: ("CALLDATASIZE", 0, 0),
    0x37: ("CALLDATACOPY", 0, 3),
    0x38: ("CODESIZE", 0, 0),
    0x39: ("CODECOPY", 0, 3),
    0x3A: ("GASPRICE", 0, 0),
    0x3B: ("EXTCODESIZE", 0, 1),
    0x3C: ("EXTCODECOPY", 0, 4),
    0x3D: ("RETURNDATASIZE", 0, 0),
    0x3E: ("RETURNDATACOPY", 0, 3),
    0x3F: ("EXTCODEHASH", 0, 1),
    # Block
    0x40: ("BLOCKHASH", 0, 1),
    0x41: ("COINBASE", 0, 0),
    0x42: ("TIMESTAMP", 0, 0),
    0x43: ("NUMBER", 0, 0),
    0x44: ("PREVRANDAO", 0, 0),
    0x45: ("GASLIMIT", 0, 0),
    0x46: ("CHAINID", 0, 0),
    0x47: ("SELFBALANCE", 0, 0),
    0x48: ("BASEFEE", 0, 0),
    0x49: ("BLOBHASH", 0, 1),
    0x4A: ("BLOBBASEFEE", 0, 0),
    # Stack / memory / storage
    0x50: ("POP", 0, 1),
    0x51: ("MLOAD", 0, 1),
    0x52: ("MSTORE", 0, 2),
    0x53: ("MSTORE8", 0, 2),
    0x54: ("SLOAD", 0, 1),
    0x55: ("SSTORE", 0, 2),
    0x56: ("JUMP", 0, 1),
    0x57: ("JUMPI", 0, 2),
    0x58: ("PC", 0, 0),
    0x59: ("MSIZE", 0, 0),
    0x5A: ("GAS", 0, 0),
    0x5B: ("JUMPDEST", 0, 0),
    0x5C: ("TLOAD", 0, 1),
    0x5D: ("TSTORE", 0, 2),
    0x5E: ("MCOPY", 0, 3),
    # PUSH0
    0x5F: ("PUSH0", 0, 0),
    # PUSH1 through PUSH32
    **{0x60 + i: (f"PUSH{i + 1}", i + 1, 0) for i in range(32)},
    # DUPn reads n items, SWAPn reads n + 1
    **{0x80 + i: (f"DUP{i + 1}", 0, i + 1) for i in range(16)},
    **{0x90 + i: (f"SWAP{i + 1}", 0, i + 2) for i in range(16)},
    # LOG0 through LOG4
    **{0xA0 + i: (f"LOG{i}", 0, i + 2) for i in range(5)},
    # System
    0xF0: ("CREATE", 0, 3),
    0xF1: ("CALL", 0, 7),
    0xF2: ("CALLCODE", 0, 7),
    0xF3: ("RETURN", 0, 2),
    0xF4: ("DELEGATECALL", 0, 6),
    0xF5: ("CREATE2", 0, 4),
    0xFA: ("STATICCALL", 0, 6),
    0xFD: ("REVERT", 0, 2),
    0xFE: ("INVALID", 0, 0),
    0xFF: ("SELFDESTRUCT", 0, 1),
}

_BY_NAME: dict[str, int] = {name: op for op, (name, _, _) in OPCODES.items()}

# Names clients print for opcodes that were renamed over forks
_ALIASES: dict[str, int] = {
    "KECCAK256": 0x20,
    "DIFFICULTY": 0x44,
    "RANDOM": 0x44,
    "SUICIDE": 0xFF,
}

# geth: "opcode 0xef not defined"
_UNDEFINED_RE = re.compile(r"^opcode 0x([0-9a-fA-F]{1,2}) not defined$")


def lookup(opcode: int) -> tuple[str, int, int]:
    """Return (name, immediate_size, stack_inputs) for an opcode, or ("UNKNOWN_XX", 0, 0)."""
    if opcode in OPCODES:
        return OPCODES[opcode]
    return (f"UNKNOWN_{opcode:02X}", 0, 0)


def opcode_for_name(name: str) -> int | None:
    """Map a mnemonic as printed by a node's tracer back to its opcode byte.

    Case-insensitive. Understands renamed mnemonics (KECCAK256, DIFFICULTY,
    SUICIDE), geth's "opcode 0xNN not defined" and our own UNKNOWN_XX names.
    Returns None if the name is not recognised.
    """
    key = name.strip()
    match = _UNDEFINED_RE.match(key)
    if match:
        return int(match.group(1), 16)

    key = key.upper()
    if key in _BY_NAME:
        return _BY_NAME[key]
    if key in _ALIASES:
        return _ALIASES[key]
    if key.startswith("UNKNOWN_"):
        try:
            value = int(key[len("UNKNOWN_"):], 16)
        except ValueError:
            return None
        if 0 <= value <= 0xFF:
            return value

    logger.debug("Unrecognised opcode name: %r", name)
    return None
