"""Struct-log adapter: geth ``debug_traceTransaction`` output → DebugStep."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from evm_debug_labels.debug.instruction import DebugStep, OpCode
from evm_debug_labels.debug.opcodes import opcode_for_name

logger = logging.getLogger(__name__)

WORD_LIMIT = 2**256

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


class TraceError(ValueError):
    """Raised when a struct log cannot be turned into a debug step."""


def parse_word(raw: object) -> int:
    """Parse a stack word given as an int or a hex string (0x prefix optional)."""
    # Older geth versions emit 64 hex chars without the 0x prefix
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    elif isinstance(raw, str):
        text = raw[2:] if raw.startswith(("0x", "0X")) else raw
        if not _HEX_RE.match(text):
            raise TraceError(f"Invalid stack word: {raw!r}")
        value = int(text, 16) if text else 0
    else:
        raise TraceError(f"Invalid stack word: {raw!r}")

    if value < 0:
        raise TraceError(f"Negative stack word: {raw!r}")
    if value >= WORD_LIMIT:
        raise TraceError(f"Stack word wider than 256 bits: {raw!r}")
    return value


def step_from_struct_log(log: dict[str, Any]) -> DebugStep:
    """Convert one struct log entry into a DebugStep.

    The node reports the stack bottom-first; DebugStep.stack is top-first.
    Raises TraceError on a missing or unknown op or a malformed stack.
    """
    if not isinstance(log, dict):
        raise TraceError(f"Struct log is not an object: {log!r}")

    op_name = log.get("op")
    if not isinstance(op_name, str) or not op_name:
        raise TraceError(f"Struct log has no op: {log!r}")

    opcode = opcode_for_name(op_name)
    if opcode is None:
        raise TraceError(f"Unknown op in struct log: {op_name}")

    raw_stack = log.get("stack") or []
    if not isinstance(raw_stack, list):
        raise TraceError(f"Struct log stack is not a list: {raw_stack!r}")

    stack = tuple(parse_word(item) for item in reversed(raw_stack))

    try:
        pc = int(log.get("pc", 0))
        depth = int(log.get("depth", 1))
    except (TypeError, ValueError) as e:
        raise TraceError(f"Invalid pc/depth in struct log: {e}") from e

    return DebugStep(instruction=OpCode(opcode), stack=stack, pc=pc, depth=depth)


def steps_from_struct_logs(
    logs: Iterable[dict[str, Any]], limit: int | None = None
) -> list[DebugStep]:
    """Convert struct logs in order, stopping after ``limit`` steps if given."""
    steps: list[DebugStep] = []
    for log in logs:
        if limit is not None and len(steps) >= limit:
            logger.debug("Trace truncated at %d steps", limit)
            break
        steps.append(step_from_struct_log(log))
    return steps
