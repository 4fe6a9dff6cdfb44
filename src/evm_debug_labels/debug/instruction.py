"""Debugger step types: instruction variants and the step snapshot."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class OpCode:
    opcode: int


@dataclass(frozen=True, slots=True)
class Cheatcode:
    selector: bytes  # 4-byte function selector of the intercepted call


Instruction = OpCode | Cheatcode


@dataclass(frozen=True, slots=True)
class DebugStep:
    """One execution step as seen by the debugger.

    ``stack`` is top-first: ``stack[0]`` is the top of the operand stack.
    """

    instruction: Instruction
    stack: tuple[int, ...] = ()
    pc: int = 0
    depth: int = 1
