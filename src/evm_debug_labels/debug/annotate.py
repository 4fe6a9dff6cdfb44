"""Step annotation: combines operand labels and memory word for display."""

from __future__ import annotations

from dataclasses import dataclass

from evm_debug_labels.debug.instruction import Cheatcode, DebugStep, OpCode
from evm_debug_labels.debug.memory import affected_memory_word
from evm_debug_labels.debug.opcodes import lookup
from evm_debug_labels.debug.stack_items import affected_stack_items


@dataclass(frozen=True, slots=True)
class StackItem:
    index: int
    label: str
    value: int | None  # None when the slot lies below the captured stack


@dataclass(frozen=True, slots=True)
class StepAnnotation:
    pc: int
    depth: int
    opcode: int | None
    name: str
    stack_items: list[StackItem]
    memory_word: tuple[int, int] | None


def instruction_name(step: DebugStep) -> str:
    instruction = step.instruction
    if isinstance(instruction, OpCode):
        return lookup(instruction.opcode)[0]
    if isinstance(instruction, Cheatcode):
        return f"CHEATCODE_0x{instruction.selector.hex()}"
    return "UNKNOWN"


def annotate_step(step: DebugStep) -> StepAnnotation:
    """Label the stack operands of a step and resolve its memory word.

    Stack depth is not validated: a labeled slot missing from the snapshot
    is reported with value None.
    """
    items = [
        StackItem(
            index=index,
            label=label,
            value=step.stack[index] if index < len(step.stack) else None,
        )
        for index, label in affected_stack_items(step.instruction)
    ]
    opcode = step.instruction.opcode if isinstance(step.instruction, OpCode) else None

    return StepAnnotation(
        pc=step.pc,
        depth=step.depth,
        opcode=opcode,
        name=instruction_name(step),
        stack_items=items,
        memory_word=affected_memory_word(step),
    )
