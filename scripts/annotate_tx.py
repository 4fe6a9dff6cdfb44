#!/usr/bin/env python3
"""Print an annotated execution trace for a transaction.

Fetches the struct logs of a mined transaction from a node with the debug
namespace enabled (geth, anvil, reth) and prints one line per step with the
named stack operands and, for MLOAD/MSTORE, the memory word touched.

Usage:
    python scripts/annotate_tx.py 0x<tx hash>
    python scripts/annotate_tx.py 0x<tx hash> --rpc-url http://127.0.0.1:8545 --limit 200

Environment:
    RPC_URL - Node endpoint (default: http://127.0.0.1:8545)
"""

from __future__ import annotations

import argparse
import os
import sys

from evm_debug_labels.chain.rpc import RPCError, trace_transaction
from evm_debug_labels.debug.annotate import StepAnnotation, annotate_step
from evm_debug_labels.debug.memory import word_byte_range
from evm_debug_labels.debug.trace import TraceError, steps_from_struct_logs

DEFAULT_RPC_URL = "http://127.0.0.1:8545"


def format_step(annotation: StepAnnotation) -> str:
    """One line per step: pc, depth, name, operands, memory word."""
    parts = [f"{annotation.pc:>6}", f"d{annotation.depth}", f"{annotation.name:<14}"]

    operands = []
    for item in annotation.stack_items:
        value = hex(item.value) if item.value is not None else "?"
        operands.append(f"{item.label}={value}")
    if operands:
        parts.append(" ".join(operands))

    if annotation.memory_word is not None:
        _, word = annotation.memory_word
        start, end = word_byte_range(word)
        parts.append(f"[mem word {word}: {start:#x}..{end:#x}]")

    return "  ".join(parts).rstrip()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Annotated EVM execution trace")
    parser.add_argument("tx_hash", help="Transaction hash (0x-prefixed)")
    parser.add_argument(
        "--rpc-url",
        default=os.environ.get("RPC_URL", DEFAULT_RPC_URL),
        help=f"Node RPC URL with debug_traceTransaction (default: {DEFAULT_RPC_URL})",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Print at most this many steps",
    )
    args = parser.parse_args(argv)

    try:
        struct_logs = trace_transaction(args.tx_hash, args.rpc_url)
        steps = steps_from_struct_logs(struct_logs, limit=args.limit)
    except (RPCError, TraceError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    for step in steps:
        print(format_step(annotate_step(step)))

    if len(steps) < len(struct_logs):
        print(f"... {len(struct_logs) - len(steps)} more steps", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
