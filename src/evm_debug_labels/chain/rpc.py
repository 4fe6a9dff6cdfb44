"""Node RPC client for execution traces, using raw JSON-RPC via requests."""

from __future__ import annotations

import functools
from typing import Any

import requests

TRACE_TIMEOUT_SECONDS = 30


class RPCError(Exception):
    """Raised when an RPC call fails."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


def _call(rpc_url: str, method: str, params: list[Any]) -> Any:
    payload = {
        "jsonrpc": "2.0",
        "method": method,
        "params": params,
        "id": 1,
    }

    try:
        resp = requests.post(rpc_url, json=payload, timeout=TRACE_TIMEOUT_SECONDS)
        resp.raise_for_status()
    except (requests.RequestException, ConnectionError) as e:
        raise RPCError(f"RPC request failed: {e}") from e

    try:
        data = resp.json()
    except ValueError as e:
        raise RPCError(f"RPC returned invalid JSON: {e}") from e

    if "error" in data:
        err = data["error"]
        raise RPCError(
            f"RPC error: {err.get('message', 'unknown')}",
            code=err.get("code"),
        )

    result = data.get("result")
    if result is None:
        raise RPCError("RPC returned null result")

    return result


@functools.lru_cache(maxsize=32)
def trace_transaction(tx_hash: str, rpc_url: str) -> tuple[dict[str, Any], ...]:
    """Fetch the struct logs of a mined transaction via debug_traceTransaction.

    Storage and memory capture are disabled; only pc, op, depth and stack
    are needed for annotation. Returns the struct logs in execution order.
    Raises RPCError on network/RPC failures or an unexpected result shape.
    """
    options = {
        "disableStorage": True,
        "enableMemory": False,
        "enableReturnData": False,
    }
    result = _call(rpc_url, "debug_traceTransaction", [tx_hash, options])

    if not isinstance(result, dict):
        raise RPCError("RPC returned unexpected trace result")

    struct_logs = result.get("structLogs")
    if not isinstance(struct_logs, list):
        raise RPCError("RPC trace result has no structLogs")

    return tuple(struct_logs)


def clear_cache() -> None:
    """Clear LRU caches (useful for testing)."""
    trace_transaction.cache_clear()
