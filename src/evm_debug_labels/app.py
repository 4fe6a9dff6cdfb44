"""Flask application serving step annotations to a debugger front-end."""

from __future__ import annotations

import json
import logging
import os
import re
import time
from typing import Any

from flask import Flask, Response, jsonify, request

from evm_debug_labels.chain.rpc import RPCError, trace_transaction
from evm_debug_labels.config import Config, load_config
from evm_debug_labels.debug.annotate import StepAnnotation, annotate_step
from evm_debug_labels.debug.instruction import Cheatcode, DebugStep, Instruction, OpCode
from evm_debug_labels.debug.memory import word_byte_range
from evm_debug_labels.debug.opcodes import lookup, opcode_for_name
from evm_debug_labels.debug.trace import TraceError, parse_word, steps_from_struct_logs

logger = logging.getLogger(__name__)
request_logger = logging.getLogger("evm_debug_labels.requests")

# Transaction hash: 0x followed by 64 hex chars
TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
SELECTOR_RE = re.compile(r"^0x[0-9a-fA-F]{8}$")
OPCODE_HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]{1,2}$")

LOGGED_ROUTES = {"/annotate", "/trace"}


class InvalidStepError(ValueError):
    """Raised when an /annotate request body does not describe a step."""


def _parse_opcode(raw: object) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        opcode = raw
    elif isinstance(raw, str) and raw.startswith(("0x", "0X")):
        if not OPCODE_HEX_RE.match(raw):
            raise InvalidStepError(f"Invalid opcode: {raw}")
        opcode = int(raw, 16)
    elif isinstance(raw, str):
        found = opcode_for_name(raw)
        if found is None:
            raise InvalidStepError(f"Unknown opcode name: {raw}")
        opcode = found
    else:
        raise InvalidStepError(f"Invalid opcode: {raw!r}")

    if not 0 <= opcode <= 0xFF:
        raise InvalidStepError(f"Opcode out of range: {raw}")
    return opcode


def _parse_step(body: dict[str, Any]) -> DebugStep:
    """Build a DebugStep from an /annotate request body."""
    instruction: Instruction
    if "cheatcode" in body:
        selector = body["cheatcode"]
        if not isinstance(selector, str) or not SELECTOR_RE.match(selector):
            raise InvalidStepError(f"Invalid cheatcode selector: {selector!r}")
        instruction = Cheatcode(bytes.fromhex(selector[2:]))
    elif "opcode" in body:
        instruction = OpCode(_parse_opcode(body["opcode"]))
    else:
        raise InvalidStepError("Missing 'opcode' or 'cheatcode'")

    raw_stack = body.get("stack", [])
    if not isinstance(raw_stack, list):
        raise InvalidStepError("'stack' must be a list, top of stack first")
    try:
        stack = tuple(parse_word(item) for item in raw_stack)
    except TraceError as e:
        raise InvalidStepError(str(e)) from e

    pc = body.get("pc", 0)
    depth = body.get("depth", 1)
    for field, value in (("pc", pc), ("depth", depth)):
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise InvalidStepError(f"'{field}' must be a non-negative integer")

    return DebugStep(instruction=instruction, stack=stack, pc=pc, depth=depth)


def _serialize(annotation: StepAnnotation) -> dict[str, object]:
    memory_word: dict[str, object] | None = None
    if annotation.memory_word is not None:
        opcode, word = annotation.memory_word
        start, end = word_byte_range(word)
        memory_word = {
            "opcode": opcode,
            "name": lookup(opcode)[0],
            "word": word,
            "start": start,
            "end": end,
        }

    return {
        "pc": annotation.pc,
        "depth": annotation.depth,
        "opcode": annotation.opcode,
        "name": annotation.name,
        "stack_items": [
            {
                "index": item.index,
                "label": item.label,
                "value": hex(item.value) if item.value is not None else None,
            }
            for item in annotation.stack_items
        ],
        "memory_word": memory_word,
    }


def _configure_request_log_file(app: Flask, config: Config) -> None:
    """Attach a file handler to the request logger if a log path is configured."""
    log_path = config.request_log_path
    if not log_path:
        return

    app.config["REQUEST_LOG_PATH"] = log_path
    os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    request_logger.addHandler(handler)
    request_logger.setLevel(logging.INFO)
    logger.info("Request logging enabled: %s", log_path)


def _setup_request_logging(app: Flask) -> None:
    """Log every annotation request as structured JSON."""

    @app.before_request
    def _start_timer() -> None:
        if request.path in LOGGED_ROUTES:
            request.environ["_req_start"] = time.monotonic()

    @app.after_request
    def _log_request(response: Response) -> Response:
        if request.path not in LOGGED_ROUTES:
            return response

        start = request.environ.get("_req_start")
        duration_ms = (
            round((time.monotonic() - start) * 1000) if start else None
        )

        entry: dict[str, object] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "path": request.path,
            "status": response.status_code,
            "duration_ms": duration_ms,
            "user_agent": request.headers.get("User-Agent", ""),
            "method": request.method,
        }

        if request.path == "/trace":
            entry["tx"] = request.args.get("tx", "")
            if response.status_code == 200:
                data = response.get_json(silent=True)
                if data and isinstance(data, dict):
                    entry["step_count"] = data.get("step_count")

        request_logger.info(json.dumps(entry, separators=(",", ":")))
        return response


def create_app(config: Config | None = None) -> Flask:
    """Flask application factory.

    Pass a Config object for testing; defaults to loading from environment.
    """
    if config is None:
        config = load_config()

    app = Flask(__name__)
    app.config["EVM_DEBUG_LABELS_CONFIG"] = config

    _setup_request_logging(app)
    _configure_request_log_file(app, config)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/annotate", methods=["POST"])
    def annotate():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 422

        try:
            step = _parse_step(body)
        except InvalidStepError as e:
            return jsonify({"error": str(e)}), 422

        return jsonify(_serialize(annotate_step(step)))

    @app.route("/trace", methods=["GET", "POST"])
    def trace():
        tx_hash = request.args.get("tx", "").strip()
        if not tx_hash and request.is_json:
            body = request.get_json(silent=True)
            if body and isinstance(body, dict):
                tx_hash = str(body.get("tx", "")).strip()

        if not tx_hash:
            return jsonify({"error": "Missing 'tx' query parameter"}), 422

        if not TX_HASH_RE.match(tx_hash):
            return (
                jsonify({"error": f"Invalid transaction hash: {tx_hash}"}),
                422,
            )

        try:
            struct_logs = trace_transaction(tx_hash, config.rpc_url)
        except RPCError as e:
            return jsonify({"error": f"RPC error: {e}"}), 502

        try:
            steps = steps_from_struct_logs(struct_logs, limit=config.max_trace_steps)
        except TraceError as e:
            logger.warning("Malformed trace for %s: %s", tx_hash, e)
            return jsonify({"error": f"Malformed trace: {e}"}), 502

        return jsonify({
            "tx": tx_hash,
            "step_count": len(struct_logs),
            "truncated": len(steps) < len(struct_logs),
            "steps": [_serialize(annotate_step(step)) for step in steps],
        })

    return app
