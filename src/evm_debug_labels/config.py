"""Environment configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when configuration is invalid."""


@dataclass(frozen=True, slots=True)
class Config:
    rpc_url: str
    max_trace_steps: int = 10_000
    request_log_path: str = ""


def load_config() -> Config:
    """Load configuration from environment variables.

    Raises ConfigError if MAX_TRACE_STEPS is not a positive integer.
    """
    load_dotenv()

    raw_max_steps = os.environ.get("MAX_TRACE_STEPS", "")
    max_trace_steps = 10_000
    if raw_max_steps:
        try:
            max_trace_steps = int(raw_max_steps)
        except ValueError as e:
            raise ConfigError(
                f"MAX_TRACE_STEPS must be an integer, got {raw_max_steps!r}"
            ) from e
        if max_trace_steps <= 0:
            raise ConfigError("MAX_TRACE_STEPS must be positive")

    return Config(
        rpc_url=os.environ.get("RPC_URL", "http://127.0.0.1:8545"),
        max_trace_steps=max_trace_steps,
        request_log_path=os.environ.get("REQUEST_LOG_PATH", ""),
    )
