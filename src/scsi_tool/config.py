# src/scsi_tool/config.py
"""Decode options and their environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 4
DEFAULT_BYTES_PER_LINE = 16

ENV_MAX_DEPTH = "SCSI_TOOL_MAX_DEPTH"
ENV_CAPACITY = "SCSI_TOOL_CAPACITY"
ENV_BYTES_PER_LINE = "SCSI_TOOL_BYTES_PER_LINE"
ENV_VERBOSE = "SCSI_TOOL_VERBOSE"


def _env_int(env: Mapping[str, str], name: str, minimum: int) -> Optional[int]:
    raw = env.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw, 0)
    except ValueError:
        logger.debug("ignoring %s=%r: not an integer", name, raw)
        return None
    if value < minimum:
        logger.debug("ignoring %s=%d: below minimum %d", name, value, minimum)
        return None
    return value


@dataclass(frozen=True)
class DecodeOptions:
    # deepest level of forwarded sense data that is decoded
    max_depth: int = DEFAULT_MAX_DEPTH
    # None -> unbounded output
    capacity: Optional[int] = None
    bytes_per_line: int = DEFAULT_BYTES_PER_LINE
    long_out: bool = True
    raw: bool = False
    verbose: int = 0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> "DecodeOptions":
        """
        Defaults, then SCSI_TOOL_* environment variables, then keyword overrides.
        Unparseable environment values are ignored.
        """
        if env is None:
            env = os.environ
        values = {}
        max_depth = _env_int(env, ENV_MAX_DEPTH, 0)
        if max_depth is not None:
            values["max_depth"] = max_depth
        capacity = _env_int(env, ENV_CAPACITY, 0)
        if capacity is not None:
            values["capacity"] = capacity
        bpl = _env_int(env, ENV_BYTES_PER_LINE, 1)
        if bpl is not None:
            values["bytes_per_line"] = bpl
        verbose = _env_int(env, ENV_VERBOSE, 0)
        if verbose is not None:
            values["verbose"] = verbose
        values.update(overrides)
        return cls(**values)

    def with_changes(self, **changes) -> "DecodeOptions":
        return replace(self, **changes)
