"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Quorum settings and explicit config loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .contracts import AggregatePolicy, GuardPolicy, OutOfRangeMode

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"Invalid boolean for {name}: {raw!r}")


@dataclass(frozen=True, slots=True)
class QuorumSettings:
    """Explicit settings used to build combinator policies."""

    out_of_range: OutOfRangeMode = "fail"
    log_superseded: bool = False

    @staticmethod
    def from_env() -> "QuorumSettings":
        """Load settings from environment variables."""
        mode = os.getenv("QUORUM_OUT_OF_RANGE", "fail").strip().lower()
        if mode not in ("fail", "clamp"):
            raise ValueError(f"Unknown QUORUM_OUT_OF_RANGE '{mode}'")
        return QuorumSettings(
            out_of_range=mode,  # type: ignore[arg-type]
            log_superseded=_env_bool("QUORUM_LOG_SUPERSEDED", False),
        )

    def aggregate_policy(self) -> AggregatePolicy:
        return AggregatePolicy(out_of_range=self.out_of_range)

    def guard_policy(self) -> GuardPolicy:
        return GuardPolicy(log_superseded=self.log_superseded)
