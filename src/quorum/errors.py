"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for quorum combinators and latest-call guards.
"""

from __future__ import annotations

from typing import Any


class QuorumError(RuntimeError):
    """Base error for all quorum package failures."""


class QuorumUnreachableError(QuorumError):
    """
    Raised when the required success count can no longer be met.

    Attributes:
        reasons: Failure collection shaped like the input tasks. Slots of
            tasks that did not fail are ``None``.
    """

    def __init__(self, reasons: list[Any] | dict[Any, Any]) -> None:
        self.reasons = reasons
        super().__init__(f"Quorum unreachable: {len(reasons)} task(s) failed")


class ContractViolationError(QuorumError, ValueError):
    """Raised when combinator arguments break the call contract."""


class TypeMismatchError(QuorumError, TypeError):
    """Raised when a guarded function does not return an awaitable."""


class SupersededError(QuorumError):
    """
    Raised for a guarded call whose result was discarded.

    Attributes:
        generation: Generation number of the discarded call.
        current: Generation number that was current when it settled.
    """

    def __init__(self, generation: int, current: int) -> None:
        self.generation = generation
        self.current = current
        super().__init__(
            f"Call {generation} superseded by a more recent call ({current})"
        )
