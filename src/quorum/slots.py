"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Ordered key map used to normalize sequence and mapping task collections.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .errors import ContractViolationError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TaskSlots(Generic[T]):
    """
    Tasks keyed by index or mapping key, in declared order.

    Sequence inputs use positional indices as keys. The input shape is
    restored only by ``snapshot``.
    """

    items: tuple[tuple[Hashable, T], ...]
    is_sequence: bool

    @classmethod
    def from_tasks(cls, tasks: Sequence[T] | Mapping[Hashable, T]) -> "TaskSlots[T]":
        if isinstance(tasks, Mapping):
            return cls(items=tuple(tasks.items()), is_sequence=False)
        if isinstance(tasks, (str, bytes, bytearray)) or not isinstance(tasks, Sequence):
            raise ContractViolationError(
                f"Tasks must be a sequence or mapping, got {type(tasks).__name__}"
            )
        return cls(items=tuple(enumerate(tasks)), is_sequence=True)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[tuple[Hashable, T]]:
        return iter(self.items)

    def keys(self) -> list[Hashable]:
        return [key for key, _ in self.items]

    def blank(self) -> list[Any] | dict[Hashable, Any]:
        """Same-shape collection with every slot unset."""
        return self.snapshot({})

    def snapshot(self, values: Mapping[Hashable, Any]) -> list[Any] | dict[Hashable, Any]:
        """Rebuild the input shape from populated ``values``; missing keys are ``None``."""
        if self.is_sequence:
            return [values.get(key) for key, _ in self.items]
        return {key: values.get(key) for key, _ in self.items}
