"""
Outcome pair: the (found, value) result every facade call returns.

Absence and storage failure are values, not exceptions. Callers branch
on ``found`` before trusting ``value``:

    outcome = entity_manager.find_by_id(Item, 7)
    if outcome.found:
        show(outcome.value)

For write operations ``found`` reads as "succeeded".
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Immutable two-slot result."""

    found: bool
    value: T

    def __bool__(self) -> bool:
        return self.found

    def __iter__(self) -> Iterator[Any]:
        # found, value = outcome
        yield self.found
        yield self.value

    @classmethod
    def hit(cls, value: T) -> "Outcome[T]":
        return cls(True, value)

    @classmethod
    def miss(cls, empty: T) -> "Outcome[T]":
        """Failure/absence carrying the zero value of the payload."""
        return cls(False, empty)

    @classmethod
    def none(cls) -> "Outcome[None]":
        return cls(False, None)

    @classmethod
    def empty(cls) -> "Outcome[list]":
        return cls(False, [])

    @classmethod
    def of_list(cls, values: list) -> "Outcome[list]":
        """found iff the list is non-empty."""
        values = list(values)
        return cls(bool(values), values)
