"""Detection of condition transfers from matching removes and applies."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from gwbuddy.data import Condition

if TYPE_CHECKING:
    from gwbuddy.combat import Agent

__all__ = ["TIME_EPSILON", "Apply", "Remove", "Transfer", "TransferTracker"]

#: Error margin (ms) for times and durations.
TIME_EPSILON = 10

_T = TypeVar("_T")


@dataclass
class Remove:
    """A condition removed from our own character."""

    time: int
    condi: Condition
    duration: int


@dataclass
class Apply:
    """A condition applied by us to another agent."""

    time: int
    condi: Condition
    duration: int
    target: Agent

    def matches(self, remove: Remove) -> bool:
        """Whether this apply corresponds to the given remove."""
        return (
            self.condi == remove.condi
            and abs(self.duration - remove.duration) < TIME_EPSILON
            and abs(self.time - remove.time) < TIME_EPSILON
        )


@dataclass
class Transfer:
    """A detected condition transfer."""

    time: int
    condi: Condition
    stacks: int
    target: Agent

    @classmethod
    def from_apply(cls, apply: Apply) -> Transfer:
        return cls(time=apply.time, condi=apply.condi, stacks=1, target=apply.target)

    def is_group(self, other: Transfer) -> bool:
        """Whether both transfers belong to the same transfer event."""
        return (
            self.condi == other.condi
            and self.target == other.target
            and abs(self.time - other.time) < TIME_EPSILON
        )


def _find_take(items: list[_T], predicate: Callable[[_T], bool]) -> _T | None:
    """Removes and returns the first matching item, moving the last item into its place."""
    index = next((i for i, item in enumerate(items) if predicate(item)), None)
    if index is None:
        return None
    found = items[index]
    last = items.pop()
    if index < len(items):
        items[index] = last
    return found


class TransferTracker:
    """Pairs condition removes with condition applies to find transfers."""

    #: Time (ms) to keep unmatched candidates.
    RETAIN_TIME = 100

    def __init__(self) -> None:
        self._transfers: list[Transfer] = []
        self._removes: list[Remove] = []
        self._applies: list[Apply] = []

    def __repr__(self) -> str:
        return f"TransferTracker(transfers={self._transfers!r})"

    def found(self) -> tuple[Transfer, ...]:
        """Transfers detected so far."""
        return tuple(self._transfers)

    def add_remove(self, remove: Remove) -> None:
        self.purge(remove.time)
        apply = _find_take(self._applies, lambda candidate: candidate.matches(remove))
        if apply is not None:
            self._add_transfer(apply)
        else:
            self._removes.append(remove)

    def add_apply(self, apply: Apply) -> None:
        self.purge(apply.time)
        remove = _find_take(self._removes, apply.matches)
        if remove is not None:
            self._add_transfer(apply)
        else:
            self._applies.append(apply)

    def _add_transfer(self, apply: Apply) -> None:
        transfer = Transfer.from_apply(apply)
        existing = next(
            (other for other in self._transfers if transfer.is_group(other)), None
        )
        if existing is not None:
            existing.stacks += 1
        else:
            self._transfers.append(transfer)

    def purge(self, now: int) -> None:
        """Drops candidates older than the retain time."""
        self._removes = [r for r in self._removes if r.time + self.RETAIN_TIME >= now]
        self._applies = [a for a in self._applies if a.time + self.RETAIN_TIME >= now]