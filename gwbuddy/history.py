"""Fight history with per-fight data."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

__all__ = ["Fight", "HistorySettings", "History"]

T = TypeVar("T")

_I32_MAX = 2**31 - 1


@dataclass
class Fight(Generic[T]):
    """A fight in the history."""

    start: int
    data: T
    target: int | None = None
    name: str | None = None
    end_time: int | None = None

    @classmethod
    def with_target(cls, start: int, species: int, name: str | None, data: T) -> Fight[T]:
        fight = cls(start, data)
        fight.update_target(species, name)
        return fight

    def update_target(self, species: int, name: str | None) -> None:
        """Sets the target species and name; species up to 2 clear the target."""
        if species > 2:
            self.target = species
            self.name = name or None
        else:
            self.target = None
            self.name = None

    def ended(self) -> bool:
        return self.end_time is not None

    def duration(self) -> int | None:
        """Fight duration, if the fight ended."""
        return None if self.end_time is None else self.end_time - self.start

    def end(self, time: int) -> int:
        """Ends the fight and returns its duration."""
        self.end_time = time
        return time - self.start

    def relative_time(self, time: int) -> int | None:
        """Time relative to fight start, or None if after the end or out of range."""
        if self.end_time is not None and time > self.end_time:
            return None
        relative = time - self.start
        if abs(relative) > _I32_MAX:
            return None
        return relative


@dataclass
class HistorySettings:
    """Persisted history settings."""

    max_fights: int
    min_duration: int
    discard_at_end: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_fights": self.max_fights,
            "min_duration": self.min_duration,
            "discard_at_end": self.discard_at_end,
        }

    @classmethod
    def from_dict(cls, mapping: Mapping[str, Any]) -> HistorySettings:
        """Builds settings from a mapping, raising ValueError if invalid."""
        try:
            max_fights = mapping["max_fights"]
            min_duration = mapping["min_duration"]
            discard_at_end = mapping["discard_at_end"]
        except (KeyError, TypeError) as err:
            raise ValueError(f"invalid history settings: {mapping!r}") from err
        for name, value in (("max_fights", max_fights), ("min_duration", min_duration)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        if not isinstance(discard_at_end, bool):
            raise ValueError(f"discard_at_end must be a boolean, got {discard_at_end!r}")
        return cls(max_fights, min_duration, discard_at_end)


class History(Generic[T]):
    """History of fights, newest first."""

    SETTINGS_ID = "history"

    def __init__(
        self,
        max_fights: int,
        min_duration: int,
        discard_at_end: bool,
        data_factory: Callable[[], T] | None = None,
    ) -> None:
        self.settings = HistorySettings(max_fights, min_duration, discard_at_end)
        self._data_factory = data_factory
        self._viewed = 0
        self._fights: deque[Fight[T]] = deque()

    def _new_data(self) -> T:
        return self._data_factory() if self._data_factory is not None else None  # type: ignore[return-value]

    def __len__(self) -> int:
        return len(self._fights)

    def __iter__(self) -> Iterator[Fight[T]]:
        return iter(self._fights)

    def latest_fight(self) -> Fight[T] | None:
        return self._fights[0] if self._fights else None

    def latest_fight_active(self) -> bool:
        latest = self.latest_fight()
        return latest is not None and not latest.ended()

    def fight_at(self, index: int) -> Fight[T] | None:
        if 0 <= index < len(self._fights):
            return self._fights[index]
        return None

    def all_fights(self) -> Iterator[Fight[T]]:
        return iter(self._fights)

    @property
    def viewed(self) -> int:
        """Index of the currently viewed fight."""
        return self._viewed

    def viewed_fight(self) -> Fight[T] | None:
        return self.fight_at(self._viewed)

    def select(self, index: int) -> None:
        """Selects the fight at the given index for viewing."""
        if not 0 <= index < len(self._fights):
            raise IndexError(f"no fight at index {index}")
        self._viewed = index

    def _update_viewed(self, change: int) -> None:
        if self._viewed > 0:
            self._viewed = max(0, self._viewed + change)
        if self._viewed >= len(self._fights):
            self._viewed = 0

    def relative_time(self, time: int) -> int | None:
        latest = self.latest_fight()
        return None if latest is None else latest.relative_time(time)

    def fight_and_time(self, time: int) -> tuple[int, Fight[T]] | None:
        """Latest fight with the time relative to its start."""
        latest = self.latest_fight()
        if latest is None:
            return None
        relative = latest.relative_time(time)
        return None if relative is None else (relative, latest)

    def add_fight(self, fight: Fight[T]) -> None:
        """Adds a fight, dropping a too short previous fight and the oldest if full."""
        previous = self.latest_fight()
        if previous is not None:
            duration = previous.duration()
            if duration is not None and duration < self.settings.min_duration:
                self._fights.popleft()
        if len(self._fights) > self.settings.max_fights:
            self._fights.pop()
        self._fights.appendleft(fight)
        self._update_viewed(1)

    def add_fight_default(self, time: int) -> None:
        self.add_fight(Fight(time, self._new_data()))

    def add_fight_with_target(self, time: int, species: int, name: str | None) -> None:
        self.add_fight(Fight.with_target(time, species, name, self._new_data()))

    def update_fight_target(self, time: int, species: int, name: str | None) -> None:
        """Updates the active fight's target, or starts a new fight with it."""
        latest = self.latest_fight()
        if latest is not None and not latest.ended():
            latest.update_target(species, name)
        else:
            self.add_fight_with_target(time, species, name)

    def end_latest_fight(self, time: int) -> None:
        """Ends the latest fight; ignored if it already ended."""
        latest = self.latest_fight()
        if latest is None or latest.ended():
            return
        duration = latest.end(time)
        if self.settings.discard_at_end and duration < self.settings.min_duration:
            self._fights.popleft()
            self._update_viewed(-1)