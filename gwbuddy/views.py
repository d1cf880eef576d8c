"""Cast and buff log views rendered as lines of coloured text segments."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from gwbuddy.combat import Agent, AgentFilter, CastState, CombatData
from gwbuddy.data import SkillData, SkillHitCount, SkillHits
from gwbuddy.history import History
from gwbuddy.skills import SkillMap

__all__ = [
    "Tone",
    "Segment",
    "HitDisplay",
    "CastLog",
    "BuffLog",
    "format_time",
    "history_entries",
]

Line = tuple["Segment", ...]


class Tone(enum.Enum):
    """Colour role of a text segment."""

    PLAIN = "plain"
    GREY = "grey"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    PROFESSION = "profession"


@dataclass(frozen=True)
class Segment:
    """A piece of text with its colour role; profession is set for profession colours."""

    text: str
    tone: Tone = Tone.PLAIN
    profession: int | None = None


def _trunc_divmod(value: int, divisor: int) -> tuple[int, int]:
    """Division truncating towards zero, remainder taking the dividend's sign."""
    sign = -1 if value < 0 else 1
    quotient, remainder = divmod(abs(value), divisor)
    return sign * quotient, sign * remainder


def format_time(time: int) -> str:
    """Formats a millisecond timestamp as seconds with three decimals."""
    seconds, _ = _trunc_divmod(time, 1000)
    return f"{seconds:>3}.{abs(time) % 1000:03}"


def _friendly_segment(agent: Agent) -> Segment:
    if agent.is_player():
        return Segment(agent.name, Tone.PROFESSION, agent.profession)
    return Segment(agent.name, Tone.GREEN)


def _enemy_segment(agent: Agent, fight_target: int | None) -> Segment:
    if agent.is_player():
        return Segment(agent.name, Tone.PROFESSION, agent.profession)
    if agent.matches_species(fight_target):
        return Segment(agent.name, Tone.RED)
    return Segment(agent.name, Tone.YELLOW)


def history_entries(history: History[Any]) -> list[Segment]:
    """Entries of the fight selection menu, the viewed fight in plain text."""
    if len(history) == 0:
        return [Segment("No history")]
    entries = []
    for index, fight in enumerate(history.all_fights()):
        name = fight.name or "Unknown"
        duration = fight.duration()
        text = f"{name} ({duration // 1000}s)" if duration is not None else f"{name} (?s)"
        tone = Tone.PLAIN if index == history.viewed else Tone.GREY
        entries.append(Segment(text, tone))
    return entries


def _flag(mapping: Mapping[str, Any], key: str, default: bool) -> bool:
    value = mapping.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean, got {value!r}")
    return value


def _settings_mapping(mapping: Any) -> Mapping[str, Any]:
    if not isinstance(mapping, Mapping):
        raise ValueError(f"settings must be a mapping, got {mapping!r}")
    return mapping


class HitDisplay(enum.Enum):
    """Which hit counts a cast log shows."""

    BOTH = "Both"
    TARGET = "Target"
    CLEAVE = "Cleave"
    NONE = "None"

    @classmethod
    def from_index(cls, value: int) -> HitDisplay:
        """Member at the given position, falling back to BOTH."""
        members = list(cls)
        return members[value] if 0 <= value < len(members) else cls.BOTH


_STATE_TONES = {
    CastState.CANCEL: Tone.YELLOW,
    CastState.FIRE: Tone.GREEN,
    CastState.INTERRUPT: Tone.RED,
}

_HIT_TONES = {
    SkillHitCount.MISS: Tone.RED,
    SkillHitCount.EXPECTED: Tone.YELLOW,
    SkillHitCount.MAX: Tone.GREEN,
    SkillHitCount.OVER_MAX: Tone.BLUE,
}


@dataclass
class CastLog:
    """Log of own casts with hit counts and durations."""

    SETTINGS_ID = "cast_log"

    display_time: bool = True
    display_duration: bool = True
    display_hits: HitDisplay = HitDisplay.BOTH
    only_misses: bool = False

    def format_hits(self, hits: int, info: SkillHits) -> Segment:
        """Hit count coloured by how it compares with the expectation."""
        tone = _HIT_TONES[info.categorize(hits)]
        text = f"{hits}/{info.max}" if info.has_hits() else f"{hits}/X"
        return Segment(text, tone)

    def render(
        self, history: History[CombatData], skills: SkillMap, data: SkillData
    ) -> list[Line]:
        """Lines for the casts of the viewed fight."""
        fight = history.viewed_fight()
        if fight is None:
            return []
        lines: list[Line] = []
        for cast in fight.data.casts:
            info = data.get(cast.skill)
            if info is None:
                continue
            if (
                self.only_misses
                and info.hits is not None
                and not info.hits.missed(len(cast.hits))
            ):
                continue

            line: list[Segment] = []
            if self.display_time:
                line.append(Segment(format_time(cast.time), Tone.GREY))
            line.append(Segment(skills.get_name(cast.skill)))

            if info.hits is not None:
                if self.display_hits in (HitDisplay.TARGET, HitDisplay.BOTH):
                    target_hits = (
                        sum(1 for hit in cast.hits if hit.target == fight.target)
                        if fight.target is not None
                        else 0
                    )
                    line.append(self.format_hits(target_hits, info.hits))
                cleave = self.format_hits(len(cast.hits), info.hits)
                if self.display_hits is HitDisplay.CLEAVE:
                    line.append(cleave)
                elif self.display_hits is HitDisplay.BOTH:
                    line.append(Segment(f"({cleave.text})", cleave.tone))

            if self.display_duration:
                tone = _STATE_TONES.get(cast.state)
                if tone is None:
                    line.append(Segment("?ms"))
                else:
                    line.append(Segment(f"{cast.duration}ms", tone))
            lines.append(tuple(line))
        return lines

    def to_settings(self) -> dict[str, Any]:
        return {
            "display_time": self.display_time,
            "display_duration": self.display_duration,
            "display_hits": self.display_hits.value,
            "only_misses": self.only_misses,
        }

    def load_settings(self, mapping: Mapping[str, Any]) -> None:
        """Applies stored settings; missing keys take defaults, invalid ones raise ValueError."""
        mapping = _settings_mapping(mapping)
        defaults = CastLog()
        display_time = _flag(mapping, "display_time", defaults.display_time)
        display_duration = _flag(mapping, "display_duration", defaults.display_duration)
        only_misses = _flag(mapping, "only_misses", defaults.only_misses)
        display_hits = HitDisplay(mapping.get("display_hits", defaults.display_hits.value))
        self.display_time = display_time
        self.display_duration = display_duration
        self.display_hits = display_hits
        self.only_misses = only_misses


@dataclass
class BuffLog:
    """Log of buffs applied to others."""

    SETTINGS_ID = "buff_log"

    display_time: bool = True
    display_duration: bool = True
    target_filter: AgentFilter = field(default=AgentFilter.ALL)

    def render(self, history: History[CombatData]) -> list[Line]:
        """Lines for the buff applies of the viewed fight."""
        fight = history.viewed_fight()
        if fight is None:
            return []
        lines: list[Line] = []
        for apply in fight.data.buffs:
            if not self.target_filter.matches(apply.target):
                continue
            line: list[Segment] = []
            if self.display_time:
                line.append(Segment(format_time(apply.time), Tone.GREY))
            line.append(Segment(apply.buff.label))
            if self.display_duration:
                seconds, millis = _trunc_divmod(apply.duration, 1000)
                line.append(Segment(f"{seconds}.{millis}s", Tone.YELLOW))
            line.append(_friendly_segment(apply.target))
            lines.append(tuple(line))
        return lines

    def to_settings(self) -> dict[str, Any]:
        return {
            "display_time": self.display_time,
            "display_duration": self.display_duration,
            "target_filter": self.target_filter.value,
        }

    def load_settings(self, mapping: Mapping[str, Any]) -> None:
        """Applies stored settings; missing keys take defaults, invalid ones raise ValueError."""
        mapping = _settings_mapping(mapping)
        defaults = BuffLog()
        display_time = _flag(mapping, "display_time", defaults.display_time)
        display_duration = _flag(mapping, "display_duration", defaults.display_duration)
        target_filter = AgentFilter(mapping.get("target_filter", defaults.target_filter.value))
        self.display_time = display_time
        self.display_duration = display_duration
        self.target_filter = target_filter