"""Breakbar and transfer log views, the tabbed multi view and window state."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

from gwbuddy.combat import Agent, CombatData
from gwbuddy.data import SkillData
from gwbuddy.history import History
from gwbuddy.skills import SkillMap
from gwbuddy.views import BuffLog, CastLog, Segment, Tone, format_time

__all__ = ["AutoScroll", "BreakbarLog", "TransferLog", "MultiView", "Window"]

Line = tuple[Segment, ...]


def _settings_mapping(mapping: Any) -> Mapping[str, Any]:
    if not isinstance(mapping, Mapping):
        raise ValueError(f"settings must be a mapping, got {mapping!r}")
    return mapping


def _flag(mapping: Mapping[str, Any], key: str, default: bool) -> bool:
    value = mapping.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean, got {value!r}")
    return value


def _trunc_divmod(value: int, divisor: int) -> tuple[int, int]:
    sign = -1 if value < 0 else 1
    quotient, remainder = divmod(abs(value), divisor)
    return sign * quotient, sign * remainder


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


@dataclass
class AutoScroll:
    """Keeps a log scrolled to the bottom while the user has not scrolled up."""

    last_scroll_max: float = 0.0

    def update(self, scroll: float, scroll_max: float) -> bool:
        """Records the new scroll limit; returns whether to scroll to the bottom."""
        stick = scroll == self.last_scroll_max
        self.last_scroll_max = scroll_max
        return stick


@dataclass
class BreakbarLog:
    """Log of defiance damage hits."""

    SETTINGS_ID = "breakbar_log"

    display_time: bool = True
    display_others: bool = False
    scroll: AutoScroll = field(default_factory=AutoScroll, compare=False, repr=False)

    def render(self, history: History[CombatData], skills: SkillMap) -> list[Line]:
        """Lines for the breakbar hits of the viewed fight."""
        fight = history.viewed_fight()
        if fight is None:
            return []
        lines: list[Line] = []
        for hit in fight.data.breakbar:
            if not (hit.is_own or self.display_others):
                continue
            line: list[Segment] = []
            if self.display_time:
                line.append(Segment(format_time(hit.time), Tone.GREY))
            whole, tenths = _trunc_divmod(hit.damage, 10)
            line.append(Segment(f"{whole}.{tenths}", Tone.BLUE))
            line.append(Segment(skills.get_name(hit.skill)))
            if self.display_others:
                line.append(_friendly_segment(hit.attacker))
            line.append(_enemy_segment(hit.target, fight.target))
            lines.append(tuple(line))
        return lines

    def to_settings(self) -> dict[str, Any]:
        return {"display_time": self.display_time, "display_others": self.display_others}

    def load_settings(self, mapping: Mapping[str, Any]) -> None:
        """Applies stored settings; missing keys take defaults, invalid ones raise ValueError."""
        mapping = _settings_mapping(mapping)
        display_time = _flag(mapping, "display_time", True)
        display_others = _flag(mapping, "display_others", False)
        self.display_time = display_time
        self.display_others = display_others


@dataclass
class TransferLog:
    """Log of detected condition transfers."""

    SETTINGS_ID = "transfer_log"

    display_time: bool = True
    scroll: AutoScroll = field(default_factory=AutoScroll, compare=False, repr=False)

    def render(self, history: History[CombatData]) -> list[Line]:
        """Lines for the transfers of the viewed fight."""
        fight = history.viewed_fight()
        if fight is None:
            return []
        lines: list[Line] = []
        for transfer in fight.data.transfers.found():
            line: list[Segment] = []
            if self.display_time:
                line.append(Segment(format_time(transfer.time), Tone.GREY))
            line.append(Segment(str(transfer.stacks)))
            line.append(Segment(transfer.condi.label))
            line.append(_enemy_segment(transfer.target, fight.target))
            lines.append(tuple(line))
        return lines

    def to_settings(self) -> dict[str, Any]:
        return {"display_time": self.display_time}

    def load_settings(self, mapping: Mapping[str, Any]) -> None:
        """Applies stored settings; missing keys take defaults, invalid ones raise ValueError."""
        mapping = _settings_mapping(mapping)
        self.display_time = _flag(mapping, "display_time", True)


@dataclass
class MultiView:
    """All logs combined as tabs."""

    SETTINGS_ID = "multi_view"

    casts: CastLog = field(default_factory=CastLog)
    buffs: BuffLog = field(default_factory=BuffLog)
    breakbars: BreakbarLog = field(default_factory=BreakbarLog)
    transfers: TransferLog = field(default_factory=TransferLog)

    def render(
        self, history: History[CombatData], skills: SkillMap, data: SkillData
    ) -> dict[str, list[Line]]:
        """Lines of every tab, keyed by tab name."""
        return {
            "Casts": self.casts.render(history, skills, data),
            "Buffs": self.buffs.render(history),
            "Breakbar": self.breakbars.render(history, skills),
            "Transfer": self.transfers.render(history),
        }

    def to_settings(self) -> dict[str, Any]:
        return {
            "casts": self.casts.to_settings(),
            "buffs": self.buffs.to_settings(),
            "breakbars": self.breakbars.to_settings(),
            "transfers": self.transfers.to_settings(),
        }

    def load_settings(self, mapping: Mapping[str, Any]) -> None:
        """Applies stored settings; a missing section resets that log to defaults."""
        mapping = _settings_mapping(mapping)
        casts, buffs = CastLog(), BuffLog()
        breakbars, transfers = BreakbarLog(), TransferLog()
        casts.load_settings(mapping.get("casts", {}))
        buffs.load_settings(mapping.get("buffs", {}))
        breakbars.load_settings(mapping.get("breakbars", {}))
        transfers.load_settings(mapping.get("transfers", {}))
        self.casts.load_settings(casts.to_settings())
        self.buffs.load_settings(buffs.to_settings())
        self.breakbars.load_settings(breakbars.to_settings())
        self.transfers.load_settings(transfers.to_settings())


class _Settable(Protocol):
    SETTINGS_ID: str

    def to_settings(self) -> dict[str, Any]: ...

    def load_settings(self, mapping: Mapping[str, Any]) -> None: ...


C = TypeVar("C", bound=_Settable)


def _dimension(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValueError(f"{name} must be a non-negative number, got {value!r}")
    return float(value)


@dataclass
class Window(Generic[C]):
    """A named window holding a component, with visibility and a toggle hotkey."""

    name: str
    content: C
    visible: bool = False
    hotkey: int | None = None
    width: float = 350.0
    height: float = 450.0

    @property
    def settings_id(self) -> str:
        return self.content.SETTINGS_ID

    def toggle_visibility(self) -> None:
        self.visible = not self.visible

    def key_press(self, key: int) -> bool:
        """Toggles visibility if the key is the hotkey; returns whether it was handled."""
        if self.hotkey is not None and key == self.hotkey:
            self.toggle_visibility()
            return True
        return False

    def to_settings(self) -> dict[str, Any]:
        return {
            "visible": self.visible,
            "hotkey": self.hotkey,
            "width": self.width,
            "height": self.height,
            "settings": self.content.to_settings(),
        }

    def load_settings(self, mapping: Mapping[str, Any]) -> None:
        """Applies stored settings; missing keys keep current values, invalid ones raise ValueError."""
        mapping = _settings_mapping(mapping)
        visible = _flag(mapping, "visible", self.visible)
        hotkey = mapping.get("hotkey", self.hotkey)
        if hotkey is not None and (isinstance(hotkey, bool) or not isinstance(hotkey, int)):
            raise ValueError(f"hotkey must be an integer or null, got {hotkey!r}")
        width = _dimension(mapping.get("width", self.width), "width")
        height = _dimension(mapping.get("height", self.height), "height")
        if "settings" in mapping:
            self.content.load_settings(mapping["settings"])
        self.visible = visible
        self.hotkey = hotkey
        self.width = width
        self.height = height