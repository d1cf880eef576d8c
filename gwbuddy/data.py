"""Skill definitions, buff and condition identifiers and skill lookup data."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from os import PathLike
from typing import Any

import yaml

__all__ = [
    "SKILL_OVERRIDES",
    "DURATION_EPSILON",
    "UNBOUNDED_DURATION",
    "Buff",
    "Condition",
    "SkillDef",
    "SkillInfo",
    "SkillHits",
    "SkillHitCount",
    "LoadError",
    "DataLoadError",
    "SkillData",
    "parse_skill_defs",
]

#: Skill name overrides as ``(skill id, name)`` pairs.
SKILL_OVERRIDES: tuple[tuple[int, str], ...] = (
    (12815, "Lightning Leap Combo"),
    (22492, "Basilisk Venom"),
    (31749, "Blood Moon"),
    (32410, "Hunter's Verdict"),
)

#: Extra error margin (ms) added to a definition's maximum duration.
DURATION_EPSILON = 500

#: Maximum duration used when a definition gives none.
UNBOUNDED_DURATION = 2**31 - 1

_U32_MAX = 2**32 - 1
_USIZE_MAX = 2**64 - 1
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


class Buff(enum.IntEnum):
    """Tracked boon or buff applied to others."""

    QUICKNESS = 1187
    ALACRITY = 30328
    ARCANE_POWER = 5582
    SPIDER_VENOM = 13036
    SKALE_VENOM = 13054
    DEVOURER_VENOM = 13094
    BASILISK_VENOM = 13133
    SOUL_STONE_VENOM = 49038
    RITE_OF_THE_GREAT_DWARF = 26596
    ASHES_OF_THE_JUST = 41957
    BEAR_STANCE = 40045
    DOLYAK_STANCE = 41815
    VULTURE_STANCE = 44651
    MOA_STANCE = 45038
    GRIFFON_STANCE = 46280
    ONE_WOLF_PACK = 44139

    @classmethod
    def _missing_(cls, value: object) -> Buff | None:
        target = _BUFF_ALTERNATIVES.get(value) if isinstance(value, int) else None
        return cls(target) if target is not None else None

    @property
    def label(self) -> str:
        """Short display name."""
        return _BUFF_LABELS[self]


_BUFF_ALTERNATIVES: dict[int, int] = {33330: Buff.RITE_OF_THE_GREAT_DWARF.value}

_BUFF_LABELS: dict[Buff, str] = {
    Buff.QUICKNESS: "Quick",
    Buff.ALACRITY: "Alac",
    Buff.ARCANE_POWER: "Arc Power",
    Buff.SPIDER_VENOM: "Spider",
    Buff.SKALE_VENOM: "Skale",
    Buff.DEVOURER_VENOM: "Devourer",
    Buff.BASILISK_VENOM: "Basi",
    Buff.SOUL_STONE_VENOM: "Soul Stone",
    Buff.RITE_OF_THE_GREAT_DWARF: "Dwarf",
    Buff.ASHES_OF_THE_JUST: "AoJ",
    Buff.BEAR_STANCE: "Bear",
    Buff.DOLYAK_STANCE: "Dolyak",
    Buff.VULTURE_STANCE: "Vulture",
    Buff.MOA_STANCE: "Moa",
    Buff.GRIFFON_STANCE: "Griffon",
    Buff.ONE_WOLF_PACK: "OWP",
}


class Condition(enum.IntEnum):
    """Condition that may be transferred."""

    BLIND = 720
    CRIPPLED = 721
    CHILLED = 722
    POISON = 723
    IMMOBILE = 727
    BLEEDING = 736
    BURNING = 737
    VULNERABILITY = 738
    WEAKNESS = 742
    FEAR = 791
    CONFUSION = 861
    TORMENT = 19426
    SLOW = 26766
    TAUNT = 27705

    @property
    def label(self) -> str:
        """Display name."""
        return self.name.capitalize()


def _integer(value: Any, name: str, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise ValueError(f"{name} out of range: {value}")
    return value


def _optional_integer(value: Any, name: str, low: int, high: int) -> int | None:
    return None if value is None else _integer(value, name, low, high)


def _boolean(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be a boolean, got {value!r}")
    return value


@dataclass
class SkillDef:
    """Skill definition as read from a data file."""

    id: int
    enabled: bool = True
    hit_ids: list[int] = field(default_factory=list)
    hits: int | None = None
    expected: int | None = None
    max_duration: int | None = None
    minion: bool = False

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> SkillDef:
        """Builds a definition from a parsed mapping, raising ValueError if invalid."""
        if not isinstance(mapping, Mapping):
            raise ValueError(f"skill definition must be a mapping, got {mapping!r}")
        if "id" not in mapping:
            raise ValueError("skill definition is missing 'id'")
        hit_ids = mapping.get("hit_ids", [])
        if not isinstance(hit_ids, list):
            raise ValueError("hit_ids must be a list")
        return cls(
            id=_integer(mapping["id"], "id", 0, _U32_MAX),
            enabled=_boolean(mapping.get("enabled", True), "enabled"),
            hit_ids=[_integer(hit, "hit_ids", 0, _U32_MAX) for hit in hit_ids],
            hits=_optional_integer(mapping.get("hits"), "hits", 0, _USIZE_MAX),
            expected=_optional_integer(mapping.get("expected"), "expected", 0, _USIZE_MAX),
            max_duration=_optional_integer(
                mapping.get("max_duration"), "max_duration", _I32_MIN, _I32_MAX
            ),
            minion=_boolean(mapping.get("minion", False), "minion"),
        )


class SkillHitCount(enum.Enum):
    """Category of a cast's hit count."""

    MISS = enum.auto()
    EXPECTED = enum.auto()
    MAX = enum.auto()
    OVER_MAX = enum.auto()


@dataclass(frozen=True)
class SkillHits:
    """Hit expectations of a skill."""

    max: int
    expected: int

    def has_hits(self) -> bool:
        return self.max > 0

    def missed(self, hits: int) -> bool:
        """Whether the given hit count counts as a miss."""
        if self.has_hits():
            return hits < self.expected
        return hits == 0

    def categorize(self, hits: int) -> SkillHitCount:
        if self.has_hits():
            if hits > self.max:
                return SkillHitCount.OVER_MAX
            if hits == self.max:
                return SkillHitCount.MAX
            if hits >= self.expected:
                return SkillHitCount.EXPECTED
            return SkillHitCount.MISS
        return SkillHitCount.EXPECTED if hits > 0 else SkillHitCount.MISS


@dataclass(frozen=True)
class SkillInfo:
    """Processed skill information."""

    id: int
    hits: SkillHits | None
    max_duration: int
    minion: bool

    @classmethod
    def from_def(cls, definition: SkillDef) -> SkillInfo:
        hits = None
        if definition.hits is not None:
            maximum = definition.hits
            expected = (
                definition.expected
                if definition.expected is not None
                else math.ceil(maximum / 2)
            )
            hits = SkillHits(max=maximum, expected=expected)
        max_duration = (
            definition.max_duration + DURATION_EPSILON
            if definition.max_duration is not None
            else UNBOUNDED_DURATION
        )
        return cls(
            id=definition.id,
            hits=hits,
            max_duration=max_duration,
            minion=definition.minion,
        )


class LoadError(enum.Enum):
    """Reason why loading custom skill data failed."""

    NOT_FOUND = "not_found"
    FAILED_TO_READ = "failed_to_read"
    INVALID = "invalid"


class DataLoadError(Exception):
    """Raised when skill data cannot be loaded."""

    def __init__(self, kind: LoadError, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind


def parse_skill_defs(text: str) -> list[SkillDef]:
    """Parses a YAML (or JSON) list of skill definitions."""
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise DataLoadError(LoadError.INVALID, str(err)) from err
    if not isinstance(parsed, list):
        raise DataLoadError(LoadError.INVALID, "expected a list of skill definitions")
    try:
        return [SkillDef.from_mapping(entry) for entry in parsed]
    except ValueError as err:
        raise DataLoadError(LoadError.INVALID, str(err)) from err


class SkillData:
    """Lookup of skill information by primary or hit skill id.

    The definitions given at construction serve as the base that
    custom definitions loaded later are layered on.
    """

    def __init__(self, skills: Iterable[SkillDef]) -> None:
        self._base: tuple[SkillDef, ...] = tuple(skills)
        self._build(self._base)

    def _build(self, skills: Iterable[SkillDef]) -> None:
        lookup: dict[int, int] = {}
        infos: list[SkillInfo] = []
        for skill in skills:
            if skill.enabled:
                index = len(infos)
                lookup[skill.id] = index
                for hit_id in skill.hit_ids:
                    lookup[hit_id] = index
                infos.append(SkillInfo.from_def(skill))
            elif (index := lookup.pop(skill.id, None)) is not None:
                if infos[index].id == skill.id:
                    lookup = {key: value for key, value in lookup.items() if value != index}
        self._lookup = lookup
        self._infos = infos

    def contains(self, skill_id: int) -> bool:
        return skill_id in self._lookup

    def get(self, skill_id: int) -> SkillInfo | None:
        index = self._lookup.get(skill_id)
        return None if index is None else self._infos[index]

    def try_load(self, path: str | PathLike[str]) -> int:
        """Loads custom definitions on top of the base ones.

        Returns the number of definitions read; raises DataLoadError on failure,
        leaving the current data untouched.
        """
        try:
            with open(path, encoding="utf-8") as file:
                text = file.read()
        except FileNotFoundError as err:
            raise DataLoadError(LoadError.NOT_FOUND, str(err)) from err
        except UnicodeDecodeError as err:
            raise DataLoadError(LoadError.INVALID, str(err)) from err
        except OSError as err:
            raise DataLoadError(LoadError.FAILED_TO_READ, str(err)) from err
        loaded = parse_skill_defs(text)
        self._build((*self._base, *loaded))
        return len(loaded)