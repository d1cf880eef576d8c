"""In-memory cache of skill names."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from gwbuddy.data import SKILL_OVERRIDES

__all__ = ["Skill", "SkillMap"]


@dataclass
class Skill:
    """Cached skill information."""

    is_placeholder: bool
    name: str

    @classmethod
    def _from_combat(cls, skill_id: int, skill_name: str | None) -> Skill:
        return cls._named(skill_name) if skill_name else cls._unnamed(skill_id)

    @classmethod
    def _named(cls, name: str) -> Skill:
        return cls(is_placeholder=False, name=name)

    @classmethod
    def _unnamed(cls, skill_id: int) -> Skill:
        return cls(is_placeholder=True, name=str(skill_id))

    @classmethod
    def _placeholder(cls, name: str) -> Skill:
        return cls(is_placeholder=True, name=name)


class SkillMap:
    """Skill names keyed by skill id, with placeholders for unknown skills."""

    def __init__(self) -> None:
        self._skills = self._override_entries()
        self._cached = 0

    def __repr__(self) -> str:
        return f"SkillMap(entries={len(self._skills)}, cached={self._cached})"

    @staticmethod
    def _override_entries() -> dict[int, Skill]:
        return {skill_id: Skill._named(name) for skill_id, name in SKILL_OVERRIDES}

    @classmethod
    def overrides(cls) -> int:
        """Number of skill name overrides."""
        return len(SKILL_OVERRIDES)

    @property
    def cached(self) -> int:
        """Number of cached non-placeholder entries."""
        return self._cached

    def reset(self) -> None:
        self._skills = self._override_entries()
        self._cached = 0

    def get(self, skill_id: int) -> Skill:
        """Skill for the id, inserting a placeholder if absent."""
        return self._skills.setdefault(skill_id, Skill._unnamed(skill_id))

    def get_name(self, skill_id: int) -> str:
        return self.get(skill_id).name

    def _try_replace_with(self, skill_id: int, create: Callable[[], Skill]) -> Skill:
        existing = self._skills.get(skill_id)
        if existing is not None:
            if existing.is_placeholder:
                existing = create()
                self._skills[skill_id] = existing
            return existing
        skill = create()
        if not skill.is_placeholder:
            self._cached += 1
        self._skills[skill_id] = skill
        return skill

    def try_register(self, skill_id: int, skill_name: str | None) -> Skill:
        """Registers a skill name, replacing placeholders."""
        return self._try_replace_with(
            skill_id, lambda: Skill._from_combat(skill_id, skill_name)
        )

    def try_duplicate(self, skill_id: int, source_id: int) -> None:
        """Gives a skill the known name of another as placeholder."""
        if skill_id == source_id:
            return
        source = self._skills.get(source_id)
        if source is not None and not source.is_placeholder:
            name = source.name
            self._try_replace_with(skill_id, lambda: Skill._placeholder(name))