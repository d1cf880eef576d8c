"""Main instance tying combat events, fight history, skill data and windows together."""

from __future__ import annotations

import json
import logging
from os import PathLike
from pathlib import Path
from typing import Any

from gwbuddy.combat import (
    Agent,
    BreakbarHit,
    BuffApply,
    BuffRemove,
    Cast,
    CastState,
    CombatData,
    CombatResult,
    Event,
    EvtcAgent,
    Player,
    StateChange,
)
from gwbuddy.data import Buff, Condition, DataLoadError, LoadError, SkillData, SkillDef
from gwbuddy.history import History, HistorySettings
from gwbuddy.panels import BreakbarLog, MultiView, TransferLog, Window
from gwbuddy.skills import SkillMap
from gwbuddy.transfer import Apply, Remove
from gwbuddy.views import BuffLog, CastLog

__all__ = ["Buddy"]

log = logging.getLogger(__name__)

_U32_MASK = 0xFFFFFFFF

#: Built-in skill definitions that custom data is layered on.
_DEFAULT_SKILLS: tuple[SkillDef, ...] = ()

_STRIKE_RESULTS = frozenset(
    {
        CombatResult.STRIKE_DAMAGE,
        CombatResult.STRIKE_DAMAGE_CRIT,
        CombatResult.STRIKE_DAMAGE_GLANCE,
    }
)

_LOAD_ERROR_TEXT = {
    LoadError.NOT_FOUND: "Not found",
    LoadError.FAILED_TO_READ: "Failed to read file",
    LoadError.INVALID: "Failed to parse",
}


def _buff_of(skill_id: int) -> Buff | None:
    try:
        return Buff(skill_id)
    except ValueError:
        return None


def _condition_of(skill_id: int) -> Condition | None:
    try:
        return Condition(skill_id)
    except ValueError:
        return None


def _name_of(agent: EvtcAgent | None) -> str | None:
    return None if agent is None else agent.name


class Buddy:
    """Tracks casts, buffs, breakbar hits and transfers of the own character."""

    VERSION = "0.7.1"
    SETTINGS_FILE = "arcdps_buddy.json"
    SKILLS_FILE = "arcdps_buddy_skills.yml"

    def __init__(self, config_dir: str | PathLike[str]) -> None:
        self.config_dir = Path(config_dir)
        self.skills = SkillMap()
        self.data = SkillData(_DEFAULT_SKILLS)
        self.data_state: int | LoadError = LoadError.NOT_FOUND

        self.self_instance_id: int | None = None
        self.players: list[Player] = []
        self.history: History[CombatData] = History(10, 5000, True, CombatData)

        self.multi_view = Window("Buddy Multi", MultiView())
        self.cast_log = Window("Buddy Casts", CastLog())
        self.buff_log = Window("Buddy Buffs", BuffLog())
        self.breakbar_log = Window("Buddy Breakbar", BreakbarLog())
        self.transfer_log = Window("Buddy Transfer", TransferLog())

    def __repr__(self) -> str:
        return (
            f"Buddy(config_dir={str(self.config_dir)!r}, players={len(self.players)}, "
            f"fights={len(self.history)})"
        )

    # events

    def event(
        self,
        event: Event | None,
        src: EvtcAgent | None,
        dst: EvtcAgent | None,
        skill_name: str | None,
    ) -> None:
        """Handles a raw combat callback, including agent tracking changes."""
        if src is None:
            return
        if event is not None:
            self.combat_event(event, src, dst, skill_name)
        elif dst is not None and src.elite == 0 and src.prof != 0:
            self.add_player(Player.from_tracking_change(src, dst), dst.is_self)

    def combat_event(
        self,
        event: Event,
        src: EvtcAgent,
        dst: EvtcAgent | None,
        skill_name: str | None,
    ) -> None:
        """Handles a combat event with a known source agent."""
        src_self = src.is_self
        change = event.statechange

        if change is StateChange.SQUAD_COMBAT_START:
            self._start_fight(event, dst)
        elif change is StateChange.LOG_NPC_UPDATE:
            self._fight_target(event, dst)
        elif change is StateChange.SQUAD_COMBAT_END:
            self._end_fight(event, dst)
        elif change in (StateChange.ANIMATION_START, StateChange.ANIMATION_STOP):
            if not src_self:
                return
            time = self.history.relative_time(event.time)
            if time is None or not self.data.contains(event.skill_id):
                return
            if change is StateChange.ANIMATION_START:
                self._cast_start(event, skill_name, time)
            else:
                self._cast_end(event, skill_name, time)
        elif change is StateChange.BUFF_APPLY:
            if dst is None:
                return
            buff = _buff_of(event.skill_id)
            if buff is not None:
                if not dst.is_self and dst.id != src.id:
                    self._apply_buff(event, buff, src, dst)
                return
            condi = _condition_of(event.skill_id)
            if condi is not None and src_self and not dst.is_self and not event.is_offcycle:
                self._apply_condi(event, condi, dst)
        elif change is StateChange.BUFF_REMOVE_SINGLE:
            if dst is None:
                return
            if event.buff_remove is BuffRemove.MANUAL and src_self and dst.is_self:
                condi = _condition_of(event.skill_id)
                if condi is not None:
                    self._remove_buff(event, condi)
        elif change is StateChange.COMBAT:
            time = self.history.relative_time(event.time)
            if dst is not None and time is not None:
                self._strike(event, skill_name, src, dst, time)

    def add_player(self, player: Player, is_self: bool) -> None:
        if is_self:
            self.self_instance_id = player.instance_id
            log.debug("Own instance id changed to %s", player.instance_id)
        self.players.append(player)

    def remove_player(self, player_id: int) -> None:
        index = next(
            (i for i, player in enumerate(self.players) if player.id == player_id), None
        )
        if index is None:
            return
        last = self.players.pop()
        if index < len(self.players):
            self.players[index] = last

    def _get_master(self, event: Event) -> Player | None:
        return next(
            (
                player
                for player in self.players
                if player.instance_id == event.src_master_instance_id
            ),
            None,
        )

    def _is_own_minion(self, event: Event) -> bool:
        return (
            self.self_instance_id is not None
            and event.src_master_instance_id == self.self_instance_id
        )

    def _start_fight(self, event: Event, target: EvtcAgent | None) -> None:
        species = event.src_agent & _U32_MASK
        log.debug("Fight start for %s, target %s", species, target and target.id)
        if not self.history.latest_fight_active():
            self.history.add_fight_with_target(event.time, species, _name_of(target))

    def _fight_target(self, event: Event, target: EvtcAgent | None) -> None:
        species = event.src_agent & _U32_MASK
        log.debug("Fight target changed to %s, target %s", species, target and target.id)
        self.history.update_fight_target(event.time, species, _name_of(target))

    def _end_fight(self, event: Event, target: EvtcAgent | None) -> None:
        log.debug("Fight end for %s, target %s", event.src_agent, target and target.id)
        self.history.end_latest_fight(event.time)

    def latest_cast(self, skill_id: int) -> Cast | None:
        """Most recent cast of the skill in the latest fight."""
        fight = self.history.latest_fight()
        if fight is None:
            return None
        return next(
            (cast for cast in reversed(fight.data.casts) if cast.skill == skill_id), None
        )

    def add_cast(self, cast: Cast) -> None:
        """Inserts a cast into the latest fight after the last cast not later than it."""
        fight = self.history.latest_fight()
        if fight is None:
            return
        casts = fight.data.casts
        offset = next(
            (
                position
                for position, other in enumerate(reversed(casts))
                if other.time <= cast.time
            ),
            0,
        )
        casts.insert(len(casts) - offset, cast)

    def _cast_start(self, event: Event, skill_name: str | None, time: int) -> None:
        skill_id = event.skill_id
        skill = self.skills.try_register(skill_id, skill_name)
        log.debug("Start cast %s", skill)
        self.add_cast(Cast.from_start(time, skill_id, CastState.CASTING))

    def _cast_end(self, event: Event, skill_name: str | None, time: int) -> None:
        state = CastState.from_progress(event.animation)
        duration = event.value
        skill_id = event.skill_id
        self.skills.try_register(skill_id, skill_name)
        cast = self.latest_cast(skill_id)
        if cast is not None:
            cast.complete(skill_id, state, duration, time)
        else:
            self.add_cast(Cast.from_end(time - duration, skill_id, state, duration))

    def _apply_buff(self, event: Event, buff: Buff, src: EvtcAgent, dst: EvtcAgent) -> None:
        if not (src.is_self or self._is_own_minion(event)):
            return
        found = self.history.fight_and_time(event.time)
        if found is not None:
            time, fight = found
            fight.data.buffs.append(
                BuffApply(time, buff, event.value, Agent.from_evtc(dst))
            )

    def _apply_condi(self, event: Event, condi: Condition, target: EvtcAgent) -> None:
        found = self.history.fight_and_time(event.time)
        if found is not None:
            time, fight = found
            fight.data.transfers.add_apply(
                Apply(time, condi, event.value, Agent.from_evtc(target))
            )

    def _remove_buff(self, event: Event, condi: Condition) -> None:
        found = self.history.fight_and_time(event.time)
        if found is not None:
            time, fight = found
            fight.data.transfers.add_remove(Remove(time, condi, event.value))

    def _strike(
        self,
        event: Event,
        skill_name: str | None,
        attacker: EvtcAgent,
        target: EvtcAgent,
        time: int,
    ) -> None:
        skill_id = event.skill_id
        self.skills.try_register(skill_id, skill_name)
        is_minion = self._is_own_minion(event)
        is_own = attacker.is_self or is_minion

        if event.result in _STRIKE_RESULTS:
            if is_own:
                self._damage_hit(is_minion, skill_id, target, time)
        elif event.result is CombatResult.BREAKBAR_DAMAGE:
            master = self._get_master(event)
            source = (
                Agent.from_player(master) if master is not None else Agent.from_evtc(attacker)
            )
            self._breakbar_hit(skill_id, source, is_own, target, event.value, time)

    def _damage_hit(self, is_minion: bool, skill: int, target: EvtcAgent, time: int) -> None:
        info = self.data.get(skill)
        if info is None or not (info.minion or not is_minion):
            return
        self.skills.try_duplicate(info.id, skill)
        cast = self.latest_cast(info.id)
        if cast is not None and time - cast.time <= info.max_duration:
            cast.hit(target)
        else:
            self.add_cast(Cast.from_hit(time, info.id, target))

    def _breakbar_hit(
        self,
        skill: int,
        attacker: Agent,
        is_own: bool,
        target: EvtcAgent,
        damage: int,
        time: int,
    ) -> None:
        fight = self.history.latest_fight()
        if fight is not None:
            fight.data.breakbar.append(
                BreakbarHit(time, skill, damage, attacker, is_own, Agent.from_evtc(target))
            )

    # persistence

    @property
    def settings_path(self) -> Path:
        return self.config_dir / self.SETTINGS_FILE

    @property
    def skills_path(self) -> Path:
        return self.config_dir / self.SKILLS_FILE

    def _read_settings(self) -> dict[str, Any]:
        try:
            text = self.settings_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as err:
            log.warning("Failed to read settings: %s", err)
            return {}
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as err:
            log.warning("Failed to parse settings: %s", err)
            return {}
        return parsed if isinstance(parsed, dict) else {}

    def _persisted_windows(self) -> tuple[Window[Any], ...]:
        return (self.multi_view, self.cast_log, self.buff_log, self.breakbar_log)

    def load(self) -> None:
        """Loads settings and custom skill data from the config directory."""
        log.info("v%s load", self.VERSION)
        settings = self._read_settings()
        log.info("Loaded settings from version %s", settings.get("version", "unknown"))

        if History.SETTINGS_ID in settings:
            try:
                self.history.settings = HistorySettings.from_dict(
                    settings[History.SETTINGS_ID]
                )
            except ValueError as err:
                log.warning("Ignoring invalid history settings: %s", err)
        for window in self._persisted_windows():
            if window.settings_id in settings:
                try:
                    window.load_settings(settings[window.settings_id])
                except ValueError as err:
                    log.warning("Ignoring invalid %s settings: %s", window.settings_id, err)

        self.load_data()

    def load_data(self) -> None:
        """Loads custom skill definitions if the file exists."""
        path = self.skills_path
        if not path.exists():
            return
        try:
            self.data_state = self.data.try_load(path)
        except DataLoadError as err:
            self.data_state = err.kind
            log.warning('Failed to load custom definitions from "%s"', path)
        else:
            log.info('Loaded custom definitions from "%s"', path)

    def reset_data(self) -> None:
        self.data = SkillData(_DEFAULT_SKILLS)
        self.data_state = LoadError.NOT_FOUND

    def unload(self) -> None:
        """Stores settings to the config directory."""
        settings = self._read_settings()
        settings["version"] = self.VERSION
        settings[History.SETTINGS_ID] = self.history.settings.to_dict()
        for window in self._persisted_windows():
            settings[window.settings_id] = window.to_settings()
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.settings_path.write_text(json.dumps(settings, indent=2), encoding="utf-8")

    # presentation

    def windows(self) -> tuple[Window[Any], ...]:
        """All windows: multi view, casts, buffs, breakbar and transfer."""
        return (
            self.multi_view,
            self.cast_log,
            self.buff_log,
            self.breakbar_log,
            self.transfer_log,
        )

    def settings_summary(self) -> dict[str, Any]:
        """Values shown in the settings panel."""
        state = self.data_state
        status = (
            _LOAD_ERROR_TEXT[state]
            if isinstance(state, LoadError)
            else f"Loaded {state} entries"
        )
        settings = self.history.settings
        return {
            "hotkeys": {
                "Multi": self.multi_view.hotkey,
                "Casts": self.cast_log.hotkey,
                "Buffs": self.buff_log.hotkey,
                "Breakbar": self.breakbar_log.hotkey,
                "Transfer": self.transfer_log.hotkey,
            },
            "max_fights": settings.max_fights,
            "min_duration": settings.min_duration,
            "discard_at_end": settings.discard_at_end,
            "data_status": status,
            "overrides": SkillMap.overrides(),
            "cached": self.skills.cached,
        }