"""Combat events, agents and the per-fight combat records."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from gwbuddy.data import Buff
from gwbuddy.transfer import TransferTracker

__all__ = [
    "AgentKind",
    "EvtcAgent",
    "StateChange",
    "CombatResult",
    "AnimationProgress",
    "BuffRemove",
    "Event",
    "Agent",
    "AgentFilter",
    "Player",
    "BreakbarHit",
    "BuffApply",
    "CastState",
    "Hit",
    "Cast",
    "CombatData",
    "process_name",
    "name_of",
]

_U32_MAX = 0xFFFFFFFF
_U16_MAX = 0xFFFF


@dataclass(frozen=True)
class AgentKind:
    """Kind of agent: a player (no species), an NPC or a gadget with a species id."""

    species: int | None = None
    gadget: bool = False

    def __post_init__(self) -> None:
        if self.gadget and self.species is None:
            raise ValueError("a gadget needs a species id")

    @property
    def is_player(self) -> bool:
        return self.species is None

    @classmethod
    def _from_raw(cls, prof: int, elite: int) -> AgentKind:
        if elite == _U32_MAX:
            species = prof & _U16_MAX
            return cls(species, gadget=(prof >> 16) & _U16_MAX == _U16_MAX)
        return cls()


@dataclass
class EvtcAgent:
    """Agent as reported by the combat log."""

    id: int
    prof: int = 0
    elite: int = 0
    name: str | None = None
    is_self: bool = False

    def kind(self) -> AgentKind:
        return AgentKind._from_raw(self.prof, self.elite)


class StateChange(enum.Enum):
    """Category of a combat event."""

    COMBAT = enum.auto()
    ANIMATION_START = enum.auto()
    ANIMATION_STOP = enum.auto()
    BUFF_APPLY = enum.auto()
    BUFF_REMOVE_ALL = enum.auto()
    BUFF_REMOVE_SINGLE = enum.auto()
    SQUAD_COMBAT_START = enum.auto()
    SQUAD_COMBAT_END = enum.auto()
    LOG_NPC_UPDATE = enum.auto()
    UNKNOWN = enum.auto()


class CombatResult(enum.Enum):
    """Result of a strike."""

    STRIKE_DAMAGE = enum.auto()
    STRIKE_DAMAGE_CRIT = enum.auto()
    STRIKE_DAMAGE_GLANCE = enum.auto()
    BLOCK = enum.auto()
    EVADE = enum.auto()
    INTERRUPT = enum.auto()
    ABSORB = enum.auto()
    BLIND = enum.auto()
    KILLING_BLOW = enum.auto()
    DOWNED = enum.auto()
    BREAKBAR_DAMAGE = enum.auto()
    UNKNOWN = enum.auto()


class AnimationProgress(enum.Enum):
    """How an animation ended."""

    NONE = enum.auto()
    RESET = enum.auto()
    MINIMUM = enum.auto()
    CANCEL = enum.auto()
    UNKNOWN = enum.auto()


class BuffRemove(enum.Enum):
    """Kind of buff removal."""

    NONE = enum.auto()
    ALL = enum.auto()
    SINGLE = enum.auto()
    MANUAL = enum.auto()
    UNKNOWN = enum.auto()


@dataclass
class Event:
    """A combat event."""

    time: int = 0
    src_agent: int = 0
    dst_agent: int = 0
    value: int = 0
    skill_id: int = 0
    src_master_instance_id: int = 0
    is_offcycle: bool = False
    statechange: StateChange = StateChange.COMBAT
    result: CombatResult = CombatResult.UNKNOWN
    buff_remove: BuffRemove = BuffRemove.NONE
    animation: AnimationProgress = AnimationProgress.NONE


def process_name(agent_id: int, kind: AgentKind, name: str | None) -> str:
    """Agent name, falling back to a generated one when empty."""
    if name:
        return name
    if kind.is_player:
        return f"Player:{agent_id}"
    if kind.gadget:
        return f"Gadget:{kind.species}"
    return f"NPC:{kind.species}"


def name_of(agent: EvtcAgent) -> str:
    return process_name(agent.id, agent.kind(), agent.name)


@dataclass(eq=False)
class Agent:
    """Agent information kept in combat records."""

    kind: AgentKind
    profession: int
    name: str

    @classmethod
    def from_evtc(cls, agent: EvtcAgent) -> Agent:
        return cls(agent.kind(), agent.prof, name_of(agent))

    @classmethod
    def from_player(cls, player: Player) -> Agent:
        return cls(AgentKind(), player.prof, player.name)

    def matches_species(self, species: int | None) -> bool:
        return (
            species is not None
            and not self.kind.is_player
            and self.kind.species == species
        )

    def is_player(self) -> bool:
        return self.kind.is_player

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Agent):
            return NotImplemented
        if self.kind.is_player and other.kind.is_player:
            return self.name == other.name
        return self.kind == other.kind and not self.kind.is_player

    def __hash__(self) -> int:
        if self.kind.is_player:
            return hash((None, self.name))
        return hash(self.kind)


class AgentFilter(enum.Enum):
    """Filter for agents shown in logs."""

    ALL = "All"
    PLAYERS = "Players"
    NPCS = "NPCs"

    def matches(self, agent: Agent) -> bool:
        if self is AgentFilter.PLAYERS:
            return agent.is_player()
        if self is AgentFilter.NPCS:
            return not agent.is_player()
        return True


@dataclass
class Player:
    """A player in the squad."""

    id: int
    instance_id: int
    prof: int
    name: str

    @classmethod
    def from_tracking_change(cls, src: EvtcAgent, dst: EvtcAgent) -> Player:
        """Player from an agent tracking change event pair."""
        kind = AgentKind._from_raw(dst.prof, dst.elite)
        return cls(
            id=src.id,
            instance_id=dst.id & _U16_MAX,
            prof=dst.prof,
            name=process_name(src.id, kind, src.name),
        )


@dataclass
class BreakbarHit:
    """A defiance damage hit; damage is in tenths of defiance units."""

    time: int
    skill: int
    damage: int
    attacker: Agent
    is_own: bool
    target: Agent


@dataclass
class BuffApply:
    """A buff application to another agent."""

    time: int
    buff: Buff
    duration: int
    target: Agent


class CastState(enum.IntEnum):
    """State of a cast."""

    UNKNOWN = 0
    CASTING = 1
    PRE = 2
    FIRE = 3
    CANCEL = 4
    INTERRUPT = 5

    @classmethod
    def from_progress(cls, progress: AnimationProgress) -> CastState:
        return {
            AnimationProgress.RESET: cls.FIRE,
            AnimationProgress.MINIMUM: cls.CANCEL,
            AnimationProgress.CANCEL: cls.INTERRUPT,
        }.get(progress, cls.UNKNOWN)


@dataclass(frozen=True)
class Hit:
    """A single hit; the target species is 0 for players."""

    target: int

    @classmethod
    def from_agent(cls, target: EvtcAgent) -> Hit:
        kind = target.kind()
        return cls(0 if kind.species is None else kind.species)


@dataclass
class Cast:
    """A skill activation with its hits."""

    time: int
    skill: int
    state: CastState = CastState.UNKNOWN
    duration: int = 0
    hits: list[Hit] = field(default_factory=list)

    @classmethod
    def from_start(cls, time: int, skill: int, state: CastState) -> Cast:
        return cls(time, skill, state)

    @classmethod
    def from_end(cls, time: int, skill: int, state: CastState, duration: int) -> Cast:
        return cls(time, skill, state, duration)

    @classmethod
    def from_hit(cls, time: int, skill: int, target: EvtcAgent) -> Cast:
        return cls(time, skill, CastState.PRE, 0, [Hit.from_agent(target)])

    def hit(self, target: EvtcAgent) -> None:
        self.hits.append(Hit.from_agent(target))

    def complete(self, skill: int, result: CastState, duration: int, time: int) -> None:
        """Completes the cast; a cast known only from hits is moved to its real start."""
        if self.state is CastState.PRE:
            self.skill = skill
            self.time = time - duration
        self.state = result
        self.duration = duration


@dataclass
class CombatData:
    """Combat records of one fight."""

    casts: list[Cast] = field(default_factory=list)
    buffs: list[BuffApply] = field(default_factory=list)
    breakbar: list[BreakbarHit] = field(default_factory=list)
    transfers: TransferTracker = field(default_factory=TransferTracker)