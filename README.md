# gwbuddy

A library that evaluates combat events as they arrive and keeps a short
history of fights. For every fight it records:

- **casts** of skills that have a skill definition, with their animation
  duration, how they ended (fire, cancel, interrupt) and how many targets each
  cast hit compared with the expected number of hits;
- **buff applies** of tracked boons, venoms and stances (`gwbuddy.data.Buff`)
  from you or your minions to other agents;
- **breakbar (defiance) damage** from you and from other players;
- **condition transfers**, found by matching a condition removed from you with
  the same condition, of about the same duration, applied to another agent
  within 10 ms (`gwbuddy.transfer.TransferTracker`).

## Installation

```
pip install gwbuddy
```

## Usage

The central object is `gwbuddy.buddy.Buddy`. Feed it events with
`Buddy.combat_event` (or `Buddy.event`, which also turns agent tracking
changes into players) and register squad members with `Buddy.add_player` /
`Buddy.remove_player`. Events and agents are described with
`gwbuddy.combat.Event` and `gwbuddy.combat.EvtcAgent`.

```python
from pathlib import Path

from gwbuddy.buddy import Buddy
from gwbuddy.combat import Event, EvtcAgent, StateChange
from gwbuddy.data import Buff

buddy = Buddy(Path.home() / ".config" / "gwbuddy")
buddy.load()

me = EvtcAgent(id=1, name="Me", is_self=True)
boss = EvtcAgent(id=2, prof=12345, elite=0xFFFFFFFF, name="Boss")
ally = EvtcAgent(id=3, prof=1, name="Ally")

# a fight starts against species 12345
buddy.combat_event(
    Event(time=1000, src_agent=12345, statechange=StateChange.SQUAD_COMBAT_START),
    me, boss, None,
)
# we give quickness to an ally
buddy.combat_event(
    Event(time=1500, skill_id=Buff.QUICKNESS, value=2000, statechange=StateChange.BUFF_APPLY),
    me, ally, None,
)

for line in buddy.buff_log.content.render(buddy.history):
    print(" ".join(segment.text for segment in line))   # "  0.500 Quick 2.0s Ally"

buddy.unload()
```

### Views

Each log view (`gwbuddy.views.CastLog`, `gwbuddy.views.BuffLog`,
`gwbuddy.panels.BreakbarLog`, `gwbuddy.panels.TransferLog`) renders the
currently viewed fight of a `gwbuddy.history.History` into lines, each a
tuple of `gwbuddy.views.Segment`s: a text with a colour role
(`gwbuddy.views.Tone`) and, for player names, the profession. The combined
`gwbuddy.panels.MultiView.render` returns the lines of all four logs keyed
by tab name. `gwbuddy.views.history_entries` lists the stored fights for a
selection menu; `History.select` changes the viewed fight.

`Buddy.windows()` returns the five `gwbuddy.panels.Window`s (multi view,
casts, buffs, breakbar, transfer). A window holds its view, its visibility,
size and an optional hotkey; `Window.key_press(key)` toggles the window when
the key is its hotkey.

### Skill definitions

Casts are only recorded for skills that have a definition. The package ships
no built-in definitions: put a YAML (or JSON) list named
`arcdps_buddy_skills.yml` in the configuration directory.

```yaml
- id: 12345
  hits: 5          # total hits of one cast
  expected: 3      # minimum hits before it counts as a miss (default: half of hits, rounded up)
  max_duration: 2000   # ms a hit may follow the cast and still count (500 ms margin is added)
  hit_ids: [12346]     # other skill ids whose hits count for this skill
  minion: false        # whether minion hits count
- id: 23456
  enabled: false       # disables an earlier definition of this id
```

`Buddy.load` reads this file if it exists, `Buddy.load_data` reloads it and
`Buddy.reset_data` drops the loaded definitions. The result (number of
entries or a `gwbuddy.data.LoadError`) is kept in `Buddy.data_state` and
shown as text by `Buddy.settings_summary()`, together with the hotkeys,
history settings and skill name cache counters.

### Settings

`Buddy.load` reads `arcdps_buddy.json` from the configuration directory and
`Buddy.unload` writes it back, creating the directory if needed. Stored are
the history settings and the settings of the multi view, cast, buff and
breakbar windows; the transfer window's settings are not saved.

### Fight history

`gwbuddy.history.History` keeps the newest fight first. Adding a fight while
more than `max_fights` are stored drops the oldest one. A fight shorter than
`min_duration` milliseconds is discarded when it ends if `discard_at_end` is
set, and otherwise when the next fight is added. Buddy's defaults are 10
fights, 5000 ms and `discard_at_end=True`.

## What it does not do

gwbuddy does not read combat data from a running game, draw an overlay or
register global hotkeys. Events must be supplied by the caller, and the
rendered lines and window state are left for a front end of your choosing to
display.

## Running the tests

```
pip install -e .[test]
pytest
```