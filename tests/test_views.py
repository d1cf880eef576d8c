import pytest

from gwbuddy.combat import (
    Agent,
    AgentFilter,
    AgentKind,
    BuffApply,
    Cast,
    CastState,
    CombatData,
    Hit,
)
from gwbuddy.data import Buff, SkillData, SkillDef, SkillHits
from gwbuddy.history import History
from gwbuddy.skills import SkillMap
from gwbuddy.views import (
    BuffLog,
    CastLog,
    HitDisplay,
    Segment,
    Tone,
    format_time,
    history_entries,
)

SPECIES = 50


def make_history():
    history = History(10, 0, False, CombatData)
    history.add_fight_with_target(1000, SPECIES, "Boss")
    return history


def make_data():
    return SkillData([SkillDef(id=100, hits=3), SkillDef(id=200)])


def make_skills():
    skills = SkillMap()
    skills.try_register(100, "Blast")
    skills.try_register(200, "Zap")
    return skills


def test_format_time_pinned():
    assert format_time(0) == "  0.000"
    assert format_time(12345) == " 12.345"


@pytest.mark.parametrize("time", [1, 999, 1000, 54321, -1, -2500])
def test_format_time_has_three_decimals(time):
    whole, fraction = format_time(time).split(".")
    assert len(fraction) == 3
    assert len(whole) >= 3


def test_hit_display_from_index():
    assert [HitDisplay.from_index(i) for i in range(4)] == list(HitDisplay)
    assert HitDisplay.from_index(7) is HitDisplay.BOTH


def test_history_entries_empty():
    history = History(10, 0, False, CombatData)
    assert history_entries(history) == [Segment("No history")]


def test_history_entries_tones_follow_selection():
    history = make_history()
    history.end_latest_fight(5000)
    history.add_fight_default(6000)
    entries = history_entries(history)
    assert len(entries) == 2
    assert entries[0].tone is Tone.PLAIN
    assert entries[1].tone is Tone.GREY
    assert entries[1].text == "Boss (4s)"
    assert entries[0].text == "Unknown (?s)"
    history.select(1)
    entries = history_entries(history)
    assert [entry.tone for entry in entries] == [Tone.GREY, Tone.PLAIN]


def test_format_hits_tones():
    log = CastLog()
    info = SkillHits(max=4, expected=2)
    assert log.format_hits(0, info).tone is Tone.RED
    assert log.format_hits(2, info).tone is Tone.YELLOW
    assert log.format_hits(4, info).tone is Tone.GREEN
    assert log.format_hits(5, info).tone is Tone.BLUE
    assert log.format_hits(5, info).text.endswith("/4")


def test_format_hits_without_hits():
    log = CastLog()
    info = SkillHits(max=0, expected=0)
    assert log.format_hits(0, info).tone is Tone.RED
    assert log.format_hits(2, info).tone is Tone.YELLOW
    assert log.format_hits(2, info).text.endswith("/X")


def test_cast_render_full_line():
    history = make_history()
    history.latest_fight().data.casts.append(
        Cast(10, 100, CastState.FIRE, 750, [Hit(SPECIES), Hit(SPECIES), Hit(0)])
    )
    lines = CastLog().render(history, make_skills(), make_data())
    assert len(lines) == 1
    line = lines[0]
    assert len(line) == 5
    assert line[0].tone is Tone.GREY
    assert line[1].text == "Blast"
    assert line[2].tone is Tone.YELLOW
    assert line[3].text.startswith("(") and line[3].text.endswith(")")
    assert line[3].tone is Tone.GREEN
    assert line[4].tone is Tone.GREEN
    assert line[4].text.endswith("ms")


def test_cast_render_hit_display_none_and_cleave():
    history = make_history()
    history.latest_fight().data.casts.append(Cast(10, 100, CastState.FIRE, 750, [Hit(0)]))
    full = CastLog().render(history, make_skills(), make_data())[0]
    none = CastLog(display_hits=HitDisplay.NONE).render(history, make_skills(), make_data())[0]
    cleave = CastLog(display_hits=HitDisplay.CLEAVE).render(history, make_skills(), make_data())[0]
    assert len(full) - len(none) == 2
    assert len(cleave) - len(none) == 1


def test_cast_render_unknown_state_and_hidden_time():
    history = make_history()
    history.latest_fight().data.casts.append(Cast.from_start(10, 200, CastState.CASTING))
    lines = CastLog(display_time=False).render(history, make_skills(), make_data())
    assert lines == [(Segment("Zap"), Segment("?ms"))]


def test_cast_render_skips_unknown_skill_and_filters_misses():
    history = make_history()
    casts = history.latest_fight().data.casts
    casts.append(Cast(10, 999, CastState.FIRE, 100))
    casts.append(Cast(20, 100, CastState.FIRE, 100, [Hit(SPECIES)] * 3))
    casts.append(Cast(30, 100, CastState.FIRE, 100, []))
    all_lines = CastLog().render(history, make_skills(), make_data())
    assert len(all_lines) == 2
    misses = CastLog(only_misses=True).render(history, make_skills(), make_data())
    assert len(misses) == 1
    assert misses[0][0].text == format_time(30)


def test_cast_render_without_fight():
    history = History(10, 0, False, CombatData)
    assert CastLog().render(history, make_skills(), make_data()) == []


def test_cast_log_settings_round_trip():
    original = CastLog(display_time=False, display_hits=HitDisplay.CLEAVE, only_misses=True)
    loaded = CastLog()
    loaded.load_settings(original.to_settings())
    assert loaded == original
    assert original.to_settings()["display_hits"] == "Cleave"


def test_cast_log_missing_keys_take_defaults():
    log = CastLog(display_time=False, only_misses=True)
    log.load_settings({"display_duration": False})
    assert log == CastLog(display_duration=False)


def test_cast_log_invalid_settings_raise_and_keep_state():
    log = CastLog(only_misses=True)
    with pytest.raises(ValueError):
        log.load_settings({"display_hits": "Sideways"})
    with pytest.raises(ValueError):
        log.load_settings({"display_time": "yes"})
    assert log == CastLog(only_misses=True)


def buff_history():
    history = make_history()
    player = Agent(AgentKind(), 3, "Ally")
    npc = Agent(AgentKind(SPECIES), 0, "Golem")
    buffs = history.latest_fight().data.buffs
    buffs.append(BuffApply(100, Buff.QUICKNESS, 1500, player))
    buffs.append(BuffApply(200, Buff.ALACRITY, 2000, npc))
    return history


def test_buff_render_tones():
    lines = BuffLog().render(buff_history())
    assert len(lines) == 2
    first, second = lines
    assert first[1].text == "Quick"
    assert first[2].tone is Tone.YELLOW
    assert first[2].text.endswith("s")
    assert first[3] == Segment("Ally", Tone.PROFESSION, 3)
    assert second[1].text == "Alac"
    assert second[3] == Segment("Golem", Tone.GREEN)


def test_buff_render_filters():
    history = buff_history()
    players = BuffLog(target_filter=AgentFilter.PLAYERS).render(history)
    npcs = BuffLog(target_filter=AgentFilter.NPCS).render(history)
    assert [line[-1].text for line in players] == ["Ally"]
    assert [line[-1].text for line in npcs] == ["Golem"]


def test_buff_render_minimal_line():
    lines = BuffLog(display_time=False, display_duration=False).render(buff_history())
    assert lines[0] == (Segment("Quick"), Segment("Ally", Tone.PROFESSION, 3))


def test_buff_log_settings_round_trip():
    original = BuffLog(display_duration=False, target_filter=AgentFilter.NPCS)
    loaded = BuffLog()
    loaded.load_settings(original.to_settings())
    assert loaded == original
    assert original.to_settings()["target_filter"] == "NPCs"


def test_buff_log_invalid_settings():
    log = BuffLog()
    with pytest.raises(ValueError):
        log.load_settings({"target_filter": "Everyone"})
    with pytest.raises(ValueError):
        log.load_settings(["display_time"])
    assert log == BuffLog()