import pytest

from gwbuddy.combat import Agent, AgentKind, BreakbarHit, CombatData
from gwbuddy.data import Condition, SkillData
from gwbuddy.history import History
from gwbuddy.panels import AutoScroll, BreakbarLog, MultiView, TransferLog, Window
from gwbuddy.skills import SkillMap
from gwbuddy.transfer import Apply, Remove
from gwbuddy.views import HitDisplay, Segment, Tone, format_time

BOSS_SPECIES = 100


def make_history():
    history = History(10, 5000, True, CombatData)
    history.add_fight_with_target(0, BOSS_SPECIES, "Boss")
    return history


def boss():
    return Agent(AgentKind(species=BOSS_SPECIES), 0, "Boss")


def add_npc():
    return Agent(AgentKind(species=7), 0, "Add")


def player(name="Ally"):
    return Agent(AgentKind(), 3, name)


def test_auto_scroll_sticks_only_at_bottom():
    scroll = AutoScroll()
    assert scroll.update(0.0, 50.0) is True
    assert scroll.update(10.0, 60.0) is False
    assert scroll.update(60.0, 80.0) is True
    assert scroll.last_scroll_max == 80.0


def test_breakbar_empty_history_renders_nothing():
    history = History(10, 5000, True, CombatData)
    assert BreakbarLog().render(history, SkillMap()) == []


def test_breakbar_own_hit_line():
    history = make_history()
    fight = history.latest_fight()
    fight.data.breakbar.append(BreakbarHit(1500, 12815, 125, player("Me"), True, boss()))
    lines = BreakbarLog().render(history, SkillMap())
    assert lines == [
        (
            Segment(format_time(1500), Tone.GREY),
            Segment("12.5", Tone.BLUE),
            Segment("Lightning Leap Combo"),
            Segment("Boss", Tone.RED),
        )
    ]


def test_breakbar_hides_others_unless_enabled():
    history = make_history()
    fight = history.latest_fight()
    fight.data.breakbar.append(BreakbarHit(10, 42, 30, player("Other"), False, add_npc()))
    log = BreakbarLog(display_time=False)
    assert log.render(history, SkillMap()) == []
    log.display_others = True
    lines = log.render(history, SkillMap())
    assert len(lines) == 1
    assert Segment("Other", Tone.PROFESSION, 3) in lines[0]
    assert lines[0][-1] == Segment("Add", Tone.YELLOW)
    assert lines[0][0].tone is Tone.BLUE


def test_breakbar_settings_round_trip_and_defaults():
    log = BreakbarLog(display_time=False, display_others=True)
    other = BreakbarLog()
    other.load_settings(log.to_settings())
    assert other == log
    other.load_settings({})
    assert other == BreakbarLog()


def test_breakbar_invalid_settings_raise():
    log = BreakbarLog()
    with pytest.raises(ValueError):
        log.load_settings({"display_time": "yes"})
    with pytest.raises(ValueError):
        log.load_settings(["display_time"])
    assert log.display_time is True


def test_transfer_log_line():
    history = make_history()
    tracker = history.latest_fight().data.transfers
    tracker.add_remove(Remove(1000, Condition.BURNING, 2000))
    tracker.add_apply(Apply(1002, Condition.BURNING, 2000, boss()))
    lines = TransferLog().render(history)
    assert lines == [
        (
            Segment(format_time(1002), Tone.GREY),
            Segment("1"),
            Segment(Condition.BURNING.label),
            Segment("Boss", Tone.RED),
        )
    ]
    assert len(TransferLog(display_time=False).render(history)[0]) == 3


def test_transfer_settings_round_trip():
    log = TransferLog(display_time=False)
    other = TransferLog()
    other.load_settings(log.to_settings())
    assert other.display_time is False
    with pytest.raises(ValueError):
        other.load_settings({"display_time": 1})


def test_multi_view_render_tabs():
    history = make_history()
    view = MultiView()
    tabs = view.render(history, SkillMap(), SkillData([]))
    assert set(tabs) == {"Casts", "Buffs", "Breakbar", "Transfer"}
    assert all(lines == [] for lines in tabs.values())


def test_multi_view_settings_round_trip():
    view = MultiView()
    view.casts.display_hits = HitDisplay.CLEAVE
    view.breakbars.display_others = True
    view.transfers.display_time = False
    other = MultiView()
    other.load_settings(view.to_settings())
    assert other.to_settings() == view.to_settings()


def test_multi_view_missing_section_resets_to_defaults():
    view = MultiView()
    view.transfers.display_time = False
    view.breakbars.display_others = True
    view.load_settings({"breakbars": {"display_others": True}})
    assert view.transfers.display_time is True
    assert view.breakbars.display_others is True


def test_multi_view_invalid_settings_leave_view_unchanged():
    view = MultiView()
    view.transfers.display_time = False
    before = view.to_settings()
    with pytest.raises(ValueError):
        view.load_settings({"casts": {"display_hits": "Sometimes"}})
    assert view.to_settings() == before


def test_window_hotkey_toggles():
    window = Window("Buddy Breakbar", BreakbarLog(), hotkey=66)
    assert window.key_press(65) is False
    assert window.visible is False
    assert window.key_press(66) is True
    assert window.visible is True
    assert window.key_press(66) is True
    assert window.visible is False


def test_window_without_hotkey_ignores_keys():
    window = Window("Buddy Transfer", TransferLog())
    assert window.key_press(0) is False
    window.toggle_visibility()
    assert window.visible is True
    assert window.settings_id == "transfer_log"


def test_window_settings_round_trip():
    window = Window("Buddy Multi", MultiView(), visible=True, hotkey=77, width=500.0)
    window.content.buffs.display_time = False
    other = Window("Buddy Multi", MultiView())
    other.load_settings(window.to_settings())
    assert other.to_settings() == window.to_settings()
    assert other.content.buffs.display_time is False


def test_window_invalid_settings_raise():
    window = Window("Buddy Breakbar", BreakbarLog())
    with pytest.raises(ValueError):
        window.load_settings({"hotkey": "F1"})
    with pytest.raises(ValueError):
        window.load_settings({"width": -1})
    assert window.hotkey is None
    assert window.width == 350.0