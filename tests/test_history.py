import pytest

from gwbuddy.history import Fight, History, HistorySettings


def make_history(max_fights=10, min_duration=5000, discard_at_end=True):
    return History(max_fights, min_duration, discard_at_end, list)


def test_fight_target_update():
    fight = Fight.with_target(100, 17154, "Boss", None)
    assert fight.target == 17154
    assert fight.name == "Boss"
    fight.update_target(2, "Ignored")
    assert fight.target is None and fight.name is None


def test_fight_empty_name_is_none():
    fight = Fight.with_target(0, 17154, "", None)
    assert fight.target == 17154
    assert fight.name is None


def test_fight_end_and_duration():
    fight = Fight(1000, None)
    assert not fight.ended()
    assert fight.duration() is None
    assert fight.end(4000) == fight.duration()
    assert fight.ended()
    assert fight.end_time == 4000


def test_relative_time():
    fight = Fight(1000, None)
    assert fight.relative_time(1000 + 250) == 250
    assert fight.relative_time(1000 - 600) == -600
    fight.end(2000)
    assert fight.relative_time(2000) is not None
    assert fight.relative_time(2001) is None


def test_relative_time_out_of_range():
    fight = Fight(0, None)
    assert fight.relative_time(2**31 - 1) == 2**31 - 1
    assert fight.relative_time(2**31) is None


def test_settings_round_trip():
    settings = HistorySettings(7, 1234, False)
    assert HistorySettings.from_dict(settings.to_dict()) == settings


@pytest.mark.parametrize(
    "mapping",
    [
        {},
        {"max_fights": 1, "min_duration": 2},
        {"max_fights": "1", "min_duration": 2, "discard_at_end": True},
        {"max_fights": 1, "min_duration": -2, "discard_at_end": True},
        {"max_fights": 1, "min_duration": 2, "discard_at_end": 1},
    ],
)
def test_settings_invalid(mapping):
    with pytest.raises(ValueError):
        HistorySettings.from_dict(mapping)


def test_empty_history():
    history = make_history()
    assert len(history) == 0
    assert history.latest_fight() is None
    assert not history.latest_fight_active()
    assert history.relative_time(5) is None
    assert history.fight_and_time(5) is None
    assert history.viewed_fight() is None


def test_add_fight_default_uses_factory():
    history = make_history()
    history.add_fight_default(10)
    latest = history.latest_fight()
    assert latest.data == []
    assert latest.start == 10
    assert history.latest_fight_active()


def test_fight_and_time():
    history = make_history()
    history.add_fight_default(100)
    relative, fight = history.fight_and_time(350)
    assert relative == 250
    assert fight is history.latest_fight()


def test_newest_first_and_capacity():
    history = make_history(max_fights=2)
    for start in range(5):
        history.add_fight_default(start)
    assert len(history) == history.settings.max_fights + 1
    assert [fight.start for fight in history.all_fights()] == [4, 3, 2]


def test_short_fight_dropped_on_next_add_without_discard():
    history = make_history(discard_at_end=False, min_duration=1000)
    history.add_fight_default(0)
    history.end_latest_fight(500)
    assert len(history) == 1
    history.add_fight_default(600)
    assert [fight.start for fight in history] == [600]


def test_short_fight_discarded_at_end():
    history = make_history(discard_at_end=True, min_duration=1000)
    history.add_fight_default(0)
    history.end_latest_fight(500)
    assert len(history) == 0


def test_long_fight_kept():
    history = make_history(min_duration=1000)
    history.add_fight_default(0)
    history.end_latest_fight(1000)
    history.add_fight_default(2000)
    assert [fight.start for fight in history] == [2000, 0]


def test_end_ignored_when_already_ended():
    history = make_history(min_duration=0)
    history.add_fight_default(0)
    history.end_latest_fight(100)
    history.end_latest_fight(900)
    assert history.latest_fight().end_time == 100


def test_update_fight_target_active_and_ended():
    history = make_history(min_duration=0)
    history.add_fight_with_target(0, 100, "First")
    history.update_fight_target(10, 200, "Second")
    assert len(history) == 1
    assert history.latest_fight().target == 200
    history.end_latest_fight(50)
    history.update_fight_target(60, 300, "Third")
    assert len(history) == 2
    assert history.latest_fight().name == "Third"
    assert history.latest_fight().start == 60


def test_viewed_follows_selected_fight():
    history = make_history()
    history.add_fight_default(0)
    history.add_fight_default(10)
    history.select(1)
    selected = history.viewed_fight()
    history.add_fight_default(20)
    assert history.viewed == 2
    assert history.viewed_fight() is selected


def test_viewed_latest_stays_latest():
    history = make_history()
    history.add_fight_default(0)
    history.add_fight_default(10)
    assert history.viewed == 0
    assert history.viewed_fight() is history.latest_fight()


def test_select_out_of_range():
    history = make_history()
    history.add_fight_default(0)
    with pytest.raises(IndexError):
        history.select(1)
    assert history.fight_at(1) is None
    assert history.fight_at(-1) is None