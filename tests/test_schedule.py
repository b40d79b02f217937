"""Recurring window resolution."""

from datetime import datetime, timedelta

import pytest

from presence_control.core.config import WindowConfig
from presence_control.domain.models import RecurringWindow
from presence_control.domain.schedule import WindowResolver, active_instance, find_overlaps


def window(start: str, end: str, days=None) -> RecurringWindow:
    return WindowConfig.model_validate({"from": start, "to": end, "days": days}).to_window()


def test_same_day_window_bounds() -> None:
    w = window("08:00", "17:00")

    assert active_instance(w, datetime(2024, 1, 1, 7, 59)) is None
    assert active_instance(w, datetime(2024, 1, 1, 8, 0)) is not None
    assert active_instance(w, datetime(2024, 1, 1, 16, 59, 59)) is not None
    assert active_instance(w, datetime(2024, 1, 1, 17, 0)) is None


def test_weekday_mask_uses_sunday_zero() -> None:
    w = window("08:00", "17:00", days=[0, 6])

    assert active_instance(w, datetime(2024, 1, 6, 9, 0)) is not None  # Saturday
    assert active_instance(w, datetime(2024, 1, 7, 9, 0)) is not None  # Sunday
    assert active_instance(w, datetime(2024, 1, 8, 9, 0)) is None      # Monday


def test_empty_window_never_active() -> None:
    w = window("10:00", "10:00")

    assert active_instance(w, datetime(2024, 1, 1, 10, 0)) is None
    assert active_instance(w, datetime(2024, 1, 1, 3, 0)) is None


def test_overnight_ignore_window_attributed_to_start_day() -> None:
    resolver = WindowResolver(ignore_windows=[window("23:00", "05:00", days=[1])], always_on_windows=[])

    assert resolver.resolve(datetime(2024, 1, 1, 23, 30)).ignore_active is True   # Monday
    assert resolver.resolve(datetime(2024, 1, 2, 4, 30)).ignore_active is True    # Tuesday morning
    assert resolver.resolve(datetime(2024, 1, 2, 5, 0)).ignore_active is False
    # Monday early morning belongs to Sunday's occurrence, which is not configured
    assert resolver.resolve(datetime(2024, 1, 1, 4, 30)).ignore_active is False
    assert resolver.resolve(datetime(2024, 1, 2, 23, 30)).ignore_active is False


def test_always_on_instance_seconds() -> None:
    w = window("10:00", "11:30")
    inst = active_instance(w, datetime(2024, 1, 1, 11, 28, 30))

    assert inst is not None
    assert inst.total_seconds == 5400
    assert inst.seconds_remaining == 90
    assert inst.start_instant == datetime(2024, 1, 1, 10, 0)
    assert inst.end_instant == datetime(2024, 1, 1, 11, 30)


def test_overnight_always_on_instance_after_midnight() -> None:
    w = window("22:00", "02:00")
    inst = active_instance(w, datetime(2024, 1, 2, 1, 0, 0, 500000))

    assert inst is not None
    assert inst.start_instant == datetime(2024, 1, 1, 22, 0)
    assert inst.end_instant == datetime(2024, 1, 2, 2, 0)
    assert inst.total_seconds == 4 * 3600
    assert inst.seconds_remaining == 3599


def test_overnight_always_on_instance_before_midnight() -> None:
    w = window("22:00", "02:00")
    inst = active_instance(w, datetime(2024, 1, 1, 23, 0))

    assert inst.end_instant == datetime(2024, 1, 2, 2, 0)
    assert inst.seconds_remaining == 3 * 3600


def test_aware_datetimes_use_wall_clock() -> None:
    from zoneinfo import ZoneInfo

    w = window("08:00", "09:00")
    now = datetime(2024, 1, 1, 8, 30, tzinfo=ZoneInfo("Europe/Berlin"))

    assert active_instance(w, now).seconds_remaining == 1800


def test_remaining_seconds_span_dst_changes() -> None:
    from zoneinfo import ZoneInfo

    berlin = ZoneInfo("Europe/Berlin")
    w = window("01:00", "04:00")

    # clocks jump 02:00 -> 03:00
    spring = active_instance(w, datetime(2024, 3, 31, 1, 30, tzinfo=berlin))
    assert spring.seconds_remaining == 5400
    assert spring.total_seconds == 3 * 3600

    # clocks fall back 03:00 -> 02:00
    autumn = active_instance(w, datetime(2024, 10, 27, 1, 30, tzinfo=berlin))
    assert autumn.seconds_remaining == 12600


def test_always_on_beats_ignore() -> None:
    resolver = WindowResolver(
        ignore_windows=[window("00:00", "23:59")],
        always_on_windows=[window("12:00", "13:00")],
    )

    state = resolver.resolve(datetime(2024, 1, 1, 12, 30))
    assert state.always_on_active is True
    assert state.ignore_active is False

    state = resolver.resolve(datetime(2024, 1, 1, 14, 0))
    assert state.always_on_active is False
    assert state.ignore_active is True
    assert state.active_always_on_window is None


def test_first_always_on_window_wins() -> None:
    resolver = WindowResolver(
        ignore_windows=[],
        always_on_windows=[window("12:00", "14:00"), window("11:00", "13:00")],
    )

    state = resolver.resolve(datetime(2024, 1, 1, 12, 30))
    assert state.active_always_on_window.end_instant == datetime(2024, 1, 1, 14, 0)
    assert state.active_always_on_window.total_seconds == 7200


def test_flags_never_both_true_over_a_week() -> None:
    resolver = WindowResolver(
        ignore_windows=[window("22:00", "06:00"), window("12:00", "14:00", days=[1, 2, 3])],
        always_on_windows=[window("05:00", "07:00", days=[1, 3, 5]), window("13:00", "13:30")],
    )
    t = datetime(2024, 1, 1)
    while t < datetime(2024, 1, 8):
        state = resolver.resolve(t)
        assert not (state.always_on_active and state.ignore_active)
        t += timedelta(minutes=7)


def test_find_overlaps() -> None:
    windows = [
        window("08:00", "10:00", days=[1]),
        window("09:00", "11:00", days=[1]),
        window("09:00", "11:00", days=[2]),
    ]

    assert find_overlaps(windows) == [(0, 1)]


def test_find_overlaps_across_week_end() -> None:
    windows = [
        window("23:00", "01:00", days=[6]),  # Saturday night into Sunday
        window("00:30", "02:00", days=[0]),
    ]

    assert find_overlaps(windows) == [(0, 1)]


@pytest.mark.parametrize("bad", ["24:00", "7", "12:60", "ab:cd"])
def test_invalid_window_times_rejected(bad: str) -> None:
    with pytest.raises(ValueError):
        WindowConfig.model_validate({"from": bad, "to": "10:00"})


def test_invalid_weekday_rejected() -> None:
    with pytest.raises(ValueError):
        WindowConfig.model_validate({"from": "09:00", "to": "10:00", "days": [7]})
