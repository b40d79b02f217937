from __future__ import annotations
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Sequence

from .models import MINUTES_PER_DAY, ActiveWindowInstance, RecurringWindow, ScheduleState
from ..core.timeutil import wall_clock, weekday_index

logger = logging.getLogger(__name__)

MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY


def _at(day: date, minute_of_day: int) -> datetime:
    return datetime.combine(day, time(minute_of_day // 60, minute_of_day % 60))


def active_instance(window: RecurringWindow, now: datetime) -> Optional[ActiveWindowInstance]:
    """Return the occurrence of `window` containing `now`, or None.

    Overnight windows (start > end) belong to the day they started on, so the
    part after midnight is checked against yesterday's weekday.
    Remaining seconds count real elapsed time when `now` is aware.
    """
    local = wall_clock(now)
    minute = local.hour * 60 + local.minute
    today = local.date()
    start, end = window.start_minute, window.end_minute

    if not window.wraps_midnight:
        if not (start <= minute < end) or weekday_index(local) not in window.weekdays:
            return None
        start_at, end_at = _at(today, start), _at(today, end)
    elif minute >= start:
        if weekday_index(local) not in window.weekdays:
            return None
        start_at, end_at = _at(today, start), _at(today + timedelta(days=1), end)
    elif minute < end:
        yesterday = local - timedelta(days=1)
        if weekday_index(yesterday) not in window.weekdays:
            return None
        start_at, end_at = _at(yesterday.date(), start), _at(today, end)
    else:
        return None

    if now.tzinfo is not None:
        left = end_at.replace(tzinfo=now.tzinfo).astimezone(timezone.utc) - now.astimezone(timezone.utc)
    else:
        left = end_at - now
    remaining = max(0, int(left.total_seconds()))
    return ActiveWindowInstance(
        start_instant=start_at,
        end_instant=end_at,
        total_seconds=window.total_seconds,
        seconds_remaining=remaining,
    )


def _week_intervals(window: RecurringWindow) -> list[tuple[int, int]]:
    length = (window.end_minute - window.start_minute) % MINUTES_PER_DAY
    if length == 0:
        return []
    out = []
    for day in window.weekdays:
        s = day * MINUTES_PER_DAY + window.start_minute
        e = s + length
        if e > MINUTES_PER_WEEK:
            out.append((s, MINUTES_PER_WEEK))
            out.append((0, e - MINUTES_PER_WEEK))
        else:
            out.append((s, e))
    return out


def find_overlaps(windows: Sequence[RecurringWindow]) -> list[tuple[int, int]]:
    """Index pairs of windows that are active at the same minute of the week."""
    spans = [_week_intervals(w) for w in windows]
    pairs = []
    for i in range(len(windows)):
        for j in range(i + 1, len(windows)):
            if any(a0 < b1 and b0 < a1 for a0, a1 in spans[i] for b0, b1 in spans[j]):
                pairs.append((i, j))
    return pairs


class WindowResolver:
    def __init__(
        self,
        ignore_windows: Sequence[RecurringWindow],
        always_on_windows: Sequence[RecurringWindow],
    ) -> None:
        self._ignore = list(ignore_windows)
        self._always_on = list(always_on_windows)
        self._last: Optional[ScheduleState] = None

    def ignore_windows(self) -> list[RecurringWindow]:
        return list(self._ignore)

    def always_on_windows(self) -> list[RecurringWindow]:
        return list(self._always_on)

    def resolve(self, now: datetime) -> ScheduleState:
        active = None
        for w in self._always_on:
            active = active_instance(w, now)
            if active is not None:
                break  # first match in configured order

        if active is not None:
            state = ScheduleState(always_on_active=True, ignore_active=False, active_always_on_window=active)
        else:
            ignore = any(active_instance(w, now) is not None for w in self._ignore)
            state = ScheduleState(always_on_active=False, ignore_active=ignore)

        self._log_change(state)
        self._last = state
        return state

    def _log_change(self, state: ScheduleState) -> None:
        last = self._last or ScheduleState()
        if state.always_on_active != last.always_on_active:
            if state.always_on_active:
                win = state.active_always_on_window
                logger.info(
                    "Always-on window entered (%s -> %s, %ds left)",
                    win.start_instant.strftime("%a %H:%M"),
                    win.end_instant.strftime("%a %H:%M"),
                    win.seconds_remaining,
                )
            else:
                logger.info("Always-on window left")
        if state.ignore_active != last.ignore_active:
            logger.info("Ignore window %s", "entered" if state.ignore_active else "left")
