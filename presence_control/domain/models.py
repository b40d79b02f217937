from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class RecurringWindow:
    start_minute: int  # minute of day, 0..1439
    end_minute: int
    weekdays: frozenset[int] = frozenset(range(7))  # 0=Sunday .. 6=Saturday

    @property
    def wraps_midnight(self) -> bool:
        return self.start_minute > self.end_minute

    @property
    def total_seconds(self) -> int:
        return ((self.end_minute - self.start_minute) % MINUTES_PER_DAY) * 60

    def label(self) -> str:
        return f"{_hhmm(self.start_minute)}-{_hhmm(self.end_minute)}"


def _hhmm(minute_of_day: int) -> str:
    return f"{minute_of_day // 60:02d}:{minute_of_day % 60:02d}"


@dataclass(frozen=True)
class ActiveWindowInstance:
    start_instant: datetime
    end_instant: datetime
    total_seconds: int
    seconds_remaining: int


@dataclass
class SignalState:
    sensor_level: bool = False
    bus_presence: bool = False
    touch_pulse_active: bool = False


@dataclass(frozen=True)
class ScheduleState:
    always_on_active: bool = False
    ignore_active: bool = False
    active_always_on_window: Optional[ActiveWindowInstance] = None


@dataclass(frozen=True)
class PresenceState:
    presence: bool = False


@dataclass
class TimerState:
    counter_seconds: int = 0
    dimmed: bool = False


class TimerPhase(str, Enum):
    ACTIVE = "ACTIVE"
    COUNTING = "COUNTING"
    DIMMED = "DIMMED"
    IDLE = "IDLE"


@dataclass
class DecisionState:
    """Everything the decision worker owns. Mutated only inside a pass."""
    signals: SignalState = field(default_factory=SignalState)
    schedule: ScheduleState = field(default_factory=ScheduleState)
    presence: PresenceState = field(default_factory=PresenceState)
    timer: TimerState = field(default_factory=TimerState)


@dataclass(frozen=True)
class StateSnapshot:
    presence: bool
    counter_seconds: int
    dimmed: bool
    always_on_active: bool
    ignore_active: bool
    always_on_total: Optional[int] = None
    always_on_seconds_left: Optional[int] = None

    def as_dict(self) -> dict:
        out = {
            "presence": self.presence,
            "counter_seconds": self.counter_seconds,
            "dimmed": self.dimmed,
            "always_on_active": self.always_on_active,
            "ignore_active": self.ignore_active,
        }
        if self.always_on_total is not None:
            out["always_on_total"] = self.always_on_total
            out["always_on_seconds_left"] = self.always_on_seconds_left
        return out


@dataclass(frozen=True)
class PassResult:
    snapshot: StateSnapshot
    intent: Optional[bool]  # True=on, False=off, None=hold
    phase: TimerPhase
    touch_pulse_active: bool
    touch_generation: int
