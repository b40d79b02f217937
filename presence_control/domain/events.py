"""Typed messages consumed by the decision worker.

Every producer (tickers, sensor poller, bus listener, HTTP touch input and the
touch-pulse expiry) talks to the engine only through these.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class SensorEventKind(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    ERROR = "ERROR"


@dataclass(frozen=True)
class SensorEvent:
    kind: SensorEventKind
    detail: Optional[str] = None


@dataclass(frozen=True)
class BusMessage:
    topic: str
    payload: Union[bytes, str]


@dataclass(frozen=True)
class TouchPulse:
    pass


@dataclass(frozen=True)
class TouchExpired:
    generation: int


@dataclass(frozen=True)
class TouchShutdown:
    pass


@dataclass(frozen=True)
class ScheduleTick:
    now: datetime


@dataclass(frozen=True)
class CountdownTick:
    pass


Event = Union[
    SensorEvent,
    BusMessage,
    TouchPulse,
    TouchExpired,
    TouchShutdown,
    ScheduleTick,
    CountdownTick,
]
