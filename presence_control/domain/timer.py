from __future__ import annotations
import logging
from typing import Optional

from .models import ScheduleState, TimerPhase, TimerState

logger = logging.getLogger(__name__)


class CountdownTimer:
    """Per-second countdown with an edge-triggered dimmer.

    `evaluate` runs on every event pass and never decrements; `tick` runs once
    per countdown tick. Both return the screen intent: True (on), False (off)
    or None (leave the screen as it is).
    """

    def __init__(self, counter_timeout: int, auto_dimmer: bool, auto_dimmer_timeout: int) -> None:
        if counter_timeout <= 0:
            raise ValueError("counter_timeout must be positive")
        if auto_dimmer_timeout > counter_timeout:
            raise ValueError("auto_dimmer_timeout must not exceed counter_timeout")
        self.counter_timeout = counter_timeout
        self.auto_dimmer = auto_dimmer
        self.auto_dimmer_timeout = auto_dimmer_timeout
        self.state = TimerState()
        self._presence = False

    @property
    def phase(self) -> TimerPhase:
        if self._presence:
            return TimerPhase.ACTIVE
        if self.state.counter_seconds == 0:
            return TimerPhase.IDLE
        if self.state.dimmed:
            return TimerPhase.DIMMED
        return TimerPhase.COUNTING

    def evaluate(self, presence: bool, schedule: ScheduleState) -> Optional[bool]:
        intent = self._override(presence, schedule)
        if intent is not None:
            return intent
        self._maybe_dim()
        return None

    def tick(self, presence: bool, schedule: ScheduleState) -> Optional[bool]:
        intent = self._override(presence, schedule)
        if intent is not None:
            return intent

        s = self.state
        if s.counter_seconds == 0:
            s.dimmed = False
            return False

        s.counter_seconds -= 1
        if s.counter_seconds == 0:
            logger.info("Countdown expired, screen off")
            s.dimmed = False
            return False
        self._maybe_dim()
        return None

    def force_idle(self) -> None:
        self.state.counter_seconds = 0
        self.state.dimmed = False
        self._presence = False

    def _override(self, presence: bool, schedule: ScheduleState) -> Optional[bool]:
        """Handle the cases that bypass the countdown. None means keep counting."""
        was_active = self._presence
        self._presence = presence
        s = self.state

        if schedule.ignore_active and not schedule.always_on_active:
            s.counter_seconds = 0
            s.dimmed = False
            return False

        if presence:
            if not was_active:
                logger.debug("Countdown reset to %ds", self.counter_timeout)
            s.counter_seconds = self.counter_timeout
            s.dimmed = False
            return True
        return None

    def _maybe_dim(self) -> None:
        s = self.state
        if (
            self.auto_dimmer
            and not s.dimmed
            and s.counter_seconds > 0
            and s.counter_seconds == self.auto_dimmer_timeout
        ):
            logger.info("Auto-dimmer engaged (%ds left)", s.counter_seconds)
            s.dimmed = True
