from __future__ import annotations
import logging

from .events import (
    BusMessage,
    CountdownTick,
    Event,
    ScheduleTick,
    SensorEvent,
    TouchExpired,
    TouchPulse,
    TouchShutdown,
)
from .models import DecisionState, PassResult, PresenceState, StateSnapshot
from .presence import PresenceAggregator
from .schedule import WindowResolver
from .timer import CountdownTimer
from ..core.config import Settings

logger = logging.getLogger(__name__)


class DecisionEngine:
    """Runs one resolver -> aggregator -> timer pass per event.

    Not thread-safe; a single worker feeds it events one at a time.
    """

    def __init__(
        self,
        resolver: WindowResolver,
        aggregator: PresenceAggregator,
        timer: CountdownTimer,
    ) -> None:
        self.resolver = resolver
        self.aggregator = aggregator
        self.timer = timer
        self.state = DecisionState(timer=timer.state)
        self._touch_generation = 0

    @classmethod
    def from_settings(cls, cfg: Settings) -> "DecisionEngine":
        return cls(
            resolver=WindowResolver(
                ignore_windows=cfg.ignore_recurring_windows(),
                always_on_windows=cfg.always_on_recurring_windows(),
            ),
            aggregator=PresenceAggregator(cfg.mode, cfg.bus_occupancy_field),
            timer=CountdownTimer(cfg.counter_timeout, cfg.auto_dimmer, cfg.auto_dimmer_timeout),
        )

    @property
    def touch_generation(self) -> int:
        return self._touch_generation

    def handle(self, event: Event) -> PassResult:
        st = self.state
        signals = st.signals
        countdown = False
        shutdown = False

        if isinstance(event, ScheduleTick):
            st.schedule = self.resolver.resolve(event.now)
        elif isinstance(event, SensorEvent):
            self.aggregator.apply_sensor(signals, event)
        elif isinstance(event, BusMessage):
            self.aggregator.apply_bus(signals, event.topic, event.payload)
        elif isinstance(event, TouchPulse):
            self._touch_generation += 1
            signals.touch_pulse_active = True
            logger.info("Touch pulse #%d", self._touch_generation)
        elif isinstance(event, TouchExpired):
            if event.generation == self._touch_generation:
                signals.touch_pulse_active = False
            else:
                logger.debug("Ignoring stale touch expiry #%d", event.generation)
        elif isinstance(event, TouchShutdown):
            logger.info("Manual shutdown requested")
            signals.touch_pulse_active = False
            self.timer.force_idle()
            shutdown = True
        elif isinstance(event, CountdownTick):
            countdown = True
        else:
            raise TypeError(f"Unknown event: {event!r}")

        presence = self.aggregator.verdict(signals, st.schedule)
        st.presence = PresenceState(presence=presence)

        if countdown:
            intent = self.timer.tick(presence, st.schedule)
        else:
            intent = self.timer.evaluate(presence, st.schedule)
        if shutdown and intent is None:
            intent = False

        return PassResult(
            snapshot=self.snapshot(),
            intent=intent,
            phase=self.timer.phase,
            touch_pulse_active=signals.touch_pulse_active,
            touch_generation=self._touch_generation,
        )

    def snapshot(self) -> StateSnapshot:
        st = self.state
        win = st.schedule.active_always_on_window
        return StateSnapshot(
            presence=st.presence.presence,
            counter_seconds=st.timer.counter_seconds,
            dimmed=st.timer.dimmed,
            always_on_active=st.schedule.always_on_active,
            ignore_active=st.schedule.ignore_active,
            always_on_total=win.total_seconds if win else None,
            always_on_seconds_left=max(0, win.seconds_remaining) if win else None,
        )
