from __future__ import annotations
import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from ..core.timeutil import now_local
from ..domain.engine import DecisionEngine
from ..domain.events import (
    CountdownTick,
    Event,
    ScheduleTick,
    TouchExpired,
    TouchPulse,
    TouchShutdown,
)
from ..domain.models import PassResult
from .actuator import ScreenActuator
from .publisher import StatePublisher

logger = logging.getLogger(__name__)

TOUCH_KINDS = ("click", "dblclick", "toggle")


class PresenceService:
    """Serializes every event through the decision engine.

    Producers call `submit`; a single worker task drains the inbox and runs
    engine -> actuator -> publisher to completion for each event.
    """

    def __init__(
        self,
        engine: DecisionEngine,
        actuator: ScreenActuator,
        publisher: StatePublisher,
        *,
        tick_seconds: float = 1.0,
        touch_pulse_seconds: float = 0.1,
        touch_enabled: bool = True,
        shutdown_command: str = "",
        clock: Callable[[], datetime] = now_local,
    ) -> None:
        self._engine = engine
        self._actuator = actuator
        self._publisher = publisher
        self._tick_seconds = tick_seconds
        self._touch_pulse_seconds = touch_pulse_seconds
        self._shutdown_command = shutdown_command
        self._clock = clock
        self.touch_enabled = touch_enabled

        self._inbox: asyncio.Queue = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []
        self._touch_task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

        self.last_result: Optional[PassResult] = None

    @property
    def engine(self) -> DecisionEngine:
        return self._engine

    @property
    def actuator(self) -> ScreenActuator:
        return self._actuator

    @property
    def publisher(self) -> StatePublisher:
        return self._publisher

    async def start(self) -> None:
        self._stop.clear()
        self.submit(ScheduleTick(now=self._clock()))
        self._tasks = [
            asyncio.create_task(self._run(), name="decision_loop"),
            asyncio.create_task(
                self._ticker(lambda: ScheduleTick(now=self._clock())), name="schedule_ticker"
            ),
            asyncio.create_task(self._ticker(CountdownTick), name="countdown_ticker"),
        ]

    async def stop(self) -> None:
        self._stop.set()
        self._cancel_touch_expiry()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Decision loop stopped")

    def submit(self, event: Event) -> None:
        self._inbox.put_nowait(event)

    async def drain(self) -> None:
        """Wait until every submitted event has been processed."""
        await self._inbox.join()

    def touch(self, kind: str) -> bool:
        if kind not in TOUCH_KINDS:
            raise ValueError(f"Unknown touch type: {kind}")
        if not self.touch_enabled:
            logger.info("Touch %s ignored (touch input disabled)", kind)
            return False

        logger.info("Touch event received: %s", kind)
        if kind == "toggle":
            presence = self.last_result.snapshot.presence if self.last_result else False
            kind = "dblclick" if presence else "click"
        self.submit(TouchShutdown() if kind == "dblclick" else TouchPulse())
        return True

    def process(self, event: Event) -> PassResult:
        """One full pass. Must only be called from the decision loop (or tests)."""
        result = self._engine.handle(event)

        if isinstance(event, TouchPulse):
            self._arm_touch_expiry(result.touch_generation)
        elif not result.touch_pulse_active:
            self._cancel_touch_expiry()

        self._actuator.apply(result.intent)
        if isinstance(event, TouchShutdown) and result.intent is False and self._shutdown_command:
            self._actuator.dispatch(self._shutdown_command)

        self._publisher.publish(result.snapshot)
        self.last_result = result
        return result

    async def _run(self) -> None:
        logger.info(
            "Decision loop started (tick_seconds=%s touch_pulse_seconds=%s)",
            self._tick_seconds,
            self._touch_pulse_seconds,
        )
        while True:
            event = await self._inbox.get()
            try:
                self.process(event)
            except Exception as e:
                logger.exception("Decision pass failed for %r: %s", event, e)
            finally:
                self._inbox.task_done()

    async def _ticker(self, make_event: Callable[[], Event]) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._tick_seconds)
            except asyncio.TimeoutError:
                self.submit(make_event())

    def _arm_touch_expiry(self, generation: int) -> None:
        self._cancel_touch_expiry()
        self._touch_task = asyncio.get_running_loop().create_task(
            self._expire_touch(generation), name="touch_pulse"
        )

    def _cancel_touch_expiry(self) -> None:
        if self._touch_task is not None and not self._touch_task.done():
            self._touch_task.cancel()
        self._touch_task = None

    async def _expire_touch(self, generation: int) -> None:
        await asyncio.sleep(self._touch_pulse_seconds)
        self.submit(TouchExpired(generation=generation))
