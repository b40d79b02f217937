from __future__ import annotations
import asyncio
import logging
from typing import Callable, Optional

from ..domain.events import Event, SensorEvent, SensorEventKind
from ..sensors.base import PresenceSensor

logger = logging.getLogger(__name__)


class SensorPoller:
    """Polls the level sensor and forwards PRESENT/ABSENT/ERROR events.

    Every poll is forwarded, not only edges; the engine is idempotent on
    repeated levels.
    """

    def __init__(
        self,
        sensor: PresenceSensor,
        submit: Callable[[Event], None],
        poll_seconds: float = 1.0,
    ) -> None:
        self._sensor = sensor
        self._submit = submit
        self._poll_seconds = poll_seconds
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self._last_kind: Optional[SensorEventKind] = None

    async def start(self) -> None:
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="sensor_poller")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            await self._task
            self._task = None
        self._sensor.close()

    async def poll_once(self) -> SensorEvent:
        loop = asyncio.get_running_loop()
        try:
            # Driver reads are blocking; keep them off the event loop
            present = await loop.run_in_executor(None, self._sensor.read)
            event = SensorEvent(SensorEventKind.PRESENT if present else SensorEventKind.ABSENT)
        except Exception as e:
            event = SensorEvent(SensorEventKind.ERROR, detail=str(e))

        if event.kind != self._last_kind:
            if event.kind is SensorEventKind.ERROR:
                logger.warning("Sensor %s read FAILED: %s", self._sensor.sensor_id, event.detail)
            else:
                logger.info("Sensor %s: %s", self._sensor.sensor_id, event.kind.value)
            self._last_kind = event.kind

        self._submit(event)
        return event

    async def _run(self) -> None:
        logger.info(
            "Sensor poller started (sensor=%s poll_seconds=%s)",
            self._sensor.sensor_id,
            self._poll_seconds,
        )
        while not self._stop.is_set():
            await self.poll_once()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._poll_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("Sensor poller stopped")
