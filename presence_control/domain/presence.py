from __future__ import annotations
import json
import logging
from typing import Any, Union

from .errors import BusPayloadMalformed
from .events import SensorEvent, SensorEventKind
from .models import ScheduleState, SignalState
from ..core.config import FusionMode

logger = logging.getLogger(__name__)


def coerce_occupancy(value: Any) -> bool:
    """true, 1, "1" and "true" mean occupied; everything else does not."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value in ("1", "true")
    return False


def decode_bus_payload(payload: Union[bytes, str], field: str) -> bool:
    try:
        text = payload.decode() if isinstance(payload, (bytes, bytearray)) else payload
        data = json.loads(text)
    except (UnicodeDecodeError, TypeError, ValueError) as e:
        raise BusPayloadMalformed(f"unparsable payload: {e}") from e
    if not isinstance(data, dict):
        raise BusPayloadMalformed(f"expected a JSON object, got {type(data).__name__}")
    if field not in data:
        raise BusPayloadMalformed(f"missing occupancy field {field!r}")
    return coerce_occupancy(data[field])


class PresenceAggregator:
    def __init__(self, mode: FusionMode, occupancy_field: str = "presence") -> None:
        self.mode = mode
        self.occupancy_field = occupancy_field
        self._last_verdict = False

    def apply_sensor(self, signals: SignalState, event: SensorEvent) -> None:
        if event.kind is SensorEventKind.PRESENT:
            signals.sensor_level = True
            self._cancel_touch(signals, "sensor")
        elif event.kind is SensorEventKind.ABSENT:
            signals.sensor_level = False
        else:
            logger.warning("Sensor fault, treating as absent: %s", event.detail or "unknown error")
            signals.sensor_level = False

    def apply_bus(self, signals: SignalState, topic: str, payload: Union[bytes, str]) -> bool:
        """Update bus_presence from a raw message. Returns False if it was dropped."""
        try:
            present = decode_bus_payload(payload, self.occupancy_field)
        except BusPayloadMalformed as e:
            logger.warning("Dropping bus message on %s: %s", topic, e)
            return False
        logger.debug("Bus message on %s: presence=%s", topic, present)
        signals.bus_presence = present
        if present:
            self._cancel_touch(signals, "bus")
        return True

    def _cancel_touch(self, signals: SignalState, source: str) -> None:
        if signals.touch_pulse_active:
            logger.debug("Touch pulse cancelled by %s presence", source)
        signals.touch_pulse_active = False

    def mode_signal(self, signals: SignalState) -> bool:
        if self.mode is FusionMode.SENSOR:
            return signals.sensor_level
        if self.mode is FusionMode.BUS:
            return signals.bus_presence
        return signals.sensor_level or signals.bus_presence

    def verdict(self, signals: SignalState, schedule: ScheduleState) -> bool:
        if schedule.always_on_active:
            presence = True
        elif schedule.ignore_active:
            presence = False
        else:
            presence = self.mode_signal(signals) or signals.touch_pulse_active

        if presence != self._last_verdict:
            logger.info(
                "Presence %s (sensor=%s bus=%s touch=%s always_on=%s ignore=%s)",
                "detected" if presence else "lost",
                signals.sensor_level,
                signals.bus_presence,
                signals.touch_pulse_active,
                schedule.always_on_active,
                schedule.ignore_active,
            )
            self._last_verdict = presence
        return presence
