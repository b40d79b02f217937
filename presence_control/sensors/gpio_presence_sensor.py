from __future__ import annotations

import logging

from .base import PresenceSensor
from ..domain.errors import SensorFault

logger = logging.getLogger(__name__)


class GpioPresenceSensor(PresenceSensor):
    """PIR sensor on a GPIO input line, read through gpiozero."""

    def __init__(self, pin: int = 4, sensor_id: str = "pir_gpio"):
        self._pin = pin
        self._sensor_id = sensor_id
        self._device = None

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    def _ensure_open(self):
        if self._device is not None:
            return self._device
        from gpiozero import DigitalInputDevice
        from gpiozero.exc import GPIOZeroError

        try:
            self._device = DigitalInputDevice(self._pin, pull_up=False)
        except GPIOZeroError as e:
            raise SensorFault(f"Unable to open GPIO{self._pin}: {e}") from e
        logger.info("PIR sensor opened on GPIO%d", self._pin)
        return self._device

    def read(self) -> bool:
        device = self._ensure_open()
        try:
            return bool(device.value)
        except Exception as e:
            # Reopen on the next poll
            self.close()
            raise SensorFault(f"GPIO{self._pin} read failed: {e}") from e

    def close(self) -> None:
        if self._device is None:
            return
        try:
            self._device.close()
        finally:
            self._device = None
