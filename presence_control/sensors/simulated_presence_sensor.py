from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock

from .base import PresenceSensor
from ..domain.errors import SensorFault


@dataclass
class PatternConfig:
    type: str = "manual"     # manual|cycle
    present_s: float = 30.0  # cycle: seconds with presence
    absent_s: float = 150.0  # cycle: seconds without


class SimulatedPresenceSensor(PresenceSensor):
    def __init__(self, sensor_id: str = "presence_sim"):
        self._sensor_id = sensor_id
        self._lock = Lock()
        self._enabled = True
        self._present = False
        self._pattern = PatternConfig()
        self._t0 = time.monotonic()

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False

    def set_present(self, present: bool) -> None:
        with self._lock:
            self._pattern = PatternConfig(type="manual")
            self._present = bool(present)

    def set_pattern(self, cfg: PatternConfig) -> None:
        with self._lock:
            self._pattern = cfg
            self._t0 = time.monotonic()

    def status(self) -> dict:
        with self._lock:
            return {
                "enabled": self._enabled,
                "present": self._present,
                "pattern": self._pattern.__dict__,
            }

    def read(self) -> bool:
        with self._lock:
            if not self._enabled:
                raise SensorFault("Simulated sensor disabled")
            cfg = self._pattern
            if cfg.type != "cycle":
                return self._present
            t0 = self._t0

        period = max(cfg.present_s + cfg.absent_s, 1.0)
        return ((time.monotonic() - t0) % period) < cfg.present_s
