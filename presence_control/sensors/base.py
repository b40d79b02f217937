from __future__ import annotations

from abc import ABC, abstractmethod


class PresenceSensor(ABC):
    """Domain-facing presence sensor abstraction (a polled level)."""

    @property
    @abstractmethod
    def sensor_id(self) -> str:
        ...

    @abstractmethod
    def read(self) -> bool:
        """Return True while presence is detected. Raise SensorFault on failure."""
        ...

    def close(self) -> None:
        return None
