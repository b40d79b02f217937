from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.models import RecurringWindow


class FusionMode(str, Enum):
    SENSOR = "SENSOR"
    BUS = "BUS"
    SENSOR_OR_BUS = "SENSOR_OR_BUS"

    @property
    def uses_sensor(self) -> bool:
        return self in (FusionMode.SENSOR, FusionMode.SENSOR_OR_BUS)

    @property
    def uses_bus(self) -> bool:
        return self in (FusionMode.BUS, FusionMode.SENSOR_OR_BUS)


# Names used by older mirror configs
_MODE_ALIASES = {
    "SENSOR_ONLY": FusionMode.SENSOR,
    "PIR": FusionMode.SENSOR,
    "BUS_ONLY": FusionMode.BUS,
    "MQTT": FusionMode.BUS,
    "PIR_MQTT": FusionMode.SENSOR_OR_BUS,
}


def parse_hhmm(s: str) -> int:
    """Return minute-of-day for an "HH:MM" string."""
    try:
        h, m = s.split(":")
        hour, minute = int(h), int(m)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time format: {s!r}, expected HH:MM")
    if hour < 0 or hour > 23 or minute < 0 or minute > 59:
        raise ValueError(f"Invalid time: {s!r}")
    return hour * 60 + minute


class WindowConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start: str = Field(alias="from")  # "HH:MM"
    end: str = Field(alias="to")      # "HH:MM"
    days: Optional[list[int]] = None  # 0=Sunday .. 6=Saturday, None = every day

    @field_validator("start", "end")
    @classmethod
    def _check_time(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @field_validator("days")
    @classmethod
    def _check_days(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        if v is None:
            return v
        bad = [d for d in v if d < 0 or d > 6]
        if bad:
            raise ValueError(f"Weekdays must be within 0..6 (0=Sunday), got {bad}")
        return v

    def to_window(self) -> RecurringWindow:
        weekdays = frozenset(range(7)) if self.days is None else frozenset(self.days)
        return RecurringWindow(
            start_minute=parse_hhmm(self.start),
            end_minute=parse_hhmm(self.end),
            weekdays=weekdays,
        )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="PRESENCE_", extra="ignore")

    app_name: str = "Presence Screen Control"
    timezone: str = "Europe/Berlin"

    # Decision
    mode: FusionMode = FusionMode.SENSOR_OR_BUS
    counter_timeout: int = Field(default=120, gt=0)
    auto_dimmer: bool = True
    auto_dimmer_timeout: int = Field(default=60, ge=0)

    # Recurring windows, e.g. [{"from": "23:00", "to": "05:00", "days": [1]}]
    ignore_windows: list[WindowConfig] = Field(default_factory=list)
    always_on_windows: list[WindowConfig] = Field(default_factory=list)

    # Screen commands (empty = do nothing)
    on_command: str = ""
    off_command: str = ""
    shutdown_command: str = ""  # runs after a manual touch shutdown

    # Touch input
    touch_enabled: bool = True
    touch_pulse_seconds: float = Field(default=0.1, gt=0)

    # Tickers
    tick_seconds: float = Field(default=1.0, gt=0)

    # Sensor mode: "sim" or "gpio"
    sensor_mode: str = "sim"
    sensor_gpio_pin: int = 4  # BCM numbering
    sensor_poll_seconds: float = Field(default=1.0, gt=0)

    # Actuator mode: "shell" or "sim"
    actuator_mode: str = "shell"

    # Message bus (MQTT)
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_username: Optional[str] = None
    mqtt_password: Optional[str] = None
    bus_topic: str = "sensor/presence"
    bus_occupancy_field: str = "presence"

    # Logging: DEBUG ~ "complex", INFO ~ "simple", WARNING ~ "off"
    log_level: str = "INFO"
    log_file: str = "presence_control.log"

    # HTTP server (CLI entry point)
    host: str = "0.0.0.0"
    port: int = 8080

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_alias(cls, v):
        if isinstance(v, str):
            key = v.strip().upper()
            return _MODE_ALIASES.get(key, key)
        return v

    @field_validator("sensor_mode", "actuator_mode")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def _check_dimmer(self) -> "Settings":
        if self.auto_dimmer_timeout > self.counter_timeout:
            raise ValueError(
                f"auto_dimmer_timeout ({self.auto_dimmer_timeout}) must not exceed "
                f"counter_timeout ({self.counter_timeout})"
            )
        return self

    def ignore_recurring_windows(self) -> list[RecurringWindow]:
        return [w.to_window() for w in self.ignore_windows]

    def always_on_recurring_windows(self) -> list[RecurringWindow]:
        return [w.to_window() for w in self.always_on_windows]


settings = Settings()
