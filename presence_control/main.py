from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import presence_control.api.routes as routes_module

from .domain.engine import DecisionEngine
from .domain.schedule import find_overlaps
from .drivers.command_shell import ShellCommandRunner
from .drivers.command_sim import SimulatedCommandRunner
from .services.actuator import ScreenActuator
from .services.bus_listener import MqttBusListener
from .services.presence_service import PresenceService
from .services.publisher import StatePublisher
from .services.sensor_poller import SensorPoller

from .sensors.base import PresenceSensor
from .sensors.gpio_presence_sensor import GpioPresenceSensor
from .sensors.simulated_presence_sensor import SimulatedPresenceSensor


logger = logging.getLogger(__name__)


sim_sensor: SimulatedPresenceSensor | None = None

def build_sensor() -> PresenceSensor:
    global sim_sensor

    if settings.sensor_mode == "gpio":
        return GpioPresenceSensor(pin=settings.sensor_gpio_pin)

    # default to sim
    sim_sensor = SimulatedPresenceSensor()
    return sim_sensor


def build_runner():
    if settings.actuator_mode == "sim":
        return SimulatedCommandRunner()
    return ShellCommandRunner()


def check_windows() -> None:
    windows = settings.always_on_recurring_windows()
    for i, j in find_overlaps(windows):
        logger.warning(
            "Always-on windows #%d (%s) and #%d (%s) overlap; the first one wins",
            i, windows[i].label(), j, windows[j].label(),
        )


# --- Singletons ---
publisher = StatePublisher()
service: PresenceService | None = None


def get_service() -> PresenceService:
    assert service is not None
    return service


def get_sim_sensor() -> SimulatedPresenceSensor:
    if sim_sensor is None:
        raise HTTPException(status_code=404, detail="Sim sensor not available (sensor_mode is not 'sim').")
    return sim_sensor


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s (mode=%s)", settings.app_name, settings.mode.value)
    check_windows()

    global service
    engine = DecisionEngine.from_settings(settings)
    actuator = ScreenActuator(build_runner(), settings.on_command, settings.off_command)
    service = PresenceService(
        engine=engine,
        actuator=actuator,
        publisher=publisher,
        tick_seconds=settings.tick_seconds,
        touch_pulse_seconds=settings.touch_pulse_seconds,
        touch_enabled=settings.touch_enabled,
        shutdown_command=settings.shutdown_command,
    )
    await service.start()

    poller: SensorPoller | None = None
    if settings.mode.uses_sensor:
        poller = SensorPoller(build_sensor(), service.submit, settings.sensor_poll_seconds)
        await poller.start()

    bus: MqttBusListener | None = None
    if settings.mode.uses_bus:
        bus = MqttBusListener(
            service.submit,
            topic=settings.bus_topic,
            hostname=settings.mqtt_host,
            port=settings.mqtt_port,
            username=settings.mqtt_username,
            password=settings.mqtt_password,
        )
        await bus.start()

    try:
        yield
    finally:
        if poller:
            await poller.stop()
        if bus:
            await bus.stop()
        await service.stop()

        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_service] = get_service
app.dependency_overrides[routes_module.get_sim_sensor] = get_sim_sensor

app.include_router(api_router, prefix="/api")
