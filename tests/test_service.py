"""Serialized decision loop with real asyncio timing."""

import asyncio

import pytest

from conftest import MONDAY, make_engine

from presence_control.domain.events import ScheduleTick, SensorEvent, SensorEventKind, TouchShutdown
from presence_control.drivers.command_sim import SimulatedCommandRunner
from presence_control.sensors.simulated_presence_sensor import SimulatedPresenceSensor
from presence_control.services.actuator import ScreenActuator
from presence_control.services.presence_service import PresenceService
from presence_control.services.publisher import StatePublisher
from presence_control.services.sensor_poller import SensorPoller

PRESENT = SensorEvent(SensorEventKind.PRESENT)
ABSENT = SensorEvent(SensorEventKind.ABSENT)


def build_service(tick_seconds: float = 3600, **kwargs):
    runner = SimulatedCommandRunner()
    engine = make_engine(counter_timeout=kwargs.pop("counter_timeout", 120), auto_dimmer_timeout=0)
    service = PresenceService(
        engine=engine,
        actuator=ScreenActuator(runner, on_command="on", off_command="off"),
        publisher=StatePublisher(),
        tick_seconds=tick_seconds,
        touch_pulse_seconds=kwargs.pop("touch_pulse_seconds", 0.1),
        clock=lambda: MONDAY,
        **kwargs,
    )
    return service, runner


@pytest.mark.asyncio
async def test_touch_pulse_expires_after_100ms() -> None:
    service, runner = build_service()
    await service.start()
    try:
        assert service.touch("click") is True
        await service.drain()
        assert service.last_result.snapshot.presence is True
        assert service.last_result.snapshot.counter_seconds == 120

        await asyncio.sleep(0.25)
        await service.drain()
        assert service.last_result.snapshot.presence is False
        assert service.last_result.snapshot.counter_seconds == 120
        assert runner.commands == ["on"]
    finally:
        await service.stop()


@pytest.mark.asyncio
async def test_sensor_cancels_pending_touch_pulse() -> None:
    service, runner = build_service()
    await service.start()
    try:
        service.touch("click")
        await service.drain()
        await asyncio.sleep(0.05)
        service.submit(PRESENT)
        await service.drain()
        assert service.last_result.touch_pulse_active is False

        await asyncio.sleep(0.2)
        await service.drain()
        snap = service.last_result.snapshot
        assert snap.presence is True
        assert snap.counter_seconds == 120
        assert runner.commands == ["on"]
    finally:
        await service.stop()


@pytest.mark.asyncio
async def test_repeated_signal_does_not_retrigger_actuator() -> None:
    service, runner = build_service()
    await service.start()
    try:
        for _ in range(3):
            service.submit(PRESENT)
        for _ in range(3):
            service.submit(ABSENT)
        await service.drain()
        await asyncio.sleep(0.01)
        assert runner.commands == ["on"]
    finally:
        await service.stop()


@pytest.mark.asyncio
async def test_countdown_ticker_switches_off() -> None:
    service, runner = build_service(tick_seconds=0.02, counter_timeout=3)
    queue = service.publisher.subscribe()
    await service.start()
    try:
        service.submit(PRESENT)
        service.submit(ABSENT)
        await asyncio.sleep(0.3)
        await service.drain()
        await asyncio.sleep(0.01)

        assert service.last_result.snapshot.counter_seconds == 0
        assert runner.commands == ["on", "off"]
        assert queue.qsize() > 0
    finally:
        await service.stop()


@pytest.mark.asyncio
async def test_touch_disabled_and_toggle() -> None:
    service, _ = build_service(touch_enabled=False)
    assert service.touch("click") is False

    service, runner = build_service(shutdown_command="vnc disconnect", touch_pulse_seconds=5.0)
    await service.start()
    try:
        service.touch("toggle")
        await service.drain()
        assert service.last_result.snapshot.presence is True

        service.touch("toggle")
        await service.drain()
        await asyncio.sleep(0.01)
        assert service.last_result.snapshot.presence is False
        assert service.last_result.snapshot.counter_seconds == 0
        assert runner.commands == ["on", "off", "vnc disconnect"]
    finally:
        await service.stop()

    with pytest.raises(ValueError):
        service.touch("longclick")


@pytest.mark.asyncio
async def test_shutdown_command_skipped_while_screen_stays_on() -> None:
    runner = SimulatedCommandRunner()
    service = PresenceService(
        engine=make_engine(always_on_windows=[{"from": "11:00", "to": "13:00"}]),
        actuator=ScreenActuator(runner, on_command="on", off_command="off"),
        publisher=StatePublisher(),
        shutdown_command="vnc disconnect",
        clock=lambda: MONDAY,
    )
    service.process(ScheduleTick(MONDAY))

    result = service.process(TouchShutdown())
    await asyncio.sleep(0.01)

    assert result.intent is True
    assert runner.commands == ["on"]


@pytest.mark.asyncio
async def test_sensor_poller_reports_levels_and_faults() -> None:
    events = []
    sensor = SimulatedPresenceSensor()
    poller = SensorPoller(sensor, events.append, poll_seconds=3600)

    sensor.set_present(True)
    assert (await poller.poll_once()).kind is SensorEventKind.PRESENT
    sensor.disable()
    event = await poller.poll_once()

    assert event.kind is SensorEventKind.ERROR
    assert "disabled" in event.detail
    assert [e.kind for e in events] == [SensorEventKind.PRESENT, SensorEventKind.ERROR]
