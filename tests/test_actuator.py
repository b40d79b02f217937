"""Screen actuator edge triggering and command runners."""

import asyncio
import logging

import pytest

from presence_control.domain.errors import ActuatorFault
from presence_control.drivers.command_shell import ShellCommandRunner
from presence_control.drivers.command_sim import SimulatedCommandRunner
from presence_control.services.actuator import ScreenActuator


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_commands_run_only_on_intent_change() -> None:
    runner = SimulatedCommandRunner()
    actuator = ScreenActuator(runner, on_command="screen on", off_command="screen off")

    assert actuator.apply(True) is True
    assert actuator.apply(True) is False
    assert actuator.apply(None) is False
    assert actuator.apply(False) is True
    assert actuator.apply(False) is False
    await settle()

    assert runner.commands == ["screen on", "screen off"]
    assert actuator.state is False


@pytest.mark.asyncio
async def test_failed_command_does_not_revert_state(caplog) -> None:
    runner = SimulatedCommandRunner(fail=True)
    actuator = ScreenActuator(runner, on_command="screen on", off_command="screen off")

    with caplog.at_level(logging.WARNING):
        actuator.apply(True)
        await settle()

    assert actuator.state is True
    assert "Screen command failed" in caplog.text
    assert actuator.apply(True) is False


@pytest.mark.asyncio
async def test_empty_command_still_tracks_state() -> None:
    runner = SimulatedCommandRunner()
    actuator = ScreenActuator(runner, on_command="", off_command="")

    assert actuator.apply(True) is True
    await settle()

    assert runner.commands == []
    assert actuator.state is True


@pytest.mark.asyncio
async def test_shell_runner_reports_exit_status() -> None:
    runner = ShellCommandRunner()

    assert await runner.run("exit 0") == 0
    with pytest.raises(ActuatorFault) as exc:
        await runner.run("echo nope >&2; exit 3")

    assert exc.value.returncode == 3
    assert "nope" in str(exc.value)
