from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..domain.errors import ActuatorFault
from ..domain.interfaces import CommandRunner

logger = logging.getLogger(__name__)


class ScreenActuator:
    """Edge-triggered screen switch.

    A command is dispatched only when the intent differs from the last one
    dispatched. Commands run as background tasks; failures are logged and
    never fed back into the decision state.
    """

    def __init__(self, runner: CommandRunner, on_command: str, off_command: str) -> None:
        self._runner = runner
        self._on_command = on_command
        self._off_command = off_command
        self._last: Optional[bool] = None
        self._pending: set[asyncio.Task] = set()

    @property
    def state(self) -> Optional[bool]:
        return self._last

    def apply(self, intent: Optional[bool]) -> bool:
        """Returns True when a switch was dispatched."""
        if intent is None or intent == self._last:
            return False
        self._last = intent
        logger.info("Screen -> %s", "ON" if intent else "OFF")
        self.dispatch(self._on_command if intent else self._off_command)
        return True

    def dispatch(self, command: str) -> None:
        if not command:
            logger.debug("No command configured, nothing to run")
            return
        task = asyncio.get_running_loop().create_task(self._invoke(command), name="screen_command")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _invoke(self, command: str) -> None:
        try:
            code = await self._runner.run(command)
            logger.info("Executed screen command %r (exit=%s)", command, code)
        except ActuatorFault as e:
            logger.warning("Screen command failed: %s", e)
        except Exception:
            logger.exception("Screen command %r crashed", command)
