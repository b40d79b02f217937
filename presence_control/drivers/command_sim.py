from __future__ import annotations
import logging

from ..domain.errors import ActuatorFault

logger = logging.getLogger(__name__)


class SimulatedCommandRunner:
    runner_id = "sim"

    def __init__(self, fail: bool = False) -> None:
        self.commands: list[str] = []
        self.fail = fail

    async def run(self, command: str) -> int:
        self.commands.append(command)
        logger.info("SCREEN command=%r", command)
        if self.fail:
            raise ActuatorFault(command, 1, "simulated failure")
        return 0
