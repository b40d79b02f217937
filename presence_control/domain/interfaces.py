from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class CommandRunner(Protocol):
    runner_id: str

    async def run(self, command: str) -> int:
        """Run a shell command and return its exit status. Raise ActuatorFault on failure."""
        ...

