from __future__ import annotations

import asyncio
import logging

from ..domain.errors import ActuatorFault

logger = logging.getLogger(__name__)


class ShellCommandRunner:
    """Runs operator-supplied screen commands through the system shell."""

    runner_id = "shell"

    async def run(self, command: str) -> int:
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ActuatorFault(command, None, str(e)) from e

        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            raise ActuatorFault(command, proc.returncode, detail)

        out = stdout.decode(errors="replace").strip()
        if out:
            logger.debug("Command output: %s", out)
        return proc.returncode
