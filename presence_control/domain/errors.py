from __future__ import annotations


class PresenceControlError(Exception):
    """Base class for faults absorbed by the decision engine."""


class SensorFault(PresenceControlError):
    """The presence sensor driver could not produce a level."""


class BusPayloadMalformed(PresenceControlError):
    """A bus message could not be decoded or lacks the occupancy field."""


class BusConnectionFault(PresenceControlError):
    """The message bus connection dropped or could not be established."""


class ActuatorFault(PresenceControlError):
    """A screen command failed to launch or exited non-zero."""

    def __init__(self, command: str, returncode: int | None, detail: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.detail = detail
        msg = f"command {command!r} failed"
        if returncode is not None:
            msg += f" (exit={returncode})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
