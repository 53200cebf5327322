"""Failure kinds raised by discovery and process lifecycle operations."""

from typing import Optional


class PortDeckError(Exception):
    exit_code = 1

    def __init__(self, message: str, *, pid: Optional[int] = None, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.pid = pid
        self.cause = cause


class DiscoveryError(PortDeckError):
    """Listening sockets could not be enumerated."""


class InspectionError(PortDeckError):
    """The command line of a process could not be read."""


class ProcessNotFoundError(PortDeckError):
    """No process exists with the requested PID."""

    exit_code = 4


class SignalDispatchError(PortDeckError):
    """A termination signal could not be delivered."""


class RelaunchError(PortDeckError):
    """The captured command could not be spawned again."""


class SelfOperationError(PortDeckError):
    """The requested PID is portdeck's own process."""

    exit_code = 3


class InvalidPidError(PortDeckError, ValueError):
    """A PID argument is not a positive integer."""

    exit_code = 2
