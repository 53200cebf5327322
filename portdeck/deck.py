"""Caller-facing service operations: list, stop and restart."""

import logging
import time
from typing import Callable, List, Optional, Union

from .config import Settings
from .controller import ProcessController
from .errors import InvalidPidError, PortDeckError
from .events import ActionLog
from .models import ActionRecord, ActionResult, Service
from .scanner import PortScanner
from .system import PosixSystem, SystemFacility

logger = logging.getLogger(__name__)

PidLike = Union[int, str]


def parse_pid(value: PidLike) -> int:
    """Convert the textual PID of a ``Service`` into a number to act on."""
    if isinstance(value, bool):
        raise InvalidPidError(f"invalid PID {value!r}")
    if isinstance(value, int):
        pid = value
    else:
        try:
            pid = int(str(value).strip())
        except ValueError as exc:
            raise InvalidPidError(f"invalid PID {value!r}", cause=exc) from exc
    if pid <= 0:
        raise InvalidPidError(f"invalid PID {value!r}")
    return pid


class ServiceDeck:
    def __init__(
        self,
        system: Optional[SystemFacility] = None,
        settings: Optional[Settings] = None,
        *,
        action_log: Optional[ActionLog] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or Settings()
        self.system = system if system is not None else PosixSystem(shell=self.settings.shell)
        self.action_log = action_log
        self.scanner = PortScanner(self.system)
        self.controller = ProcessController(self.system, self.settings, sleep=sleep)

    def list_services(self) -> List[Service]:
        return self.scanner.discover()

    def stop_service(self, pid: PidLike) -> ActionResult:
        return self._act("stop", pid, self.controller.stop)

    def restart_service(self, pid: PidLike) -> ActionResult:
        return self._act("restart", pid, self.controller.restart)

    def _act(self, action: str, value: PidLike, operation: Callable[[int], ActionResult]) -> ActionResult:
        pid = parse_pid(value)
        try:
            result = operation(pid)
        except PortDeckError as exc:
            logger.info("%s of %d failed: %s", action.capitalize(), pid, exc)
            self._record(
                ActionRecord(
                    timestamp=time.time(),
                    action=action,
                    pid=pid,
                    outcome="error",
                    summary=f"{action.capitalize()} of PID {pid} failed",
                    details={"error": str(exc), "kind": type(exc).__name__},
                )
            )
            raise
        summary = f"{'Stopped' if action == 'stop' else 'Restarted'} PID {pid}"
        if result.forced:
            summary += " (force-killed)"
        self._record(
            ActionRecord(
                timestamp=time.time(),
                action=action,
                pid=pid,
                outcome="ok",
                summary=summary,
                details={"forced": result.forced, "command": result.command},
            )
        )
        return result

    def _record(self, record: ActionRecord) -> None:
        if self.action_log is not None:
            self.action_log.add(record)
