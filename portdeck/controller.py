import logging
import time
from typing import Callable, Optional

from .config import Settings
from .errors import RelaunchError, SelfOperationError, SignalDispatchError
from .inspector import ProcessInspector
from .models import ActionResult
from .system import Signal, SystemFacility

logger = logging.getLogger(__name__)


class ProcessController:
    """Stops and relaunches processes by PID.

    ``stop`` sends SIGTERM and escalates to a single SIGKILL once
    ``settings.stop_timeout`` elapses. ``restart`` reads the command line
    first, because it cannot be recovered once the process is gone, then
    stops the process and spawns the command again detached.
    """

    def __init__(
        self,
        system: SystemFacility,
        settings: Optional[Settings] = None,
        *,
        inspector: Optional[ProcessInspector] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.system = system
        self.settings = settings or Settings()
        self.inspector = inspector or ProcessInspector(system)
        self._sleep = sleep

    def stop(self, pid: int) -> ActionResult:
        self._refuse_self(pid, "stop")
        handle = self.system.resolve_process(pid)
        self.system.signal(handle, Signal.TERMINATE)
        if self.system.wait_for_exit(handle, self.settings.stop_timeout):
            logger.info("Stopped process %d", pid)
            return ActionResult(action="stop", pid=pid)
        try:
            self.system.signal(handle, Signal.KILL)
        except SignalDispatchError as exc:
            logger.warning("Force kill of %d failed: %s", pid, exc)
        else:
            logger.info("Killed process %d after %.1fs", pid, self.settings.stop_timeout)
        return ActionResult(action="stop", pid=pid, forced=True)

    def restart(self, pid: int) -> ActionResult:
        self._refuse_self(pid, "restart")
        command = self.inspector.command_line_of(pid)
        stopped = self.stop(pid)
        logger.info("Stopped process %d (command: %s), restarting...", pid, command)
        self._sleep(self.settings.release_delay)
        try:
            self.system.spawn_detached(command)
        except RelaunchError as exc:
            exc.pid = pid
            raise
        logger.info("Restarted: %s", command)
        self._sleep(self.settings.settle_delay)
        return ActionResult(action="restart", pid=pid, forced=stopped.forced, command=command)

    def _refuse_self(self, pid: int, action: str) -> None:
        if pid == self.system.own_pid():
            raise SelfOperationError(f"cannot {action} portdeck itself (pid {pid})", pid=pid)
