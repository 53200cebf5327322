"""OS access used by the scanner and the process controller.

Everything that touches real processes goes through a ``SystemFacility`` so
the discovery and lifecycle logic can run against a recorded double.
"""

import enum
import logging
import os
import subprocess
import threading
from typing import Any, List, Protocol

import psutil

from .config import COMMAND_TIMEOUT, RELAUNCH_SHELL
from .errors import DiscoveryError, InspectionError, ProcessNotFoundError, RelaunchError, SignalDispatchError

logger = logging.getLogger(__name__)

LSOF_COMMAND = ["lsof", "-iTCP", "-sTCP:LISTEN", "-nP"]


class Signal(enum.Enum):
    TERMINATE = "terminate"
    KILL = "kill"


class SystemFacility(Protocol):
    def own_pid(self) -> int:
        ...

    def enumerate_listeners(self) -> str:
        ...

    def query_command_line(self, pid: int) -> str:
        ...

    def resolve_process(self, pid: int) -> Any:
        ...

    def signal(self, handle: Any, kind: Signal) -> None:
        ...

    def wait_for_exit(self, handle: Any, timeout: float) -> bool:
        ...

    def spawn_detached(self, command: str) -> None:
        ...


class PosixSystem:
    """lsof/ps for inspection, psutil for process handles and signals."""

    def __init__(self, shell: str = RELAUNCH_SHELL, command_timeout: float = COMMAND_TIMEOUT) -> None:
        self.shell = shell
        self.command_timeout = command_timeout

    def own_pid(self) -> int:
        return os.getpid()

    def enumerate_listeners(self) -> str:
        try:
            return self._run_command(LSOF_COMMAND)
        except FileNotFoundError as exc:
            raise DiscoveryError("lsof is not installed", cause=exc) from exc
        except subprocess.CalledProcessError as exc:
            raise DiscoveryError(f"lsof failed with exit status {exc.returncode}", cause=exc) from exc
        except (subprocess.SubprocessError, OSError) as exc:
            raise DiscoveryError(f"lsof failed: {exc}", cause=exc) from exc

    def query_command_line(self, pid: int) -> str:
        cmd = ["ps", "-ww", "-p", str(pid), "-o", "command="]
        try:
            return self._run_command(cmd)
        except subprocess.CalledProcessError as exc:
            raise InspectionError(f"ps found no process {pid}", pid=pid, cause=exc) from exc
        except (subprocess.SubprocessError, OSError) as exc:
            raise InspectionError(f"ps failed for {pid}: {exc}", pid=pid, cause=exc) from exc

    def resolve_process(self, pid: int) -> psutil.Process:
        try:
            return psutil.Process(pid)
        except psutil.NoSuchProcess as exc:
            raise ProcessNotFoundError(f"process {pid} not found", pid=pid, cause=exc) from exc
        except (psutil.Error, ValueError) as exc:
            raise ProcessNotFoundError(f"process {pid} not found: {exc}", pid=pid, cause=exc) from exc

    def signal(self, handle: psutil.Process, kind: Signal) -> None:
        name = "SIGTERM" if kind is Signal.TERMINATE else "SIGKILL"
        try:
            if kind is Signal.TERMINATE:
                handle.terminate()
            else:
                handle.kill()
        except psutil.AccessDenied as exc:
            raise SignalDispatchError(
                f"permission denied sending {name} to {handle.pid}", pid=handle.pid, cause=exc
            ) from exc
        except psutil.NoSuchProcess as exc:
            raise SignalDispatchError(
                f"failed to send {name} to {handle.pid}: process already finished", pid=handle.pid, cause=exc
            ) from exc
        except psutil.Error as exc:
            raise SignalDispatchError(f"failed to send {name} to {handle.pid}: {exc}", pid=handle.pid, cause=exc) from exc

    def wait_for_exit(self, handle: psutil.Process, timeout: float) -> bool:
        _, alive = psutil.wait_procs([handle], timeout=timeout)
        return not alive

    def spawn_detached(self, command: str) -> None:
        argv = [self.shell, "-c", command + " &"]
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
                close_fds=True,
            )
        except OSError as exc:
            raise RelaunchError(f"failed to relaunch {command!r}: {exc}", cause=exc) from exc
        # the shell exits as soon as it has backgrounded the command
        threading.Thread(target=proc.wait, name=f"portdeck-reap-{proc.pid}", daemon=True).start()

    def _run_command(self, cmd: List[str]) -> str:
        logger.debug("Running %s", " ".join(cmd))
        completed = subprocess.run(
            cmd,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=self.command_timeout,
        )
        return completed.stdout
