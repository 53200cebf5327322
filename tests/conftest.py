from typing import Any, Dict, List, Optional, Tuple

import pytest

from portdeck.config import Settings
from portdeck.errors import DiscoveryError, InspectionError, ProcessNotFoundError, RelaunchError, SignalDispatchError
from portdeck.system import Signal

LSOF_HEADER = "COMMAND     PID USER   FD   TYPE             DEVICE SIZE/OFF NODE NAME"


def lsof_output(*lines: str) -> str:
    return "\n".join((LSOF_HEADER,) + lines) + "\n"


class FakeHandle:
    def __init__(self, pid: int) -> None:
        self.pid = pid


class FakeSystem:
    """Records every OS call; behaviour is scripted through attributes."""

    def __init__(self, own: int = 1) -> None:
        self.own = own
        self.listeners = lsof_output()
        self.discovery_error: Optional[DiscoveryError] = None
        self.commands: Dict[int, str] = {}
        self.running: set = set()
        self.exits_on_terminate = True
        self.terminate_error: Optional[SignalDispatchError] = None
        self.kill_error: Optional[SignalDispatchError] = None
        self.spawn_error: Optional[RelaunchError] = None
        self.calls: List[Tuple[Any, ...]] = []
        self.signals: List[Tuple[int, Signal]] = []
        self.spawned: List[str] = []
        self.waits: List[Tuple[int, float]] = []

    def add_process(self, pid: int, command: str = "") -> None:
        self.running.add(pid)
        self.commands[pid] = command

    def own_pid(self) -> int:
        return self.own

    def enumerate_listeners(self) -> str:
        self.calls.append(("enumerate",))
        if self.discovery_error is not None:
            raise self.discovery_error
        return self.listeners

    def query_command_line(self, pid: int) -> str:
        self.calls.append(("inspect", pid))
        if pid not in self.running:
            raise InspectionError(f"ps found no process {pid}", pid=pid)
        return self.commands.get(pid, "")

    def resolve_process(self, pid: int) -> FakeHandle:
        self.calls.append(("resolve", pid))
        if pid not in self.running:
            raise ProcessNotFoundError(f"process {pid} not found", pid=pid)
        return FakeHandle(pid)

    def signal(self, handle: FakeHandle, kind: Signal) -> None:
        self.calls.append(("signal", handle.pid, kind))
        error = self.terminate_error if kind is Signal.TERMINATE else self.kill_error
        if error is not None:
            raise error
        self.signals.append((handle.pid, kind))
        if kind is Signal.KILL or self.exits_on_terminate:
            self.running.discard(handle.pid)

    def wait_for_exit(self, handle: FakeHandle, timeout: float) -> bool:
        self.calls.append(("wait", handle.pid, timeout))
        self.waits.append((handle.pid, timeout))
        return handle.pid not in self.running

    def spawn_detached(self, command: str) -> None:
        self.calls.append(("spawn", command))
        if self.spawn_error is not None:
            raise self.spawn_error
        self.spawned.append(command)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_system() -> FakeSystem:
    return FakeSystem(own=4242)


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(action_log_path=tmp_path / "actions.jsonl")
