from .errors import InspectionError
from .system import SystemFacility


class ProcessInspector:
    def __init__(self, system: SystemFacility) -> None:
        self.system = system

    def command_line_of(self, pid: int) -> str:
        """Full, untruncated command line of ``pid``, as a shell would run it."""
        command = self.system.query_command_line(pid).strip()
        if not command:
            raise InspectionError(f"could not determine command of process {pid}", pid=pid)
        return command
