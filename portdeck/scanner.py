import logging
import re
from typing import List, Set, Tuple

from .config import in_service_range
from .models import Service
from .system import SystemFacility

logger = logging.getLogger(__name__)

PORT_RE = re.compile(r":(\d+)\s+\(LISTEN\)")
ADDRESS_RE = re.compile(r"\s([\d.*:\[\]]+:\d+)\s+\(LISTEN\)")


def parse_listeners(output: str) -> List[Service]:
    """Turn ``lsof -iTCP -sTCP:LISTEN -nP`` output into sorted services.

    Malformed lines are skipped rather than failing the whole scan, since the
    column layout drifts between lsof versions.
    """
    services: List[Service] = []
    seen: Set[Tuple[str, int]] = set()
    for line in output.splitlines()[1:]:
        if not line.strip():
            continue
        port_match = PORT_RE.search(line)
        if not port_match:
            continue
        port = int(port_match.group(1))
        if not in_service_range(port):
            continue
        fields = line.split()
        if len(fields) < 2:
            continue
        name, pid = fields[0], fields[1]
        address_match = ADDRESS_RE.search(line)
        address = address_match.group(1) if address_match else f"*:{port}"
        key = (pid, port)
        if key in seen:
            continue
        seen.add(key)
        services.append(Service(name=name, pid=pid, port=port, address=address))
    services.sort(key=lambda service: service.port)
    return services


class PortScanner:
    def __init__(self, system: SystemFacility) -> None:
        self.system = system

    def discover(self) -> List[Service]:
        output = self.system.enumerate_listeners()
        services = parse_listeners(output)
        logger.debug("Discovered %d services", len(services))
        return services
