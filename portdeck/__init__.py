"""portdeck: discover development services on ports 8000-9999 and stop or restart them."""

__version__ = "0.1.0"

from .config import Settings
from .controller import ProcessController
from .deck import ServiceDeck, parse_pid
from .errors import (
    DiscoveryError,
    InspectionError,
    InvalidPidError,
    PortDeckError,
    ProcessNotFoundError,
    RelaunchError,
    SelfOperationError,
    SignalDispatchError,
)
from .events import ActionLog
from .inspector import ProcessInspector
from .models import ActionRecord, ActionResult, Service
from .scanner import PortScanner, parse_listeners
from .system import PosixSystem, Signal, SystemFacility

__all__ = [
    "__version__",
    "ActionLog",
    "ActionRecord",
    "ActionResult",
    "DiscoveryError",
    "InspectionError",
    "InvalidPidError",
    "PortDeckError",
    "PortScanner",
    "PosixSystem",
    "ProcessController",
    "ProcessInspector",
    "ProcessNotFoundError",
    "RelaunchError",
    "SelfOperationError",
    "Service",
    "ServiceDeck",
    "Settings",
    "Signal",
    "SignalDispatchError",
    "SystemFacility",
    "parse_listeners",
    "parse_pid",
]
