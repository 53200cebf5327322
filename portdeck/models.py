import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Service:
    name: str
    pid: str
    port: int
    address: str

    def as_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "pid": self.pid, "port": self.port, "address": self.address}


@dataclass(frozen=True)
class ActionResult:
    action: str
    pid: int
    forced: bool = False
    command: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"action": self.action, "pid": self.pid, "forced": self.forced, "command": self.command}


@dataclass
class ActionRecord:
    timestamp: float
    action: str
    pid: Optional[int]
    outcome: str
    summary: str
    details: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        data = dict(self.details)
        ts_iso = datetime.fromtimestamp(self.timestamp, timezone.utc).isoformat().replace("+00:00", "Z")
        data.update(
            {
                "timestamp": self.timestamp,
                "ts_iso": ts_iso,
                "action": self.action,
                "pid": self.pid,
                "outcome": self.outcome,
                "summary": self.summary,
            }
        )
        return data

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), sort_keys=True)
