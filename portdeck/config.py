import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

PORT_RANGES: Tuple[Tuple[int, int], ...] = ((8000, 8999), (9000, 9999))
STOP_TIMEOUT = 3.0
RELEASE_DELAY = 0.5
SETTLE_DELAY = 1.0
RELAUNCH_SHELL = "bash"
COMMAND_TIMEOUT = 10
REFRESH_INTERVAL = 2.0
REFRESH_MIN_INTERVAL = 0.2
ACTION_LOG_LIMIT = 500
ACTION_LOG_PATH = Path.home() / ".portdeck_actions.jsonl"
EXPORT_DIR = Path.cwd() / "exports"
LOG_LEVEL = "WARNING"
ENV_PREFIX = "PORTDECK_"


def in_service_range(port: int) -> bool:
    return any(low <= port <= high for low, high in PORT_RANGES)


@dataclass
class Settings:
    stop_timeout: float = STOP_TIMEOUT
    release_delay: float = RELEASE_DELAY
    settle_delay: float = SETTLE_DELAY
    shell: str = RELAUNCH_SHELL
    action_log_path: Optional[Path] = ACTION_LOG_PATH
    log_level: str = LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        settings = cls()
        for field_name in ("stop_timeout", "release_delay", "settle_delay"):
            raw = env.get(ENV_PREFIX + field_name.upper())
            if raw is None:
                continue
            value = _parse_seconds(raw)
            if value is None:
                logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, field_name.upper(), raw)
                continue
            setattr(settings, field_name, value)
        shell = env.get(ENV_PREFIX + "SHELL", "").strip()
        if shell:
            settings.shell = shell
        log_path = env.get(ENV_PREFIX + "ACTION_LOG")
        if log_path is not None:
            # an empty value turns the on-disk log off
            settings.action_log_path = Path(log_path).expanduser() if log_path.strip() else None
        level = env.get(ENV_PREFIX + "LOG_LEVEL", "").strip()
        if level:
            settings.log_level = level.upper()
        return settings


def _parse_seconds(raw: str) -> Optional[float]:
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value
