import json
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Deque, List, Optional

from .config import ACTION_LOG_LIMIT, EXPORT_DIR
from .models import ActionRecord

logger = logging.getLogger(__name__)


class ActionLog:
    def __init__(self, limit: int = ACTION_LOG_LIMIT, file_path: Optional[Path] = None) -> None:
        self._records: Deque[ActionRecord] = deque(maxlen=limit)
        self._lock = threading.Lock()
        self._file_path = file_path

    @property
    def file_path(self) -> Optional[Path]:
        return self._file_path

    def add(self, record: ActionRecord) -> None:
        with self._lock:
            self._records.append(record)
        if self._file_path is not None:
            self._append_to_disk(record)

    def recent(self, count: int) -> List[ActionRecord]:
        if count <= 0:
            return []
        with self._lock:
            return list(self._records)[-count:]

    def export(self, directory: Optional[Path] = None) -> Path:
        target = directory or EXPORT_DIR
        target.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        path = target / f"portdeck_actions_{now}.json"
        with self._lock:
            payload = [record.as_dict() for record in self._records]
        with path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, sort_keys=True)
        return path

    def _append_to_disk(self, record: ActionRecord) -> None:
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with self._file_path.open("a", encoding="utf-8") as handle:
                handle.write(record.to_json())
                handle.write("\n")
        except OSError as exc:
            logger.warning("Could not write action log %s: %s", self._file_path, exc)
