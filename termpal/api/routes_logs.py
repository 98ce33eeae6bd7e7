import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter

router = APIRouter(prefix="/api/logs", tags=["logs"])

RECENT_RECORDS = 500


class BufferedLogHandler(logging.Handler):
    """Remembers the last ``maxlen`` records so a pane can poll them.

    Each entry carries the bare message; the traceback of a reported chat
    store failure goes into ``exception``.
    """

    def __init__(self, maxlen: int = RECENT_RECORDS):
        super().__init__()
        self._entries: deque[dict] = deque(maxlen=maxlen)
        self._lock = threading.Lock()
        self._tracebacks = logging.Formatter()

    def emit(self, record: logging.LogRecord):
        exception: Optional[str] = None
        if record.exc_info and record.exc_info[1] is not None:
            exception = self._tracebacks.formatException(record.exc_info)
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "exception": exception,
        }
        with self._lock:
            self._entries.append(entry)

    def snapshot(self, level: str = "", logger_prefix: str = "") -> list[dict]:
        with self._lock:
            entries = list(self._entries)
        if level:
            entries = [e for e in entries if e["level"] == level.upper()]
        if logger_prefix:
            entries = [
                e
                for e in entries
                if e["name"] == logger_prefix or e["name"].startswith(logger_prefix + ".")
            ]
        return entries

    def clear(self):
        with self._lock:
            self._entries.clear()


log_handler = BufferedLogHandler()


@router.get("")
async def get_logs(level: str = "", logger: str = ""):
    return {"logs": log_handler.snapshot(level, logger)}


@router.delete("")
async def clear_logs():
    log_handler.clear()
    return {"status": "ok"}
