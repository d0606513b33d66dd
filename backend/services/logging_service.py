"""
Logging Service
Rotating file log plus an in-memory buffer of recent records for the /api/logs endpoint
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from collections import deque
from typing import Deque, Dict, Any, List, Optional


LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "..", "logs"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
RING_BUFFER_SIZE = int(os.getenv("RING_BUFFER_SIZE", "2000"))
LOG_FILE = os.path.join(LOG_DIR, "orthogonal.log")


class RingBufferHandler(logging.Handler):
    """Keeps the last maxlen records as plain dicts"""

    def __init__(self, maxlen: int = 2000):
        super().__init__()
        self.buffer: Deque[Dict[str, Any]] = deque(maxlen=maxlen)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.buffer.append({
                "ts": record.created,
                "level": record.levelname,
                "name": record.name,
                "message": record.getMessage(),
                "lineno": record.lineno,
            })
        except Exception:
            self.handleError(record)

    def get_recent(self, limit: int = 500, level: Optional[str] = None) -> List[Dict[str, Any]]:
        records = list(self.buffer)
        if level:
            min_level = logging.getLevelName(level.upper())
            if isinstance(min_level, int):
                records = [r for r in records if logging.getLevelName(r["level"]) >= min_level]
        if limit <= 0:
            return records
        return records[-limit:]


_ring_handler: Optional[RingBufferHandler] = None


def get_ring_handler() -> RingBufferHandler:
    global _ring_handler
    if _ring_handler is None:
        _ring_handler = RingBufferHandler(maxlen=RING_BUFFER_SIZE)
    return _ring_handler


def init_logging() -> None:
    """Attach the file and ring buffer handlers to the root logger (once)."""
    root = logging.getLogger()
    ring = get_ring_handler()
    if ring in root.handlers:
        return

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    if root.level == logging.NOTSET:
        root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    os.makedirs(LOG_DIR, exist_ok=True)
    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=5_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    ring.setFormatter(fmt)
    min_level_name = os.getenv("RING_BUFFER_MIN_LEVEL", "INFO").upper()
    ring.setLevel(getattr(logging, min_level_name, logging.INFO))
    root.addHandler(ring)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
