"""Process-wide debug log — a bounded ring buffer of leveled text entries.

Entries are mirrored from stdlib :mod:`logging` by :class:`RingBufferHandler`
and exposed over HTTP by the ``/debug/logs`` routes.  The buffer keeps the
most recent ``capacity`` entries; older ones are evicted first.

Usage::

    from docvector.debug_log import debug_log

    debug_log.record("INFO", "Sign-in started", {"provider": "google"})
    debug_log.list()    # ["[2026-...] INFO: Sign-in started\n{...}"]
    debug_log.clear()
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any

from docvector.config import settings

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class DebugLog:
    """Append-only, bounded, thread-safe log buffer.

    Parameters
    ----------
    capacity:
        Maximum number of retained entries.
    """

    def __init__(self, capacity: int = 1000) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: deque[str] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @staticmethod
    def format_entry(level: str, message: str, data: Any = None) -> str:
        """Render ``[timestamp] LEVEL: message`` plus indented JSON *data*."""
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        data_str = f"\n{json.dumps(data, indent=2, default=str)}" if data is not None else ""
        return f"[{timestamp}] {level}: {message}{data_str}"

    def record(self, level: str, message: str, data: Any = None) -> str:
        """Append an entry and return its rendered text."""
        level = level.upper()
        if level not in LEVELS:
            raise ValueError(f"Unknown log level {level!r}; expected one of {LEVELS}")
        entry = self.format_entry(level, message, data)
        with self._lock:
            self._entries.append(entry)
        return entry

    def list(self) -> list[str]:
        """Return a snapshot of the entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RingBufferHandler(logging.Handler):
    """Logging handler that mirrors records into a :class:`DebugLog`."""

    def __init__(self, buffer: DebugLog, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = "WARNING" if record.levelno == logging.WARNING else record.levelname
            if level not in LEVELS:
                level = "ERROR" if record.levelno > logging.ERROR else "DEBUG"
            data = None
            if record.exc_info and record.exc_info[1] is not None:
                exc = record.exc_info[1]
                data = {"message": str(exc), "type": type(exc).__name__}
            self.buffer.record(level, f"{record.name}: {record.getMessage()}", data)
        except Exception:  # noqa: BLE001
            self.handleError(record)


# Singleton shared by the logging handler and the debug routes.
debug_log = DebugLog(capacity=settings.debug_log_capacity)


def configure_logging(level: str | None = None, buffer: DebugLog | None = None) -> None:
    """Configure root logging and attach the ring-buffer handler once."""
    root_logger = logging.getLogger()
    root_logger.setLevel((level or settings.log_level).upper())

    if not any(isinstance(h, logging.StreamHandler) for h in root_logger.handlers):
        stream = logging.StreamHandler(sys.stdout)
        stream.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(stream)

    target = buffer if buffer is not None else debug_log
    if not any(isinstance(h, RingBufferHandler) and h.buffer is target for h in root_logger.handlers):
        root_logger.addHandler(RingBufferHandler(target))

    # Reduce noise from verbose third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pypdf").setLevel(logging.ERROR)
