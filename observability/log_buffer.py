"""In-memory log buffer.

Keeps the most recent log records so the UI can show, filter and export
them without reading log files.
"""

import json
import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone


LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: str
    logger: str
    message: str
    exception: str | None = None


class InMemoryLogHandler(logging.Handler):
    """Logging handler that stores up to ``max_logs`` entries in memory."""

    def __init__(self, max_logs: int = 1000, level: int = logging.NOTSET):
        super().__init__(level)
        self.max_logs = max_logs
        self._entries: deque[LogEntry] = deque(maxlen=max_logs)
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            exception = None
            if record.exc_info:
                exception = logging.Formatter().formatException(record.exc_info)
            entry = LogEntry(
                timestamp=datetime.fromtimestamp(record.created, timezone.utc),
                level=record.levelname,
                logger=record.name,
                message=record.getMessage(),
                exception=exception,
            )
        except Exception:
            self.handleError(record)
            return
        with self._entries_lock:
            self._entries.append(entry)

    def get_logs(self) -> list[LogEntry]:
        with self._entries_lock:
            return list(self._entries)

    def get_logs_by_level(self, level: str) -> list[LogEntry]:
        wanted = level.upper()
        return [entry for entry in self.get_logs() if entry.level == wanted]

    def get_recent_logs(self, minutes: float = 10) -> list[LogEntry]:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=minutes)
        return [entry for entry in self.get_logs() if entry.timestamp > cutoff]

    def clear(self) -> int:
        """Drop all entries and return how many there were."""
        with self._entries_lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def export_logs(self) -> str:
        return json.dumps(
            [asdict(entry) for entry in self.get_logs()],
            indent=2,
            ensure_ascii=False,
            default=str,
        )

    def get_stats(self) -> dict:
        entries = self.get_logs()
        return {
            "total": len(entries),
            "by_level": {level: sum(1 for e in entries if e.level == level) for level in LEVELS},
            "memory_usage": len(entries) / self.max_logs * 100 if self.max_logs else 0.0,
            "oldest_log": entries[0].timestamp if entries else None,
            "newest_log": entries[-1].timestamp if entries else None,
        }


def install_log_buffer(max_logs: int = 1000, logger: logging.Logger | None = None) -> InMemoryLogHandler:
    """Attach an InMemoryLogHandler to ``logger`` (the root logger by default).

    Reuses a handler that is already attached.
    """
    target = logger or logging.getLogger()
    for handler in target.handlers:
        if isinstance(handler, InMemoryLogHandler):
            return handler
    handler = InMemoryLogHandler(max_logs=max_logs)
    target.addHandler(handler)
    return handler
