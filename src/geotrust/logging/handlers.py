"""Log handlers for GeoTrust."""

import sys
from typing import Any, Dict, List, Optional

from .core import LogEntry, LogHandler, LogLevel


class ConsoleHandler(LogHandler):
    """Console log handler.

    Without an explicit stream the handler writes to whatever ``sys.stderr``
    is at emit time and never closes it.
    """

    def __init__(self, stream: Any = None, level: LogLevel = LogLevel.DEBUG):
        super().__init__()
        self.stream = stream
        self.level = level

    def emit(self, entry: LogEntry) -> None:
        """Emit log entry to console."""
        with self._lock:
            if self.formatter:
                formatted = self.formatter.format(entry)
            else:
                formatted = f"{entry.timestamp} [{entry.level.value.upper()}] {entry.logger_name}: {entry.message}"

            stream = self.stream if self.stream is not None else sys.stderr
            stream.write(formatted + "\n")
            stream.flush()

    def close(self) -> None:
        """Close handler."""
        with self._lock:
            self.stream = None


class MemoryHandler(LogHandler):
    """Memory log handler holding the most recent entries."""

    def __init__(self, max_size: int = 1000):
        super().__init__()
        self.max_size = max_size
        self.buffer: List[Dict[str, Any]] = []

    def emit(self, entry: LogEntry) -> None:
        """Emit log entry to memory."""
        with self._lock:
            record = entry.to_dict()
            if self.formatter:
                record["formatted"] = self.formatter.format(entry)
            self.buffer.append(record)

            if len(self.buffer) > self.max_size:
                self.buffer.pop(0)

    def get_logs(self, level: Optional[LogLevel] = None) -> List[Dict[str, Any]]:
        """Get logs from memory, optionally only those at ``level``."""
        with self._lock:
            if level is None:
                return self.buffer.copy()
            return [record for record in self.buffer if record["level"] == level.value]

    def clear_logs(self) -> None:
        """Clear all logs from memory."""
        with self._lock:
            self.buffer.clear()

    def close(self) -> None:
        """Close handler."""
        self.clear_logs()
