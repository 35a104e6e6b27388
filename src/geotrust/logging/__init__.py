"""GeoTrust Logging System.

Structured logging for the matchmaking core: per-call context, JSON and text
formatting, and console and in-memory handlers.
"""

from .core import (
    GeoTrustLogger,
    LogConfig,
    LogContext,
    LogEntry,
    LogFormatter,
    LogHandler,
    LogLevel,
    LogManager,
    get_log_manager,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter
from .handlers import ConsoleHandler, MemoryHandler

__all__ = [
    "LogLevel",
    "LogConfig",
    "LogContext",
    "LogEntry",
    "LogFormatter",
    "LogHandler",
    "LogManager",
    "GeoTrustLogger",
    "get_log_manager",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
    "JSONFormatter",
    "TextFormatter",
    "ConsoleHandler",
    "MemoryHandler",
]
