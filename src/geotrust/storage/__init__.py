"""Logical clock and expiring storage for GeoTrust."""

from .timed_store import (
    Clock,
    InMemoryTimedStore,
    LedgerClock,
    LedgerStore,
    StoredValue,
    TimedStore,
)

__all__ = [
    "Clock",
    "LedgerClock",
    "StoredValue",
    "TimedStore",
    "InMemoryTimedStore",
    "LedgerStore",
]
