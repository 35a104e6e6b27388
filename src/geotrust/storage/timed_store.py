"""
Logical clock and expiring key-value storage.

The matchmaking core never reads a wall clock. Time is an opaque, strictly
increasing ledger sequence supplied by a ``Clock``; expiry is expressed in
sequence numbers and enforced by a ``TimedStore``. ``LedgerStore`` groups the
independent collections the components own.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, Hashable, Iterator, List, Optional, Protocol, Tuple, TypeVar

from ..core.types import U64_MAX, checked_add
from ..errors.exceptions import ResourceBoundError, ValidationError

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class Clock(Protocol):
    """Source of the current logical sequence number."""

    def now(self) -> int:
        ...


class LedgerClock:
    """Sequence-number clock advanced once per transaction by the host."""

    def __init__(self, start: int = 1):
        if not 0 <= start <= U64_MAX:
            raise ValidationError("Clock start must be a u64", field="start", value=start)
        self._sequence = start

    def now(self) -> int:
        return self._sequence

    def advance(self, steps: int = 1) -> int:
        """Move the clock forward by ``steps`` and return the new sequence."""
        if steps <= 0:
            raise ValidationError("Clock can only move forward", field="steps", value=steps)
        advanced = checked_add(self._sequence, steps)
        if advanced is None:
            raise ResourceBoundError(
                "Ledger sequence overflow", resource="sequence", limit=U64_MAX
            )
        self._sequence = advanced
        return self._sequence


@dataclass
class StoredValue(Generic[V]):
    """Value plus the last sequence number at which it is still live."""

    value: V
    expires_at: Optional[int] = None

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and now > self.expires_at


class TimedStore(ABC, Generic[K, V]):
    """Abstract keyed collection with optional per-entry expiry.

    Expired entries are invisible to every read even before
    ``purge_expired`` physically removes them.
    """

    def __init__(self, clock: Clock, name: str = "store"):
        self.clock = clock
        self.name = name

    @abstractmethod
    def _load(self, key: K) -> Optional[StoredValue[V]]:
        pass

    @abstractmethod
    def _save(self, key: K, stored: StoredValue[V]) -> None:
        pass

    @abstractmethod
    def _delete(self, key: K) -> bool:
        pass

    @abstractmethod
    def _entries(self) -> Iterator[Tuple[K, StoredValue[V]]]:
        pass

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Total lookup: absent or expired keys yield ``default``."""
        stored = self._load(key)
        if stored is None or stored.is_expired(self.clock.now()):
            return default
        return stored.value

    def contains(self, key: K) -> bool:
        stored = self._load(key)
        return stored is not None and not stored.is_expired(self.clock.now())

    def put(self, key: K, value: V) -> None:
        """Store ``value`` without expiry."""
        self._save(key, StoredValue(value))

    def put_with_expiry(self, key: K, value: V, expires_after: int) -> int:
        """Store ``value`` live for ``expires_after`` more sequence numbers.

        Returns the expiry sequence.
        """
        if expires_after < 0:
            raise ValidationError(
                "expires_after must be non-negative",
                field="expires_after",
                value=expires_after,
            )
        expires_at = checked_add(self.clock.now(), expires_after)
        if expires_at is None:
            expires_at = U64_MAX
        self._save(key, StoredValue(value, expires_at))
        return expires_at

    def expires_at(self, key: K) -> Optional[int]:
        stored = self._load(key)
        return stored.expires_at if stored is not None else None

    def remove(self, key: K) -> bool:
        return self._delete(key)

    def keys(self) -> List[K]:
        """Live keys in ascending order."""
        now = self.clock.now()
        return sorted(key for key, stored in self._entries() if not stored.is_expired(now))

    def items(self) -> List[Tuple[K, V]]:
        now = self.clock.now()
        return sorted(
            ((key, stored.value) for key, stored in self._entries() if not stored.is_expired(now)),
            key=lambda item: item[0],
        )

    def iter_items(self) -> Iterator[Tuple[K, V]]:
        """Live items in ascending key order, loaded one at a time."""
        for key in sorted(key for key, _ in self._entries()):
            stored = self._load(key)
            if stored is not None and not stored.is_expired(self.clock.now()):
                yield key, stored.value

    def purge_expired(self) -> int:
        """Physically drop expired entries. Returns how many were removed."""
        now = self.clock.now()
        expired = [key for key, stored in self._entries() if stored.is_expired(now)]
        for key in expired:
            self._delete(key)
        return len(expired)

    def __len__(self) -> int:
        return len(self.keys())


class InMemoryTimedStore(TimedStore[K, V]):
    """Dictionary-backed ``TimedStore``."""

    def __init__(self, clock: Clock, name: str = "store"):
        super().__init__(clock, name)
        self._data: Dict[K, StoredValue[V]] = {}

    def _load(self, key: K) -> Optional[StoredValue[V]]:
        return self._data.get(key)

    def _save(self, key: K, stored: StoredValue[V]) -> None:
        self._data[key] = stored

    def _delete(self, key: K) -> bool:
        return self._data.pop(key, None) is not None

    def _entries(self) -> Iterator[Tuple[K, StoredValue[V]]]:
        return iter(list(self._data.items()))


class LedgerStore:
    """Process-wide store: one independent collection per owning component."""

    def __init__(self, clock: Clock):
        self.clock = clock
        self.instance: TimedStore[str, Any] = InMemoryTimedStore(clock, "instance")
        self.sessions: TimedStore[int, Any] = InMemoryTimedStore(clock, "sessions")
        self.policies: TimedStore[int, Any] = InMemoryTimedStore(clock, "policies")
        self.admins: TimedStore[int, str] = InMemoryTimedStore(clock, "admins")
        self.proof_ids: TimedStore[str, int] = InMemoryTimedStore(clock, "proof_ids")

    def get_stats(self) -> Dict[str, int]:
        return {
            "sessions": len(self.sessions),
            "policies": len(self.policies),
            "admins": len(self.admins),
            "proof_ids": len(self.proof_ids),
        }
