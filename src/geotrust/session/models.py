"""
Session data model.

A session pairs two players. It is created WAITING by its first player,
becomes ACTIVE when a second, distinct player joins, and ENDED once the
match is resolved. States only ever move forward.
"""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..core.types import U32_MAX, Principal
from ..errors.exceptions import ConfigurationError

ASSET_TAG_SIZE = 32


class SessionState(Enum):
    """Lifecycle state of a session."""

    WAITING = "waiting"
    ACTIVE = "active"
    ENDED = "ended"

    @property
    def rank(self) -> int:
        return _STATE_ORDER[self]

    def can_advance_to(self, target: "SessionState") -> bool:
        """Only the immediate successor is reachable."""
        return target.rank == self.rank + 1


_STATE_ORDER = {
    SessionState.WAITING: 0,
    SessionState.ACTIVE: 1,
    SessionState.ENDED: 2,
}


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a resolved session."""

    matched: bool
    winner: Principal

    def to_dict(self) -> Dict[str, Any]:
        return {"matched": self.matched, "winner": self.winner}


@dataclass
class Session:
    """Two-party matchmaking session."""

    session_id: int
    player_a: Principal
    created_at: int
    state: SessionState = SessionState.WAITING
    player_b: Optional[Principal] = None
    cell_a: Optional[int] = None
    cell_b: Optional[int] = None
    jurisdiction_a: Optional[int] = None
    jurisdiction_b: Optional[int] = None
    asset_tag_a: Optional[bytes] = None
    asset_tag_b: Optional[bytes] = None
    outcome: Optional[MatchResult] = None
    ended_at: Optional[int] = None

    def is_player(self, principal: Principal) -> bool:
        return principal == self.player_a or (self.player_b is not None and principal == self.player_b)

    def copy(self) -> "Session":
        return copy.copy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "player_a": self.player_a,
            "player_b": self.player_b,
            "cell_a": self.cell_a,
            "cell_b": self.cell_b,
            "jurisdiction_a": self.jurisdiction_a,
            "jurisdiction_b": self.jurisdiction_b,
            "asset_tag_a": self.asset_tag_a.hex() if self.asset_tag_a else None,
            "asset_tag_b": self.asset_tag_b.hex() if self.asset_tag_b else None,
            "created_at": self.created_at,
            "ended_at": self.ended_at,
            "outcome": self.outcome.to_dict() if self.outcome else None,
        }


@dataclass
class SessionConfig:
    """Configuration for the session coordinator."""

    # Sessions live this many ledgers after their last write
    session_ttl: int = 100_001
    max_session_id: int = U32_MAX

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if self.session_ttl <= 0:
            raise ConfigurationError(
                "session_ttl must be positive",
                config_key="session_ttl",
                config_value=self.session_ttl,
            )
        if not 0 < self.max_session_id <= U32_MAX:
            raise ConfigurationError(
                "max_session_id must be a positive u32",
                config_key="max_session_id",
                config_value=self.max_session_id,
            )
