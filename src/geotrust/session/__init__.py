"""
Two-party matchmaking sessions for GeoTrust.

This module provides the session model, the coordinator state machine, the
pluggable match predicates and the game hub notifier protocol.
"""

from .coordinator import SessionCoordinator
from .models import ASSET_TAG_SIZE, MatchResult, Session, SessionConfig, SessionState
from .notifier import LoggingNotifier, Notifier, NullNotifier
from .predicates import (
    MatchPredicate,
    PlayerClaim,
    asset_tag_and_adjacent_cells,
    bounded_cell_distance,
    exact_cell_match,
)

__all__ = [
    "SessionCoordinator",
    "Session",
    "SessionState",
    "SessionConfig",
    "MatchResult",
    "ASSET_TAG_SIZE",
    "Notifier",
    "NullNotifier",
    "LoggingNotifier",
    "MatchPredicate",
    "PlayerClaim",
    "exact_cell_match",
    "bounded_cell_distance",
    "asset_tag_and_adjacent_cells",
]
