"""
Match predicates.

A predicate decides whether the two players of an ACTIVE session matched.
It receives both sides' claims and returns a bool; the coordinator never
hard-codes the rule.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from ..core.types import checked_sub
from ..errors.exceptions import create_validation_error


@dataclass(frozen=True)
class PlayerClaim:
    """What one player asserted when entering the session."""

    cell_id: Optional[int]
    asset_tag: Optional[bytes] = None


MatchPredicate = Callable[[PlayerClaim, PlayerClaim], bool]


def _cell_distance(a: int, b: int) -> Optional[int]:
    return checked_sub(a, b) if a >= b else checked_sub(b, a)


def exact_cell_match(a: PlayerClaim, b: PlayerClaim) -> bool:
    """Players matched iff both claimed the same cell."""
    return a.cell_id is not None and a.cell_id == b.cell_id


def bounded_cell_distance(max_distance: int) -> MatchPredicate:
    """Players matched iff their cell ids differ by at most ``max_distance``."""
    if max_distance < 0:
        raise create_validation_error("max_distance", max_distance, "non-negative integer")

    def predicate(a: PlayerClaim, b: PlayerClaim) -> bool:
        if a.cell_id is None or b.cell_id is None:
            return False
        distance = _cell_distance(a.cell_id, b.cell_id)
        return distance is not None and distance <= max_distance

    predicate.__name__ = f"bounded_cell_distance_{max_distance}"
    return predicate


_adjacent = bounded_cell_distance(1)


def asset_tag_and_adjacent_cells(a: PlayerClaim, b: PlayerClaim) -> bool:
    """Players matched iff they carry the same asset tag and sit in the same
    or neighbouring cells."""
    if a.asset_tag is None or a.asset_tag != b.asset_tag:
        return False
    return _adjacent(a, b)
