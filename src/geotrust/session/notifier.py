"""
Game hub notification.

The coordinator reports session starts and ends to an external collaborator
through the ``Notifier`` protocol. Notification is fire-and-forget: a
failing notifier is logged by the caller and never undoes a transition.
"""

from typing import Protocol

from ..core.types import Principal
from ..logging import LogContext, get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    """External game hub."""

    def notify_start(
        self,
        session_id: int,
        player_a: Principal,
        player_b: Principal,
        score_a: int,
        score_b: int,
    ) -> None:
        ...

    def notify_end(self, session_id: int, outcome: bool) -> None:
        ...


class NullNotifier:
    """Notifier that discards every event."""

    def notify_start(self, session_id, player_a, player_b, score_a, score_b) -> None:
        pass

    def notify_end(self, session_id, outcome) -> None:
        pass


class LoggingNotifier:
    """Notifier that records each event in the log."""

    def notify_start(self, session_id, player_a, player_b, score_a, score_b) -> None:
        logger.info(
            f"Game started: {player_a} vs {player_b} ({score_a}:{score_b})",
            context=LogContext(component="game_hub", operation="notify_start", session_id=session_id),
        )

    def notify_end(self, session_id, outcome) -> None:
        logger.info(
            f"Game ended: {'player A' if outcome else 'player B'} won",
            context=LogContext(component="game_hub", operation="notify_end", session_id=session_id),
        )
