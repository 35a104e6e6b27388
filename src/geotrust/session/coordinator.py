"""
Two-party session coordinator.

Drives sessions through WAITING -> ACTIVE -> ENDED. Every join consults the
jurisdiction policy, and a join that carries a location proof consumes it
through the verifier. All checks run before the first write, so a rejected
call leaves the session exactly as it was.
"""

from typing import Any, Dict, Optional

from ..core.types import Principal, checked_add, ensure_principal, ensure_u32
from ..crypto.zkp.core import Proof, ZKPStatus
from ..crypto.zkp.verification import ProofVerifier
from ..errors.exceptions import (
    AuthorizationError,
    NotificationError,
    PolicyDeniedError,
    ProofInvalidError,
    ReplayError,
    ResourceBoundError,
    SessionNotFoundError,
    StateViolationError,
    create_validation_error,
)
from ..governance.policy import CountryPolicyEngine
from ..logging import LogContext, get_logger
from ..storage.timed_store import LedgerStore
from .models import ASSET_TAG_SIZE, MatchResult, Session, SessionConfig, SessionState
from .notifier import Notifier, NullNotifier
from .predicates import MatchPredicate, PlayerClaim, exact_cell_match

logger = get_logger(__name__)

_COUNTER_KEY = "session_counter"


class SessionCoordinator:
    """Matchmaking state machine."""

    def __init__(
        self,
        store: LedgerStore,
        policy: CountryPolicyEngine,
        verifier: ProofVerifier,
        notifier: Optional[Notifier] = None,
        predicate: MatchPredicate = exact_cell_match,
        config: Optional[SessionConfig] = None,
    ):
        self.store = store
        self.policy = policy
        self.verifier = verifier
        self.notifier = notifier or NullNotifier()
        self.predicate = predicate
        self.config = config or SessionConfig()

    # Reads

    def session_count(self) -> int:
        return self.store.instance.get(_COUNTER_KEY, 0)

    def get_session(self, session_id: int) -> Session:
        """Copy of the stored session.

        Raises:
            SessionNotFoundError: if the session never existed or has expired.
        """
        return self._load(session_id).copy()

    def _load(self, session_id: int) -> Session:
        session = self.store.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found", session_id=session_id)
        return session

    # Gates

    @staticmethod
    def _check_asset_tag(asset_tag: Optional[bytes]) -> Optional[bytes]:
        if asset_tag is None:
            return None
        if not isinstance(asset_tag, bytes) or len(asset_tag) != ASSET_TAG_SIZE:
            raise create_validation_error("asset_tag", asset_tag, f"{ASSET_TAG_SIZE} bytes")
        return asset_tag

    def _check_jurisdiction(self, code: int, context: LogContext) -> None:
        if not self.policy.is_allowed(code):
            logger.info(f"Jurisdiction {code} denied", context=context)
            raise PolicyDeniedError(
                f"Jurisdiction {code} is not permitted to participate",
                jurisdiction_code=code,
            )

    def _check_proof(self, proof: Proof, cell_id: int, context: LogContext) -> None:
        result = self.verifier.verify_detailed(proof, self.verifier.binding_for(cell_id))
        if result.is_valid:
            return
        logger.info(f"Location proof rejected: {result.status.name}", context=context)
        if result.status == ZKPStatus.REPLAY_DETECTED:
            raise ReplayError(
                "Location proof has already been used",
                status=result.status,
                proof_id=result.proof_id,
            )
        raise ProofInvalidError(
            f"Location proof rejected: {result.error_message}",
            status=result.status,
            proof_id=result.proof_id,
        )

    def _admit(
        self,
        caller: Principal,
        cell_id: Optional[int],
        jurisdiction_code: Optional[int],
        proof: Optional[Proof],
        context: LogContext,
    ) -> None:
        """Policy gate, then proof gate. Consumes the proof on success."""
        if jurisdiction_code is not None:
            self._check_jurisdiction(jurisdiction_code, context)
        if proof is not None:
            if cell_id is None:
                raise create_validation_error("cell_id", None, "cell id claimed by the proof")
            self._check_proof(proof, cell_id, context)

    def _save(self, session: Session) -> None:
        self.store.sessions.put_with_expiry(session.session_id, session, self.config.session_ttl)

    def _notify(self, event: str, session_id: int, *args: Any) -> None:
        try:
            getattr(self.notifier, event)(session_id, *args)
        except Exception as e:
            error = NotificationError(f"Notifier failed during {event}: {e}", event=event, cause=e)
            logger.error(
                str(error),
                context=LogContext(component="session", operation=event, session_id=session_id),
                exception=e,
            )

    # Transitions

    def create_session(
        self,
        caller: Principal,
        cell_id: Optional[int] = None,
        jurisdiction_code: Optional[int] = None,
        proof: Optional[Proof] = None,
        asset_tag: Optional[bytes] = None,
    ) -> int:
        """Open a WAITING session with ``caller`` as player A. Returns its id."""
        ensure_principal("caller", caller)
        if cell_id is not None:
            ensure_u32("cell_id", cell_id)
        if jurisdiction_code is not None:
            ensure_u32("jurisdiction_code", jurisdiction_code)
        asset_tag = self._check_asset_tag(asset_tag)

        current = self.session_count()
        session_id = checked_add(current, 1, self.config.max_session_id)
        if session_id is None:
            raise ResourceBoundError(
                "Session id space exhausted",
                resource="session_id",
                limit=self.config.max_session_id,
                actual=current,
            )

        context = LogContext(component="session", operation="create_session", caller=caller, session_id=session_id)
        self._admit(caller, cell_id, jurisdiction_code, proof, context)

        session = Session(
            session_id=session_id,
            player_a=caller,
            created_at=self.store.clock.now(),
            cell_a=cell_id,
            jurisdiction_a=jurisdiction_code,
            asset_tag_a=asset_tag,
        )
        self.store.instance.put(_COUNTER_KEY, session_id)
        self._save(session)
        logger.info("Session created", context=context)
        return session_id

    def join_session(
        self,
        caller: Principal,
        session_id: int,
        cell_id: int,
        jurisdiction_code: int,
        proof: Optional[Proof] = None,
        asset_tag: Optional[bytes] = None,
    ) -> None:
        """Join a WAITING session as player B, activating it."""
        ensure_principal("caller", caller)
        session = self._load(session_id)
        context = LogContext(
            component="session",
            operation="join_session",
            caller=caller,
            session_id=session_id,
            jurisdiction_code=jurisdiction_code if isinstance(jurisdiction_code, int) else None,
        )

        if session.state != SessionState.WAITING:
            raise StateViolationError(
                f"Session {session_id} is not accepting players",
                session_id=session_id,
                expected_state=SessionState.WAITING,
                actual_state=session.state,
            )
        if caller == session.player_a:
            raise StateViolationError(
                "A player cannot join their own session",
                session_id=session_id,
                expected_state=SessionState.WAITING,
                actual_state=session.state,
            )
        ensure_u32("cell_id", cell_id)
        ensure_u32("jurisdiction_code", jurisdiction_code)
        asset_tag = self._check_asset_tag(asset_tag)

        self._admit(caller, cell_id, jurisdiction_code, proof, context)

        joined = session.copy()
        joined.player_b = caller
        joined.cell_b = cell_id
        joined.jurisdiction_b = jurisdiction_code
        joined.asset_tag_b = asset_tag
        joined.state = SessionState.ACTIVE
        self._save(joined)
        logger.info(f"{caller} joined; session active", context=context)

        self._notify("notify_start", session_id, joined.player_a, joined.player_b, 0, 0)

    def resolve_match(self, caller: Principal, session_id: int) -> MatchResult:
        """End an ACTIVE session and record who won."""
        session = self._load(session_id)
        context = LogContext(component="session", operation="resolve_match", caller=caller, session_id=session_id)

        if session.state != SessionState.ACTIVE:
            raise StateViolationError(
                f"Session {session_id} is not active",
                session_id=session_id,
                expected_state=SessionState.ACTIVE,
                actual_state=session.state,
            )
        if not session.is_player(caller):
            logger.warning("Rejected resolve_match: caller is not a player", context=context)
            raise AuthorizationError(
                f"Only the players of session {session_id} may resolve it",
                caller=caller,
                required="player",
            )

        matched = bool(
            self.predicate(
                PlayerClaim(session.cell_a, session.asset_tag_a),
                PlayerClaim(session.cell_b, session.asset_tag_b),
            )
        )
        result = MatchResult(matched=matched, winner=session.player_a if matched else session.player_b)

        ended = session.copy()
        ended.state = SessionState.ENDED
        ended.outcome = result
        ended.ended_at = self.store.clock.now()
        self._save(ended)
        logger.info(f"Session ended ({'matched' if matched else 'no match'}); winner {result.winner}", context=context)

        self._notify("notify_end", session_id, matched)
        return result

    def get_stats(self) -> Dict[str, Any]:
        states = {state.value: 0 for state in SessionState}
        for _, session in self.store.sessions.items():
            states[session.state.value] += 1
        return {"sessions_created": self.session_count(), "live_sessions": states}
