"""
GeoTrust match contract.

``GeoTrustMatch`` wires one shared store, a ledger clock, the authority and
the four components into a single object that behaves like the deployed
contract: each mutating method is one transaction and advances the ledger
sequence by one before it runs.
"""

import functools
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import GeoTrustConfig
from .core.types import Principal
from .crypto.hashing import Hash
from .crypto.zkp.core import Proof, PublicBindingSpec, VerificationKey
from .crypto.zkp.verification import ProofVerifier
from .governance.authority import Authority
from .governance.policy import CountryPolicyEngine, PolicySummary
from .logging import LogContext, get_logger
from .session.coordinator import SessionCoordinator
from .session.models import MatchResult, Session
from .session.notifier import Notifier, NullNotifier
from .session.predicates import MatchPredicate, exact_cell_match
from .storage.timed_store import LedgerClock, LedgerStore

logger = get_logger(__name__)


def transaction(method):
    """Advance the ledger once, then run ``method``."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self.clock.advance()
        return method(self, *args, **kwargs)

    return wrapper


class GeoTrustMatch:
    """Location-gated two-player matchmaking."""

    def __init__(
        self,
        admin: Principal,
        config: Optional[GeoTrustConfig] = None,
        notifier: Optional[Notifier] = None,
        predicate: MatchPredicate = exact_cell_match,
        clock: Optional[LedgerClock] = None,
    ):
        self.config = config or GeoTrustConfig()
        self.clock = clock or LedgerClock()
        self.store = LedgerStore(self.clock)
        self.authority = Authority(admin, self.store.admins)
        self.policy = CountryPolicyEngine(self.store, self.authority, self.config.policy)
        self.verifier = ProofVerifier(self.store, admin, self.config.zkp)
        self.sessions = SessionCoordinator(
            self.store,
            self.policy,
            self.verifier,
            notifier=notifier or NullNotifier(),
            predicate=predicate,
            config=self.config.session,
        )
        logger.info(
            "GeoTrust match initialized",
            context=LogContext(component="contract", operation="initialize", caller=admin, sequence=self.clock.now()),
        )

    # Administration

    @property
    def admin(self) -> Principal:
        return self.authority.global_admin

    @transaction
    def set_admin(self, caller: Principal, new_admin: Principal) -> None:
        self.policy.transfer_global_admin(caller, new_admin)

    @transaction
    def set_notifier(self, caller: Principal, notifier: Notifier) -> None:
        """Point game events at a different hub."""
        self.authority.require_global_admin(caller, "set_notifier")
        self.sessions.notifier = notifier
        logger.info(
            f"Notifier replaced with {type(notifier).__name__}",
            context=LogContext(component="contract", operation="set_notifier", caller=caller),
        )

    @transaction
    def set_verifier_admin(self, caller: Principal, new_admin: Principal) -> None:
        self.verifier.set_admin(caller, new_admin)

    # Jurisdiction policy

    @transaction
    def set_country_admin(self, caller: Principal, code: int, admin: Principal) -> None:
        self.policy.delegate(caller, code, admin)

    @transaction
    def remove_country_admin(self, caller: Principal, code: int) -> None:
        self.policy.delegate(caller, code, None)

    @transaction
    def set_country_allowed(self, caller: Principal, code: int, allowed: bool) -> None:
        self.policy.set_policy(caller, code, allowed)

    @transaction
    def set_default_allow_all(self, caller: Principal, value: bool) -> None:
        self.policy.set_default(caller, value)

    def get_country_admin(self, code: int) -> Principal:
        return self.policy.effective_admin(code)

    def is_country_allowed(self, code: int) -> bool:
        return self.policy.is_allowed(code)

    def get_policy(self, code: int) -> Tuple[bool, Principal]:
        return self.policy.get_policy(code)

    def get_country_policy(self) -> PolicySummary:
        return self.policy.policy_summary()

    def list_allowed_countries(self, page: int, page_size: int) -> List[int]:
        return self.policy.list_allowed_codes(page, page_size)

    def list_denied_countries(self, page: int, page_size: int) -> List[int]:
        return self.policy.list_denied_codes(page, page_size)

    # Verification

    @transaction
    def set_verification_key(self, caller: Principal, vk: VerificationKey) -> Hash:
        return self.verifier.set_verification_key(caller, vk)

    @transaction
    def clear_verification_key(self, caller: Principal) -> None:
        self.verifier.clear_verification_key(caller)

    def get_verification_key(self) -> Optional[VerificationKey]:
        return self.verifier.get_verification_key()

    def get_verification_key_hash(self) -> Optional[Hash]:
        return self.verifier.get_verification_key_hash()

    @transaction
    def verify_location(self, proof: Proof, cell_id: int) -> bool:
        """Verify and consume a proof that its holder occupies ``cell_id``."""
        return self.verifier.verify(proof, self.verifier.binding_for(cell_id))

    @transaction
    def verify_batch(self, items: Sequence[Tuple[Proof, PublicBindingSpec]]) -> List[bool]:
        return self.verifier.verify_batch(items)

    @transaction
    def prune_replay_records(self, caller: Principal, before: int) -> int:
        return self.verifier.prune_replay_records(caller, before)

    # Sessions

    @transaction
    def create_session(
        self,
        caller: Principal,
        cell_id: Optional[int] = None,
        jurisdiction_code: Optional[int] = None,
        proof: Optional[Proof] = None,
        asset_tag: Optional[bytes] = None,
    ) -> int:
        return self.sessions.create_session(caller, cell_id, jurisdiction_code, proof, asset_tag)

    @transaction
    def join_session(
        self,
        caller: Principal,
        session_id: int,
        cell_id: int,
        jurisdiction_code: int,
        proof: Optional[Proof] = None,
        asset_tag: Optional[bytes] = None,
    ) -> None:
        self.sessions.join_session(caller, session_id, cell_id, jurisdiction_code, proof, asset_tag)

    @transaction
    def resolve_match(self, caller: Principal, session_id: int) -> MatchResult:
        return self.sessions.resolve_match(caller, session_id)

    def get_session(self, session_id: int) -> Session:
        return self.sessions.get_session(session_id)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "sequence": self.clock.now(),
            "storage": self.store.get_stats(),
            "verifier": self.verifier.get_stats(),
            "sessions": self.sessions.get_stats(),
            "policy": vars(self.policy.policy_summary()),
        }
