"""
Jurisdiction authority and admin delegation.

A single global admin governs everything. It may delegate authority over
individual jurisdiction codes to other principals; a delegate may manage
only the codes delegated to it. ``Authority`` is an explicit value handed to
the components that need it, never ambient state.
"""

from dataclasses import dataclass
from typing import List, Optional

from ..core.types import Principal, ensure_principal, ensure_u32, is_u32
from ..errors.exceptions import AuthorizationError
from ..logging import LogContext, get_logger
from ..storage.timed_store import InMemoryTimedStore, LedgerClock, TimedStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class Delegation:
    """Authority over one jurisdiction code granted to ``admin``."""

    code: int
    admin: Principal
    granted_at: int


class Authority:
    """Global admin plus the per-jurisdiction delegation map."""

    def __init__(self, global_admin: Principal, delegations: TimedStore[int, Delegation]):
        self._global_admin = ensure_principal("global_admin", global_admin)
        self._delegations = delegations

    @classmethod
    def standalone(cls, global_admin: Principal) -> "Authority":
        """Authority backed by its own in-memory delegation map."""
        return cls(global_admin, InMemoryTimedStore(LedgerClock(), "admins"))

    @property
    def global_admin(self) -> Principal:
        return self._global_admin

    def is_global_admin(self, principal: Principal) -> bool:
        return principal == self._global_admin

    def delegation_for(self, code: int) -> Optional[Delegation]:
        if not is_u32(code):
            return None
        return self._delegations.get(code)

    def effective_admin(self, code: int) -> Principal:
        """Delegate for ``code`` if one exists, otherwise the global admin."""
        delegation = self.delegation_for(code)
        return delegation.admin if delegation is not None else self._global_admin

    def delegated_codes(self, admin: Principal) -> List[int]:
        return [code for code, delegation in self._delegations.items() if delegation.admin == admin]

    def require_global_admin(self, caller: Principal, operation: str) -> None:
        if not self.is_global_admin(caller):
            logger.warning(
                f"Rejected {operation}: caller is not the global admin",
                context=LogContext(component="authority", operation=operation, caller=caller),
            )
            raise AuthorizationError(
                f"Only the global admin may {operation}",
                caller=caller,
                required="global_admin",
            )

    def require_admin_for(self, caller: Principal, code: int, operation: str) -> None:
        admin = self.effective_admin(code)
        if caller != admin:
            logger.warning(
                f"Rejected {operation}: caller is not the admin for jurisdiction {code}",
                context=LogContext(
                    component="authority",
                    operation=operation,
                    caller=caller,
                    jurisdiction_code=code,
                ),
            )
            raise AuthorizationError(
                f"Only the admin for jurisdiction {code} may {operation}",
                caller=caller,
                required=f"admin:{code}",
            )

    def delegate(self, caller: Principal, code: int, admin: Optional[Principal]) -> None:
        """Grant, replace, or (with ``admin=None``) revoke authority over ``code``."""
        self.require_global_admin(caller, "delegate")
        ensure_u32("code", code)
        context = LogContext(component="authority", operation="delegate", caller=caller, jurisdiction_code=code)

        if admin is None:
            if self._delegations.remove(code):
                logger.info("Delegation revoked", context=context)
            return

        ensure_principal("admin", admin)
        granted_at = self._delegations.clock.now()
        self._delegations.put(code, Delegation(code=code, admin=admin, granted_at=granted_at))
        logger.info(f"Jurisdiction delegated to {admin}", context=context)

    def transfer_global_admin(self, caller: Principal, new_admin: Principal) -> None:
        self.require_global_admin(caller, "transfer_global_admin")
        self._global_admin = ensure_principal("new_admin", new_admin)
        logger.info(
            f"Global admin transferred to {new_admin}",
            context=LogContext(component="authority", operation="transfer_global_admin", caller=caller),
        )
