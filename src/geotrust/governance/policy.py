"""
Jurisdiction access policy.

Each jurisdiction code is explicitly allowed, explicitly denied, or unset.
Unset codes follow the global ``default_allow_all`` flag. The policy is
consulted on every join, so lookups are total: an absent entry is a
default, never an error.
"""

from dataclasses import dataclass
from enum import Enum
from itertools import islice
from typing import List, Optional, Tuple

from ..core.types import U32_MAX, Principal, checked_add, checked_mul, ensure_u32, is_u32
from ..errors.exceptions import ConfigurationError
from ..logging import LogContext, get_logger
from ..storage.timed_store import LedgerStore
from .authority import Authority

logger = get_logger(__name__)

_DEFAULT_KEY = "default_allow_all"
_COUNT_KEYS = {"allowed": "allowed_count", "denied": "denied_count"}


class JurisdictionStatus(Enum):
    """Explicit policy entry for a jurisdiction code."""

    ALLOWED = "allowed"
    DENIED = "denied"


@dataclass
class PolicyConfig:
    """Configuration for the policy engine."""

    default_allow_all: bool = False
    max_page_size: int = 200

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if self.max_page_size <= 0:
            raise ConfigurationError(
                "max_page_size must be positive",
                config_key="max_page_size",
                config_value=self.max_page_size,
            )


@dataclass(frozen=True)
class PolicySummary:
    """Counts of explicit entries plus the default."""

    default_allow_all: bool
    allowed_count: int
    denied_count: int


class CountryPolicyEngine:
    """Evaluates and administers jurisdiction policy."""

    def __init__(self, store: LedgerStore, authority: Authority, config: Optional[PolicyConfig] = None):
        self.store = store
        self.authority = authority
        self.config = config or PolicyConfig()
        if not self.store.instance.contains(_DEFAULT_KEY):
            self.store.instance.put(_DEFAULT_KEY, self.config.default_allow_all)
        for key in _COUNT_KEYS.values():
            if not self.store.instance.contains(key):
                self.store.instance.put(key, 0)

    @property
    def default_allow_all(self) -> bool:
        return bool(self.store.instance.get(_DEFAULT_KEY, False))

    def effective_admin(self, code: int) -> Principal:
        return self.authority.effective_admin(code)

    def status(self, code: int) -> Optional[JurisdictionStatus]:
        if not is_u32(code):
            return None
        return self.store.policies.get(code)

    def is_allowed(self, code: int) -> bool:
        """Effective permission for ``code``. Never raises."""
        if not is_u32(code):
            return False
        status = self.store.policies.get(code)
        if status is JurisdictionStatus.ALLOWED:
            return True
        if status is JurisdictionStatus.DENIED:
            return False
        return self.default_allow_all

    def get_policy(self, code: int) -> Tuple[bool, Principal]:
        """``(allowed, admin)`` for presentation layers."""
        return self.is_allowed(code), self.effective_admin(code)

    def set_policy(self, caller: Principal, code: int, allowed: bool) -> None:
        """Explicitly allow or deny ``code``; the opposite entry is replaced."""
        self.authority.require_admin_for(caller, code, "set_policy")
        ensure_u32("code", code)

        status = JurisdictionStatus.ALLOWED if allowed else JurisdictionStatus.DENIED
        previous = self.store.policies.get(code)
        self.store.policies.put(code, status)
        if previous is not status:
            if previous is not None:
                self._adjust_count(previous, -1)
            self._adjust_count(status, 1)
        logger.info(
            f"Jurisdiction {code} set to {status.value}",
            context=LogContext(component="policy", operation="set_policy", caller=caller, jurisdiction_code=code),
        )

    def delegate(self, caller: Principal, code: int, admin: Optional[Principal]) -> None:
        self.authority.delegate(caller, code, admin)

    def transfer_global_admin(self, caller: Principal, new_admin: Principal) -> None:
        self.authority.transfer_global_admin(caller, new_admin)

    def set_default(self, caller: Principal, value: bool) -> None:
        self.authority.require_global_admin(caller, "set_default")
        self.store.instance.put(_DEFAULT_KEY, bool(value))
        logger.info(
            f"Default policy set to {'allow' if value else 'deny'}",
            context=LogContext(component="policy", operation="set_default", caller=caller),
        )

    def _count(self, status: JurisdictionStatus) -> int:
        return self.store.instance.get(_COUNT_KEYS[status.value], 0)

    def _adjust_count(self, status: JurisdictionStatus, delta: int) -> None:
        self.store.instance.put(_COUNT_KEYS[status.value], self._count(status) + delta)

    def _page(self, status: JurisdictionStatus, page: int, page_size: int) -> List[int]:
        """Codes with ``status`` on the requested page; bad or out-of-range pages are empty.

        The scan stops as soon as the page is full.
        """
        if not is_u32(page) or not is_u32(page_size) or page_size == 0:
            return []
        page_size = min(page_size, self.config.max_page_size)
        start = checked_mul(page, page_size, U32_MAX)
        if start is None:
            return []
        end = checked_add(start, page_size, U32_MAX)
        if end is None:
            return []
        if start >= self._count(status):
            return []
        codes = (code for code, entry in self.store.policies.iter_items() if entry is status)
        return list(islice(codes, start, end))

    def list_allowed_codes(self, page: int, page_size: int) -> List[int]:
        return self._page(JurisdictionStatus.ALLOWED, page, page_size)

    def list_denied_codes(self, page: int, page_size: int) -> List[int]:
        return self._page(JurisdictionStatus.DENIED, page, page_size)

    def policy_summary(self) -> PolicySummary:
        return PolicySummary(
            default_allow_all=self.default_allow_all,
            allowed_count=self._count(JurisdictionStatus.ALLOWED),
            denied_count=self._count(JurisdictionStatus.DENIED),
        )
