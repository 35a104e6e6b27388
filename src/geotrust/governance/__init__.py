"""
Jurisdiction governance for GeoTrust.

This module provides the admin hierarchy (a global admin with per-code
delegates) and the allow/deny policy consulted on every session join.
"""

from .authority import Authority, Delegation
from .policy import CountryPolicyEngine, JurisdictionStatus, PolicyConfig, PolicySummary

__all__ = [
    "Authority",
    "Delegation",
    "CountryPolicyEngine",
    "JurisdictionStatus",
    "PolicyConfig",
    "PolicySummary",
]
