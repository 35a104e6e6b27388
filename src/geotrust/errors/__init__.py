"""GeoTrust error handling.

This module provides the exception hierarchy shared by the policy engine,
the proof verifier and the session coordinator.
"""

from .exceptions import (
    AuthorizationError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    GeoTrustError,
    NotificationError,
    PolicyDeniedError,
    ProofInvalidError,
    ReplayError,
    ResourceBoundError,
    SessionNotFoundError,
    StateViolationError,
    ValidationError,
    create_resource_error,
    create_validation_error,
)

__all__ = [
    "GeoTrustError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "AuthorizationError",
    "PolicyDeniedError",
    "ProofInvalidError",
    "ReplayError",
    "StateViolationError",
    "SessionNotFoundError",
    "ResourceBoundError",
    "ValidationError",
    "ConfigurationError",
    "NotificationError",
    "create_validation_error",
    "create_resource_error",
]
