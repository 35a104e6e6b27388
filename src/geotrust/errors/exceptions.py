"""Exception hierarchy for GeoTrust.

This module defines the error taxonomy used by the matchmaking core. Every
error aborts only the current call; components validate before their first
write, so no error can leave previously committed state half-updated.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""

    AUTHORIZATION = "authorization"
    POLICY = "policy"
    PROOF = "proof"
    REPLAY = "replay"
    STATE = "state"
    NOT_FOUND = "not_found"
    RESOURCE = "resource"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    NOTIFICATION = "notification"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Context information for an error."""

    sequence: Optional[int] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    caller: Optional[str] = None
    session_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "sequence": self.sequence,
            "component": self.component,
            "operation": self.operation,
            "caller": self.caller,
            "session_id": self.session_id,
            "metadata": self.metadata,
        }


class GeoTrustError(Exception):
    """Base exception for all GeoTrust errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context or ErrorContext()
        self.cause = cause
        self.metadata = metadata or {}
        self.timestamp = time.time()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"{self.__class__.__name__}: {self.message}"]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.severity != ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")

        if self.category != ErrorCategory.SYSTEM:
            parts.append(f"Category: {self.category.value}")

        return " | ".join(parts)


class AuthorizationError(GeoTrustError):
    """Caller lacks the admin or delegate role an operation requires."""

    def __init__(
        self,
        message: str,
        caller: Optional[str] = None,
        required: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            error_code="AUTHORIZATION",
            category=ErrorCategory.AUTHORIZATION,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.caller = caller
        self.required = required

    def to_dict(self) -> Dict[str, Any]:
        """Convert authorization error to dictionary."""
        data = super().to_dict()
        data.update({"caller": self.caller, "required": self.required})
        return data


class PolicyDeniedError(GeoTrustError):
    """Jurisdiction is not permitted to participate."""

    def __init__(self, message: str, jurisdiction_code: Optional[int] = None, **kwargs):
        super().__init__(
            message, error_code="POLICY_DENIED", category=ErrorCategory.POLICY, **kwargs
        )
        self.jurisdiction_code = jurisdiction_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert policy error to dictionary."""
        data = super().to_dict()
        data.update({"jurisdiction_code": self.jurisdiction_code})
        return data


class ProofInvalidError(GeoTrustError):
    """Location proof failed decoding, binding, or the pairing check."""

    def __init__(
        self,
        message: str,
        status: Optional[Any] = None,
        proof_id: Optional[str] = None,
        **kwargs,
    ):
        kwargs.setdefault("error_code", "PROOF_INVALID")
        kwargs.setdefault("category", ErrorCategory.PROOF)
        super().__init__(message, **kwargs)
        self.status = status
        self.proof_id = proof_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert proof error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "status": self.status.name if self.status is not None else None,
                "proof_id": self.proof_id,
            }
        )
        return data


class ReplayError(ProofInvalidError):
    """Proof has already been consumed."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", "REPLAY")
        kwargs.setdefault("category", ErrorCategory.REPLAY)
        super().__init__(message, **kwargs)


class StateViolationError(GeoTrustError):
    """Operation invoked against a session in the wrong state."""

    def __init__(
        self,
        message: str,
        session_id: Optional[int] = None,
        expected_state: Optional[Any] = None,
        actual_state: Optional[Any] = None,
        **kwargs,
    ):
        kwargs.setdefault("error_code", "STATE_VIOLATION")
        kwargs.setdefault("category", ErrorCategory.STATE)
        super().__init__(message, **kwargs)
        self.session_id = session_id
        self.expected_state = expected_state
        self.actual_state = actual_state

    def to_dict(self) -> Dict[str, Any]:
        """Convert state error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "session_id": self.session_id,
                "expected_state": str(self.expected_state)
                if self.expected_state is not None
                else None,
                "actual_state": str(self.actual_state)
                if self.actual_state is not None
                else None,
            }
        )
        return data


class SessionNotFoundError(StateViolationError):
    """Session does not exist or has expired."""

    def __init__(self, message: str, session_id: Optional[int] = None, **kwargs):
        super().__init__(
            message,
            session_id=session_id,
            error_code="SESSION_NOT_FOUND",
            category=ErrorCategory.NOT_FOUND,
            **kwargs,
        )


class ResourceBoundError(GeoTrustError):
    """Input exceeds a static cap; raised before any expensive work."""

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        limit: Optional[int] = None,
        actual: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            error_code="RESOURCE_BOUND",
            category=ErrorCategory.RESOURCE,
            **kwargs,
        )
        self.resource = resource
        self.limit = limit
        self.actual = actual

    def to_dict(self) -> Dict[str, Any]:
        """Convert resource error to dictionary."""
        data = super().to_dict()
        data.update(
            {"resource": self.resource, "limit": self.limit, "actual": self.actual}
        )
        return data


class ValidationError(GeoTrustError):
    """Validation error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected

    def to_dict(self) -> Dict[str, Any]:
        """Convert validation error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
                "expected": str(self.expected) if self.expected is not None else None,
            }
        )
        return data


class ConfigurationError(GeoTrustError):
    """Configuration error."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "config_key": self.config_key,
                "config_value": str(self.config_value)
                if self.config_value is not None
                else None,
            }
        )
        return data


class NotificationError(GeoTrustError):
    """External notifier failed. Logged, never propagated to the caller."""

    def __init__(self, message: str, event: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.NOTIFICATION,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.event = event


def create_validation_error(
    field: str, value: Any, expected: Any, message: Optional[str] = None
) -> ValidationError:
    """Create a validation error."""
    if message is None:
        message = f"Invalid value for field '{field}': expected {expected}, got {value}"

    return ValidationError(message=message, field=field, value=value, expected=expected)


def create_resource_error(resource: str, limit: int, actual: int) -> ResourceBoundError:
    """Create a resource bound error."""
    return ResourceBoundError(
        message=f"{resource} of {actual} exceeds the limit of {limit}",
        resource=resource,
        limit=limit,
        actual=actual,
    )
