"""
Shared primitive types for GeoTrust.

Integer widths follow the ledger the core was designed for: session ids,
cell ids and jurisdiction codes are u32, sequence numbers are u64. Python
integers are unbounded, so every arithmetic step that could leave those
ranges goes through the checked helpers below.
"""

from typing import Any, Optional

from ..errors.exceptions import create_validation_error

Principal = str

U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1


def checked_add(a: int, b: int, limit: int = U64_MAX) -> Optional[int]:
    """Return ``a + b``, or ``None`` if the result leaves ``[0, limit]``."""
    result = a + b
    if result < 0 or result > limit:
        return None
    return result


def checked_sub(a: int, b: int, limit: int = U64_MAX) -> Optional[int]:
    """Return ``a - b``, or ``None`` if the result leaves ``[0, limit]``."""
    result = a - b
    if result < 0 or result > limit:
        return None
    return result


def checked_mul(a: int, b: int, limit: int = U64_MAX) -> Optional[int]:
    """Return ``a * b``, or ``None`` if the result leaves ``[0, limit]``."""
    result = a * b
    if result < 0 or result > limit:
        return None
    return result


def is_u32(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= U32_MAX


def ensure_u32(field: str, value: Any) -> int:
    """Validate that ``value`` fits in a u32 and return it."""
    if not is_u32(value):
        raise create_validation_error(field, value, f"integer in [0, {U32_MAX}]")
    return value


def ensure_principal(field: str, value: Any) -> Principal:
    if not isinstance(value, str) or not value:
        raise create_validation_error(field, value, "non-empty principal")
    return value
