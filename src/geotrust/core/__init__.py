"""Primitive types shared across GeoTrust components."""

from .types import (
    U32_MAX,
    U64_MAX,
    Principal,
    checked_add,
    checked_mul,
    checked_sub,
    ensure_principal,
    ensure_u32,
    is_u32,
)

__all__ = [
    "Principal",
    "U32_MAX",
    "U64_MAX",
    "checked_add",
    "checked_sub",
    "checked_mul",
    "is_u32",
    "ensure_u32",
    "ensure_principal",
]
