"""
BN254 point encoding and validation.

Wire layout (EIP-197, as used by Soroban's BN254 host functions):

- G1: 64 bytes, ``x || y``, 32-byte big-endian base-field integers.
- G2: 128 bytes, ``x.c1 || x.c0 || y.c1 || y.c0`` (imaginary part first).
- The all-zero encoding is the point at infinity.

Arithmetic is delegated to ``py_ecc.optimized_bn128``, whose points are
projective triples.
"""

from typing import Any, Tuple

from py_ecc import optimized_bn128 as bn128

from .core import G1_SIZE, G2_SIZE, SCALAR_SIZE

FIELD_MODULUS = bn128.field_modulus
CURVE_ORDER = bn128.curve_order

G1Point = Tuple[Any, Any, Any]
G2Point = Tuple[Any, Any, Any]


class MalformedPointError(ValueError):
    """Encoding is the wrong size, out of range, off the curve, or outside the subgroup."""


def _coordinate(data: bytes, offset: int) -> int:
    value = int.from_bytes(data[offset:offset + SCALAR_SIZE], "big")
    if value >= FIELD_MODULUS:
        raise MalformedPointError("coordinate is not reduced modulo the field")
    return value


def _int(element: Any) -> int:
    return element.n if hasattr(element, "n") else int(element)


def decode_g1(data: bytes) -> G1Point:
    """Decode a G1 point. BN254 G1 has cofactor 1, so on-curve implies in-subgroup."""
    if not isinstance(data, (bytes, bytearray)) or len(data) != G1_SIZE:
        raise MalformedPointError(f"G1 encoding must be {G1_SIZE} bytes")
    if not any(data):
        return bn128.Z1
    x = _coordinate(data, 0)
    y = _coordinate(data, SCALAR_SIZE)
    point = (bn128.FQ(x), bn128.FQ(y), bn128.FQ.one())
    if not bn128.is_on_curve(point, bn128.b):
        raise MalformedPointError("G1 point is not on the curve")
    return point


def decode_g2(data: bytes) -> G2Point:
    """Decode a G2 point, including the prime-order subgroup check."""
    if not isinstance(data, (bytes, bytearray)) or len(data) != G2_SIZE:
        raise MalformedPointError(f"G2 encoding must be {G2_SIZE} bytes")
    if not any(data):
        return bn128.Z2
    x_im = _coordinate(data, 0)
    x_re = _coordinate(data, SCALAR_SIZE)
    y_im = _coordinate(data, 2 * SCALAR_SIZE)
    y_re = _coordinate(data, 3 * SCALAR_SIZE)
    point = (
        bn128.FQ2([x_re, x_im]),
        bn128.FQ2([y_re, y_im]),
        bn128.FQ2.one(),
    )
    if not bn128.is_on_curve(point, bn128.b2):
        raise MalformedPointError("G2 point is not on the curve")
    if not bn128.is_inf(bn128.multiply(point, CURVE_ORDER)):
        raise MalformedPointError("G2 point is not in the prime-order subgroup")
    return point


def encode_g1(point: G1Point) -> bytes:
    if bn128.is_inf(point):
        return b"\x00" * G1_SIZE
    x, y = bn128.normalize(point)
    return _int(x).to_bytes(SCALAR_SIZE, "big") + _int(y).to_bytes(SCALAR_SIZE, "big")


def encode_g2(point: G2Point) -> bytes:
    if bn128.is_inf(point):
        return b"\x00" * G2_SIZE
    x, y = bn128.normalize(point)
    x_re, x_im = (_int(c) for c in x.coeffs)
    y_re, y_im = (_int(c) for c in y.coeffs)
    return b"".join(
        value.to_bytes(SCALAR_SIZE, "big") for value in (x_im, x_re, y_im, y_re)
    )


def is_infinity(point: Any) -> bool:
    return bn128.is_inf(point)


def is_scalar(value: Any) -> bool:
    """True for an integer in ``[0, r)``, the BN254 scalar field."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < CURVE_ORDER
