"""
Groth16 verification over BN254.

The verification equation

    e(A, B) = e(alpha, beta) * e(C, gamma) * e(IC_sum, delta)

is checked as a single multi-pairing with the right-hand side negated:

    e(A, B) * e(-alpha, beta) * e(-C, gamma) * e(-IC_sum, delta) == 1

The four Miller loops are multiplied together and share one final
exponentiation, which is the expensive half of a pairing.
"""

from dataclasses import dataclass
from typing import List, Sequence

from py_ecc import optimized_bn128 as bn128

from .core import VerificationKey
from .curve import G1Point, G2Point, MalformedPointError, decode_g1, decode_g2, is_infinity


@dataclass(frozen=True)
class PreparedVerificationKey:
    """Decoded verification key, validated once when the key is published."""

    alpha: G1Point
    beta: G2Point
    gamma: G2Point
    delta: G2Point
    ic: Sequence[G1Point]

    @property
    def input_count(self) -> int:
        return len(self.ic) - 1


def prepare_verification_key(vk: VerificationKey) -> PreparedVerificationKey:
    """Decode and validate every point of ``vk``.

    Raises:
        MalformedPointError: if a point fails to decode, or a fixed element
            or the IC vector is degenerate.
    """
    if not vk.ic:
        raise MalformedPointError("IC vector is empty")

    alpha = decode_g1(vk.alpha)
    beta = decode_g2(vk.beta)
    gamma = decode_g2(vk.gamma)
    delta = decode_g2(vk.delta)
    for name, point in (("alpha", alpha), ("beta", beta), ("gamma", gamma), ("delta", delta)):
        if is_infinity(point):
            raise MalformedPointError(f"{name} is the point at infinity")

    ic: List[G1Point] = []
    for index, encoded in enumerate(vk.ic):
        point = decode_g1(encoded)
        if is_infinity(point):
            raise MalformedPointError(f"IC[{index}] is the point at infinity")
        ic.append(point)

    return PreparedVerificationKey(alpha=alpha, beta=beta, gamma=gamma, delta=delta, ic=tuple(ic))


def compute_ic_sum(ic: Sequence[G1Point], public_inputs: Sequence[int]) -> G1Point:
    """``ic[0] + sum(public_inputs[i] * ic[i + 1])``.

    Callers must have checked ``len(public_inputs) == len(ic) - 1``.
    """
    acc = ic[0]
    for scalar, point in zip(public_inputs, ic[1:]):
        if scalar:
            acc = bn128.add(acc, bn128.multiply(point, scalar))
    return acc


def pairing_check(pairs: Sequence[tuple]) -> bool:
    """True iff the product of ``e(P, Q)`` over ``(P, Q)`` pairs is one."""
    product = bn128.FQ12.one()
    for g1_point, g2_point in pairs:
        product = product * bn128.pairing(g2_point, g1_point, final_exponentiate=False)
    return bn128.final_exponentiate(product) == bn128.FQ12.one()


def verify_groth16(
    pvk: PreparedVerificationKey,
    a: G1Point,
    b: G2Point,
    c: G1Point,
    public_inputs: Sequence[int],
) -> bool:
    ic_sum = compute_ic_sum(pvk.ic, public_inputs)
    return pairing_check(
        [
            (a, b),
            (bn128.neg(pvk.alpha), pvk.beta),
            (bn128.neg(c), pvk.gamma),
            (bn128.neg(ic_sum), pvk.delta),
        ]
    )


def decode_proof_points(a: bytes, b: bytes, c: bytes) -> tuple:
    """Decode ``(A, B, C)``; raises ``MalformedPointError`` on a bad encoding."""
    return decode_g1(a), decode_g2(b), decode_g1(c)
