"""Test fixtures for GeoTrust.

This module provides a simulated Groth16 setup and notifier doubles.

``TrapdoorSetup`` knows the toxic waste behind its verification key, which
lets it produce proofs that satisfy the pairing equation for any public
inputs without a circuit or a prover. It must never back a real deployment.
"""

import random
import secrets
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

from py_ecc import optimized_bn128 as bn128

from ..core.types import Principal
from ..crypto.zkp.core import Proof, VerificationKey
from ..crypto.zkp.curve import CURVE_ORDER, encode_g1, encode_g2
from ..logging import get_logger

logger = get_logger(__name__)

DEFAULT_GRID_SIZE = 5_000_000


def _nonzero_scalar(rng: Optional[random.Random]) -> int:
    if rng is not None:
        return rng.randrange(1, CURVE_ORDER)
    return secrets.randbelow(CURVE_ORDER - 1) + 1


class TrapdoorSetup:
    """Simulated Groth16 setup for ``input_count`` public inputs.

    With secret scalars alpha, beta, gamma, delta and u_i, the key is
    ``(alpha*G1, beta*G2, gamma*G2, delta*G2, [u_i*G1])``. A proof for inputs
    ``x`` picks random ``a``, ``b`` and solves

        a*b = alpha*beta + c*gamma + s*delta,   s = u_0 + sum(x_i * u_{i+1})

    for ``c``, so ``(a*G1, b*G2, c*G1)`` passes verification.
    """

    def __init__(self, input_count: int = 2, seed: Optional[int] = None):
        self._rng = random.Random(seed) if seed is not None else None
        self.input_count = input_count
        self._alpha = _nonzero_scalar(self._rng)
        self._beta = _nonzero_scalar(self._rng)
        self._gamma = _nonzero_scalar(self._rng)
        self._delta = _nonzero_scalar(self._rng)
        self._ic = [_nonzero_scalar(self._rng) for _ in range(input_count + 1)]
        self.verification_key = VerificationKey(
            alpha=encode_g1(bn128.multiply(bn128.G1, self._alpha)),
            beta=encode_g2(bn128.multiply(bn128.G2, self._beta)),
            gamma=encode_g2(bn128.multiply(bn128.G2, self._gamma)),
            delta=encode_g2(bn128.multiply(bn128.G2, self._delta)),
            ic=[encode_g1(bn128.multiply(bn128.G1, u)) for u in self._ic],
        )

    def prove(self, public_inputs: Sequence[int]) -> Proof:
        """Honest proof for ``public_inputs``. Each call yields a fresh proof."""
        if len(public_inputs) != self.input_count:
            raise ValueError(f"expected {self.input_count} public inputs, got {len(public_inputs)}")

        r = CURVE_ORDER
        s = self._ic[0]
        for value, u in zip(public_inputs, self._ic[1:]):
            s = (s + value * u) % r

        a = _nonzero_scalar(self._rng)
        b = _nonzero_scalar(self._rng)
        c = (a * b - self._alpha * self._beta - s * self._delta) * pow(self._gamma, -1, r) % r

        return Proof(
            a=encode_g1(bn128.multiply(bn128.G1, a)),
            b=encode_g2(bn128.multiply(bn128.G2, b)),
            c=encode_g1(bn128.multiply(bn128.G1, c)),
            public_inputs=list(public_inputs),
        )

    def location_proof(self, cell_id: int, grid_size: int = DEFAULT_GRID_SIZE) -> Proof:
        """Proof with the location circuit's ``[cell_id, grid_size]`` inputs."""
        return self.prove([cell_id, grid_size])


def flip_byte(proof: Proof, component: str, index: int = 0, mask: int = 0x01) -> Proof:
    """Copy of ``proof`` with one byte of ``a``, ``b`` or ``c`` XOR-ed with ``mask``."""
    data = bytearray(getattr(proof, component))
    data[index] ^= mask
    return replace(proof, **{component: bytes(data)}, public_inputs=list(proof.public_inputs))


def swap_components(proof: Proof, other: Proof) -> Proof:
    """Proof whose ``c`` comes from ``other``; still well-formed, never valid."""
    return replace(proof, c=other.c, public_inputs=list(proof.public_inputs))


@dataclass
class RecordingNotifier:
    """Notifier that remembers every event it receives."""

    started: List[Tuple[int, Principal, Principal, int, int]] = field(default_factory=list)
    ended: List[Tuple[int, bool]] = field(default_factory=list)

    def notify_start(self, session_id, player_a, player_b, score_a, score_b) -> None:
        self.started.append((session_id, player_a, player_b, score_a, score_b))

    def notify_end(self, session_id, outcome) -> None:
        self.ended.append((session_id, outcome))


class FailingNotifier(RecordingNotifier):
    """Notifier that records each event and then raises."""

    def notify_start(self, session_id, player_a, player_b, score_a, score_b) -> None:
        super().notify_start(session_id, player_a, player_b, score_a, score_b)
        raise RuntimeError("game hub unavailable")

    def notify_end(self, session_id, outcome) -> None:
        super().notify_end(session_id, outcome)
        raise RuntimeError("game hub unavailable")
