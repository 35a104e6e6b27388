"""
Core ZKP types and configuration.

This module defines the Groth16 proof and verification-key containers, the
binding a proof must satisfy, verification results and the verifier
configuration. Points are held in their wire encoding; decoding happens in
the verifier so that a malformed encoding is a rejected proof, never an
exception raised while building a request.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional

from ...core.types import U32_MAX
from ...errors.exceptions import ConfigurationError
from ..hashing import Hash, SHA256Hasher

G1_SIZE = 64
G2_SIZE = 128
SCALAR_SIZE = 32
PROOF_SIZE = G1_SIZE + G2_SIZE + G1_SIZE


class ZKPStatus(IntEnum):
    """Status codes for verification outcomes."""

    SUCCESS = 0
    INVALID_PROOF = 1
    INVALID_INPUT = 2
    BINDING_MISMATCH = 3
    MALFORMED_DATA = 4
    REPLAY_DETECTED = 5
    NO_VERIFICATION_KEY = 6
    RESOURCE_EXCEEDED = 7


@dataclass
class ZKPConfig:
    """Configuration for proof verification."""

    # Static caps on per-call work
    max_public_inputs: int = 16
    max_batch_size: int = 100

    # Replay records live this many ledgers (~30 days at 5s per ledger)
    replay_retention: int = 518_400

    # Location circuit constraints: public inputs are [cell_id, grid_size_scaled]
    enforce_grid_bounds: bool = True
    min_grid_size: int = 1_000_000
    max_grid_size: int = 10_000_000
    max_cell_id: int = 100_000

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration parameters."""
        if self.max_public_inputs <= 0:
            raise ConfigurationError(
                "max_public_inputs must be positive",
                config_key="max_public_inputs",
                config_value=self.max_public_inputs,
            )
        if self.max_batch_size <= 0:
            raise ConfigurationError(
                "max_batch_size must be positive",
                config_key="max_batch_size",
                config_value=self.max_batch_size,
            )
        if self.replay_retention <= 0:
            raise ConfigurationError(
                "replay_retention must be positive",
                config_key="replay_retention",
                config_value=self.replay_retention,
            )
        if not 0 <= self.min_grid_size <= self.max_grid_size:
            raise ConfigurationError(
                "grid size bounds must satisfy 0 <= min <= max",
                config_key="min_grid_size",
                config_value=(self.min_grid_size, self.max_grid_size),
            )
        if not 0 <= self.max_cell_id <= U32_MAX:
            raise ConfigurationError(
                "max_cell_id must fit in a u32",
                config_key="max_cell_id",
                config_value=self.max_cell_id,
            )


@dataclass
class Proof:
    """A Groth16 proof plus the public inputs the prover declares.

    ``a`` and ``c`` are 64-byte G1 encodings, ``b`` a 128-byte G2 encoding.
    """

    a: bytes
    b: bytes
    c: bytes
    public_inputs: List[int] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: bytes, public_inputs: List[int]) -> "Proof":
        """Split a 256-byte ``A || B || C`` encoding."""
        if len(data) != PROOF_SIZE:
            raise ValueError(f"Proof encoding must be {PROOF_SIZE} bytes, got {len(data)}")
        return cls(
            a=data[:G1_SIZE],
            b=data[G1_SIZE:G1_SIZE + G2_SIZE],
            c=data[G1_SIZE + G2_SIZE:],
            public_inputs=list(public_inputs),
        )

    def to_bytes(self) -> bytes:
        return bytes(self.a) + bytes(self.b) + bytes(self.c)

    def public_inputs_bytes(self) -> bytes:
        """Public inputs as concatenated 32-byte big-endian scalars."""
        return b"".join(
            value.to_bytes(SCALAR_SIZE, "big") for value in self.public_inputs
        )

    def proof_id(self) -> Hash:
        """``SHA-256(proof_bytes || public_inputs_bytes)``.

        Only call once the inputs are known to be in-range scalars.
        """
        return SHA256Hasher.hash_list([self.to_bytes(), self.public_inputs_bytes()])


@dataclass
class VerificationKey:
    """Groth16 verification key in wire encoding.

    ``ic`` holds one G1 point per public input plus the constant term.
    """

    alpha: bytes
    beta: bytes
    gamma: bytes
    delta: bytes
    ic: List[bytes] = field(default_factory=list)

    @property
    def input_count(self) -> int:
        return max(len(self.ic) - 1, 0)

    def to_bytes(self) -> bytes:
        return b"".join([self.alpha, self.beta, self.gamma, self.delta, *self.ic])

    def get_hash(self) -> Hash:
        return SHA256Hasher.hash(self.to_bytes())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alpha": self.alpha.hex(),
            "beta": self.beta.hex(),
            "gamma": self.gamma.hex(),
            "delta": self.delta.hex(),
            "ic": [point.hex() for point in self.ic],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerificationKey":
        return cls(
            alpha=bytes.fromhex(data["alpha"]),
            beta=bytes.fromhex(data["beta"]),
            gamma=bytes.fromhex(data["gamma"]),
            delta=bytes.fromhex(data["delta"]),
            ic=[bytes.fromhex(point) for point in data["ic"]],
        )


@dataclass(frozen=True)
class PublicBindingSpec:
    """What a proof's public inputs must say about the caller's plaintext claim.

    The first public input must be the claimed cell. When grid bounds are set
    the second input, the scaled grid size, must fall inside them.
    """

    expected_cell_id: int
    min_grid_size: Optional[int] = None
    max_grid_size: Optional[int] = None
    max_cell_id: Optional[int] = None

    def check(self, public_inputs: List[int]) -> Optional[str]:
        """Return a mismatch reason, or ``None`` when the inputs are bound."""
        if not public_inputs:
            return "no public inputs"
        if public_inputs[0] != self.expected_cell_id:
            return (
                f"first public input {public_inputs[0]} does not match "
                f"claimed cell {self.expected_cell_id}"
            )
        if self.max_cell_id is not None and self.expected_cell_id > self.max_cell_id:
            return f"cell {self.expected_cell_id} exceeds {self.max_cell_id}"
        if self.min_grid_size is not None or self.max_grid_size is not None:
            if len(public_inputs) < 2:
                return "missing grid size input"
            grid_size = public_inputs[1]
            if self.min_grid_size is not None and grid_size < self.min_grid_size:
                return f"grid size {grid_size} below {self.min_grid_size}"
            if self.max_grid_size is not None and grid_size > self.max_grid_size:
                return f"grid size {grid_size} above {self.max_grid_size}"
        return None


@dataclass
class VerificationResult:
    """Result of proof verification."""

    status: ZKPStatus
    is_valid: bool = False
    error_message: Optional[str] = None
    proof_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == ZKPStatus.SUCCESS

    @classmethod
    def rejected(cls, status: ZKPStatus, message: str, proof_id: Optional[str] = None) -> "VerificationResult":
        return cls(status=status, is_valid=False, error_message=message, proof_id=proof_id)
