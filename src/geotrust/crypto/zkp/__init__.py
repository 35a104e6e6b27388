"""
Zero-knowledge location proof verification for GeoTrust.

Groth16 proofs over BN254 attest that a prover occupies a map cell without
revealing where in the cell they are. This package decodes and validates
proofs, binds them to the caller's plaintext claim, checks the pairing
equation and enforces at-most-once use.

Security Considerations:
- Proofs and public inputs are untrusted; every defect is a rejection, not a crash
- Input counts and batch sizes are capped before any curve arithmetic runs
- Points are checked for curve membership and, on G2, subgroup membership
- Each accepted proof is recorded and can never be accepted again within
  the retention horizon
"""

from .core import (
    G1_SIZE,
    G2_SIZE,
    PROOF_SIZE,
    Proof,
    PublicBindingSpec,
    VerificationKey,
    VerificationResult,
    ZKPConfig,
    ZKPStatus,
)
from .curve import MalformedPointError, decode_g1, decode_g2, encode_g1, encode_g2
from .groth16 import PreparedVerificationKey, prepare_verification_key, verify_groth16
from .verification import BatchVerifier, ProofVerifier, ReplayGuard

__all__ = [
    # Core types
    "ZKPConfig",
    "ZKPStatus",
    "Proof",
    "PublicBindingSpec",
    "VerificationKey",
    "VerificationResult",
    "G1_SIZE",
    "G2_SIZE",
    "PROOF_SIZE",
    # Curve
    "MalformedPointError",
    "decode_g1",
    "decode_g2",
    "encode_g1",
    "encode_g2",
    # Groth16
    "PreparedVerificationKey",
    "prepare_verification_key",
    "verify_groth16",
    # Verification
    "ProofVerifier",
    "BatchVerifier",
    "ReplayGuard",
]
