"""
Cryptographic primitives for GeoTrust.

Hashing for proof identifiers and the Groth16 verification layer in ``zkp``.
"""

from .hashing import Hash, SHA256Hasher

__all__ = ["Hash", "SHA256Hasher"]
