"""
GeoTrust: location-gated two-player matchmaking.

Players prove which map cell they occupy with a Groth16 proof over BN254,
jurisdictions are admitted or refused by a delegated policy, and sessions
move through WAITING -> ACTIVE -> ENDED.
"""

__version__ = "0.1.0"

from .config import GeoTrustConfig
from .contract import GeoTrustMatch

__all__ = ["GeoTrustConfig", "GeoTrustMatch", "__version__"]
