"""
Configuration for GeoTrust.

This module aggregates the per-component configurations and applies
``GEOTRUST_*`` environment overrides on top of them.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict

from .crypto.zkp.core import ZKPConfig
from .errors.exceptions import ConfigurationError
from .governance.policy import PolicyConfig
from .logging import get_logger
from .session.models import SessionConfig

logger = get_logger(__name__)


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class GeoTrustConfig:
    """Complete configuration for one deployment."""

    zkp: ZKPConfig = field(default_factory=ZKPConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    # Environment overrides
    environment_overrides: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Apply environment variable overrides."""
        self._apply_environment_overrides()

    def _apply_environment_overrides(self) -> None:
        env_mappings = {
            "GEOTRUST_MAX_PUBLIC_INPUTS": (self.zkp, "max_public_inputs", int),
            "GEOTRUST_MAX_BATCH_SIZE": (self.zkp, "max_batch_size", int),
            "GEOTRUST_REPLAY_RETENTION": (self.zkp, "replay_retention", int),
            "GEOTRUST_ENFORCE_GRID_BOUNDS": (self.zkp, "enforce_grid_bounds", bool),
            "GEOTRUST_MIN_GRID_SIZE": (self.zkp, "min_grid_size", int),
            "GEOTRUST_MAX_GRID_SIZE": (self.zkp, "max_grid_size", int),
            "GEOTRUST_MAX_CELL_ID": (self.zkp, "max_cell_id", int),
            "GEOTRUST_DEFAULT_ALLOW_ALL": (self.policy, "default_allow_all", bool),
            "GEOTRUST_MAX_PAGE_SIZE": (self.policy, "max_page_size", int),
            "GEOTRUST_SESSION_TTL": (self.session, "session_ttl", int),
        }

        for env_var, (section, attr_name, attr_type) in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is None:
                continue
            previous = getattr(section, attr_name)
            try:
                value = _parse_bool(env_value) if attr_type is bool else attr_type(env_value)
                setattr(section, attr_name, value)
                section.validate()
            except (ValueError, TypeError, ConfigurationError) as e:
                setattr(section, attr_name, previous)
                logger.warning(f"Ignoring invalid environment variable {env_var}={env_value}: {e}")
                continue
            self.environment_overrides[env_var] = value

    def validate(self) -> None:
        self.zkp.validate()
        self.policy.validate()
        self.session.validate()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "zkp": dict(vars(self.zkp)),
            "policy": dict(vars(self.policy)),
            "session": dict(vars(self.session)),
            "environment_overrides": dict(self.environment_overrides),
        }
