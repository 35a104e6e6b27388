"""Testing utilities for GeoTrust."""

from .fixtures import (
    DEFAULT_GRID_SIZE,
    FailingNotifier,
    RecordingNotifier,
    TrapdoorSetup,
    flip_byte,
    swap_components,
)

__all__ = [
    "TrapdoorSetup",
    "RecordingNotifier",
    "FailingNotifier",
    "flip_byte",
    "swap_components",
    "DEFAULT_GRID_SIZE",
]
