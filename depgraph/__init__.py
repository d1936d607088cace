"""Dependency graph engine: edge bookkeeping and cycle detection."""

from .errors import (
    CycleDetectedError,
    DependencyError,
    InvalidArgumentError,
    NotFoundError,
    RootScanError,
    RootScanFailedError,
)
from .model import DependencyGraph
from .trace import canonical_cycle, canonical_units, format_route, split_route, trim_to_cycle

__all__ = [
    "DependencyGraph",
    "DependencyError",
    "InvalidArgumentError",
    "CycleDetectedError",
    "NotFoundError",
    "RootScanError",
    "RootScanFailedError",
    "trim_to_cycle",
    "format_route",
    "split_route",
    "canonical_cycle",
    "canonical_units",
]
