"""Pipeline contracts: typed errors and fail-fast stage invariants.

Contracts fail immediately and loudly when a stage receives or produces
a table that breaks its promised invariants.

Key principle:
- Pydantic validates config correctness
- Contracts validate table correctness
- Algorithms handle science edge cases (short streams, empty results)
"""

from tunnelpath.contracts.failure import (
    TunnelPathError,
    ConfigError,
    InsufficientDataError,
    ValidationError,
)
from tunnelpath.contracts.base import require
from tunnelpath.contracts.table import assert_canonical
from tunnelpath.contracts.segmentation import assert_segmented
from tunnelpath.contracts.geometry import assert_wall_distances

__all__ = [
    "TunnelPathError",
    "ConfigError",
    "InsufficientDataError",
    "ValidationError",
    "require",
    "assert_canonical",
    "assert_segmented",
    "assert_wall_distances",
]
