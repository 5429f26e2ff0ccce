"""Geometry stage contract.

Enforces the guarantee that after wall-distance computation the distance
columns exist and hold no negative values.
"""

import numpy as np

from tunnelpath.contracts.base import require

DISTANCE_COLUMNS = ("min_dist_pos", "min_dist_neg", "min_dist_end")


def assert_wall_distances(table, stage: str = "geometry") -> None:
    """Enforce geometry stage contract.

    Raises
    ------
    ValidationError
        If a distance column is missing or negative.
    """
    df = table.data
    for col in DISTANCE_COLUMNS:
        require(
            col in df.columns,
            f"{stage}: missing '{col}', run calc_min_dist first",
            parameter=col,
        )
        values = df[col].to_numpy(dtype=float)
        finite = values[np.isfinite(values)]
        require(
            (finite >= 0).all(),
            f"{stage}: '{col}' contains negative distances (min={finite.min() if finite.size else 0})",
            parameter=col,
            constraint=">= 0",
        )
