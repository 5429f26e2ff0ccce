"""Instantaneous velocity per trajectory."""

import logging

import numpy as np
import pandas as pd

from tunnelpath.contracts import assert_canonical
from tunnelpath.contracts.table import POSITION_COLUMNS
from tunnelpath.tunnel.frame_gaps import stream_keys
from tunnelpath.tunnel.table import TrajectoryTable

__all__ = ['get_velocity', 'VELOCITY_COLUMNS']

logger = logging.getLogger(__name__)

VELOCITY_COLUMNS = ("length_inst_vel", "width_inst_vel", "height_inst_vel")


def _group_velocity(group: pd.DataFrame) -> np.ndarray:
    """Velocity components of one time-ordered group, shape (n, 3)."""
    if len(group) < 2:
        return np.full((len(group), 3), np.nan)
    time = group["time"].to_numpy(dtype=float)
    positions = group[list(POSITION_COLUMNS)].to_numpy(dtype=float)
    return np.gradient(positions, time, axis=0)


def get_velocity(table: TrajectoryTable) -> TrajectoryTable:
    """Add per-axis instantaneous velocity and speed.

    Groups by trajectory when the table is segmented, otherwise by subject
    stream, so velocities never difference across two trajectories.
    ``numpy.gradient`` gives central differences inside a group and one-sided
    differences at its ends.

    Adds ``length_inst_vel``, ``width_inst_vel``, ``height_inst_vel`` and
    ``velocity`` (speed magnitude). Single-row groups get NaN.
    """
    assert_canonical(table, "get_velocity")
    df = table.data
    keys = ["file_sub_traj"] if "file_sub_traj" in df.columns else stream_keys(df)

    velocities = np.full((len(df), 3), np.nan)
    ordered = df.reset_index(drop=True)
    for _, group in ordered.groupby(keys, sort=False):
        group = group.sort_values("time", kind="mergesort")
        velocities[group.index.to_numpy()] = _group_velocity(group)

    out = ordered.copy()
    for i, col in enumerate(VELOCITY_COLUMNS):
        out[col] = velocities[:, i]
    out["velocity"] = np.sqrt(np.sum(velocities ** 2, axis=1))

    logger.debug("get_velocity: computed velocities for %d rows", len(out))
    return table.replace(data=out, meta=table.meta.with_step("get_velocity"))
