"""Trajectory-level filters applied after segmentation."""

import logging
from typing import Optional

import numpy as np

from tunnelpath.contracts import ConfigError, ValidationError, assert_segmented, require
from tunnelpath.tunnel.roi import roi_length
from tunnelpath.tunnel.table import TrajectoryTable

__all__ = ['get_full_trajectories', 'exclude_by_velocity']

logger = logging.getLogger(__name__)


def get_full_trajectories(table: TrajectoryTable, span: float = 0.8) -> TrajectoryTable:
    """Keep trajectories that cover at least ``span`` of the ROI length.

    For each trajectory the covered fraction is
    ``(max(position_length) - min(position_length)) / roi_length`` where
    ``roi_length`` is the window chosen by select_x_percent(), or the
    observed length range when no ROI was selected.

    Parameters
    ----------
    table : TrajectoryTable
        Segmented table.
    span : float
        Minimum covered fraction, in (0, 1].

    Returns
    -------
    TrajectoryTable
        Possibly empty. An empty result is not an error; callers must check.

    Raises
    ------
    ConfigError
        If ``span`` is outside (0, 1].
    """
    require(0 < span <= 1, f"get_full_trajectories: span={span} out of range",
            ConfigError, parameter="span", constraint="0 < span <= 1")
    assert_segmented(table, "get_full_trajectories")

    df = table.data
    length = roi_length(table)
    meta = table.meta.with_step("get_full_trajectories", span=float(span))

    if len(df) == 0 or length <= 0:
        message = "get_full_trajectories: no trajectories to filter"
        logger.info(message)
        return table.replace(data=df.iloc[0:0].copy(), meta=meta.with_warning(message))

    grouped = df.groupby("file_sub_traj", sort=False)["position_length"]
    covered = (grouped.max() - grouped.min()) / length
    keep = covered.index[covered >= span]
    out = df.loc[df["file_sub_traj"].isin(keep)].reset_index(drop=True)

    logger.info("get_full_trajectories: kept %d of %d trajectories (span=%.2f, roi length=%.3f)",
                len(keep), len(covered), span, length)
    if len(keep) == 0:
        message = f"get_full_trajectories: no trajectory spans {span:.0%} of the region of interest"
        logger.info(message)
        meta = meta.with_warning(message)
    return table.replace(data=out, meta=meta)


def exclude_by_velocity(table: TrajectoryTable, vel_min: Optional[float] = None,
                        vel_max: Optional[float] = None) -> TrajectoryTable:
    """Drop whole trajectories with any speed outside [vel_min, vel_max].

    Requires the ``velocity`` column from get_velocity(). NaN speeds (single
    frame groups) never exclude a trajectory.
    """
    require(vel_min is not None or vel_max is not None,
            "exclude_by_velocity: set vel_min, vel_max or both",
            ConfigError, parameter="vel_min")
    if vel_min is not None and vel_max is not None:
        require(vel_min < vel_max, "exclude_by_velocity: vel_min must be below vel_max",
                ConfigError, parameter="vel_min", constraint="vel_min < vel_max")
    assert_segmented(table, "exclude_by_velocity")
    if "velocity" not in table.data.columns:
        raise ValidationError("exclude_by_velocity: missing 'velocity', run get_velocity first",
                              parameter="velocity")

    df = table.data
    speed = df["velocity"].to_numpy(dtype=float)
    bad = np.zeros(len(df), dtype=bool)
    if vel_min is not None:
        bad |= speed < vel_min
    if vel_max is not None:
        bad |= speed > vel_max

    excluded = set(df.loc[bad, "file_sub_traj"])
    out = df.loc[~df["file_sub_traj"].isin(excluded)].reset_index(drop=True)
    logger.info("exclude_by_velocity: removed %d trajectories", len(excluded))
    return table.replace(data=out, meta=table.meta.with_step("exclude_by_velocity"))
