"""Visual angle and spatial frequency of wall stimuli.

Pure functions of the distance columns produced by the geometry engine.
The visual angle subtended by a stimulus element of size ``s`` seen from
distance ``d`` is ``2 * atan(s / (2 * d))``; at ``d = 0`` it is capped at
180 degrees. Spatial frequency is the inverse of the visual angle in
degrees (cycles per degree when ``s`` is one pattern cycle).
"""

import logging

import numpy as np

from tunnelpath.contracts import ConfigError, ValidationError, require
from tunnelpath.tunnel.table import TrajectoryTable
from tunnelpath.tunnel.treatments import require_tunnel

__all__ = ['visual_angle', 'get_vis_angle', 'get_sf']

logger = logging.getLogger(__name__)

# distance column suffix -> stimulus parameter on that wall
_WALL_STIMULI = {
    "pos": "stim_param_lat_pos",
    "neg": "stim_param_lat_neg",
    "end_pos": "stim_param_end_pos",
    "end_neg": "stim_param_end_neg",
}


def visual_angle(stim_param, distance) -> np.ndarray:
    """Visual angle in radians; 180 degrees (pi) at zero distance.

    Parameters
    ----------
    stim_param : float or array-like
        Stimulus size (> 0).
    distance : array-like
        Non-negative distances in the same unit.
    """
    stim = np.asarray(stim_param, dtype=float)
    distance = np.asarray(distance, dtype=float)
    require(bool(np.all(stim > 0)), "visual_angle: stim_param must be positive",
            ConfigError, parameter="stim_param", constraint="> 0")
    safe = np.where(distance == 0, 1.0, distance)
    ratio = np.where(distance == 0, np.inf, stim / (2.0 * safe))
    return 2.0 * np.arctan(ratio)


def get_vis_angle(table: TrajectoryTable) -> TrajectoryTable:
    """Add ``vis_angle_<wall>_rad`` and ``vis_angle_<wall>_deg`` columns.

    Computed for every distance column present: ``min_dist_pos``,
    ``min_dist_neg``, ``min_dist_end`` (stimulus picked per row from
    ``end_wall``) and, with full geometry output, ``min_dist_end_pos`` and
    ``min_dist_end_neg``.

    Raises
    ------
    ConfigError
        If no treatment is attached.
    ValidationError
        If the table has no wall-distance columns.
    """
    tunnel = require_tunnel(table.meta.tunnel, "get_vis_angle")
    df = table.data.copy()

    walls = [w for w in ("pos", "neg", "end", "end_pos", "end_neg") if f"min_dist_{w}" in df.columns]
    if not walls:
        raise ValidationError("get_vis_angle: no min_dist_* columns, run calc_min_dist first",
                              parameter="min_dist_pos")

    for wall in walls:
        distance = df[f"min_dist_{wall}"].to_numpy(dtype=float)
        if wall == "end":
            require("end_wall" in df.columns, "get_vis_angle: min_dist_end without end_wall",
                    ValidationError, parameter="end_wall")
            stim = np.where(df["end_wall"].to_numpy() == "neg",
                            tunnel.stim_param_end_neg, tunnel.stim_param_end_pos)
        else:
            stim = getattr(tunnel, _WALL_STIMULI[wall])
        angle = visual_angle(stim, distance)
        df[f"vis_angle_{wall}_rad"] = angle
        df[f"vis_angle_{wall}_deg"] = np.degrees(angle)

    logger.debug("get_vis_angle: walls=%s", walls)
    return table.replace(data=df, meta=table.meta.with_step("get_vis_angle"))


def get_sf(table: TrajectoryTable) -> TrajectoryTable:
    """Add ``sf_<wall> = 1 / vis_angle_<wall>_deg`` for every visual angle column."""
    df = table.data.copy()
    angle_cols = [c for c in df.columns if c.startswith("vis_angle_") and c.endswith("_deg")]
    if not angle_cols:
        raise ValidationError("get_sf: no vis_angle_*_deg columns, run get_vis_angle first",
                              parameter="vis_angle_pos_deg")

    for col in angle_cols:
        wall = col[len("vis_angle_"):-len("_deg")]
        df[f"sf_{wall}"] = 1.0 / df[col].to_numpy(dtype=float)

    logger.debug("get_sf: %d columns", len(angle_cols))
    return table.replace(data=df, meta=table.meta.with_step("get_sf"))
