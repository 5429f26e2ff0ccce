"""Minimum distances from subject positions to tunnel walls.

Two tunnel shapes share one output contract:

- **box**: lateral walls are the planes ``width = +/- tunnel_width / 2``
- **v**: lateral walls are planes through the vertex
  ``(width = 0, height = -perch_2_vertex)``, each tilted ``vertex_angle / 2``
  from vertical

In both shapes the end walls are the planes ``length = +/- tunnel_length / 2``.
Distances are perpendicular (point-to-plane) distances in position units.

Columns added
-------------
min_dist_pos, min_dist_neg : lateral wall distances (positive / negative width side)
min_dist_end : distance to the end wall the subject is facing
end_wall : which end wall ``min_dist_end`` refers to ("pos" or "neg")
closest_wall : nearest of lat_pos, lat_neg and the faced end wall

With ``simplify_output=False`` the raw signed distances (positive inside the
tunnel), both end-wall distances and, for V tunnels, the wall normals and the
foot of the perpendicular on each wall are kept as well.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from tunnelpath.contracts import ConfigError, assert_canonical, assert_wall_distances, require
from tunnelpath.tunnel.frame_gaps import stream_keys
from tunnelpath.tunnel.table import TrajectoryTable, warn_if_uncentered
from tunnelpath.tunnel.treatments import require_tunnel

__all__ = ['calc_min_dist_box', 'calc_min_dist_v', 'calc_min_dist']

logger = logging.getLogger(__name__)

END_WALLS = ("pos", "neg")


# ============================================================================
# MOTION DIRECTION
# ============================================================================

def _motion_sign(df: pd.DataFrame, axis: str) -> np.ndarray:
    """Sign of instantaneous motion along ``axis`` for every row.

    Uses ``<axis>_inst_vel`` from get_velocity() when present; otherwise
    differentiates ``position_<axis>`` against frame within each trajectory
    (or stream). Rows without a defined direction get 0.
    """
    vel_col = f"{axis}_inst_vel"
    if vel_col in df.columns:
        velocity = df[vel_col].to_numpy(dtype=float)
    else:
        velocity = np.zeros(len(df))
        keys = ["file_sub_traj"] if "file_sub_traj" in df.columns else stream_keys(df)
        positions = df[f"position_{axis}"].to_numpy(dtype=float)
        frames = df["frame"].to_numpy(dtype=float)
        for rows in df.groupby(keys, sort=False).indices.values():
            if len(rows) < 2:
                continue
            order = rows[np.argsort(frames[rows], kind="mergesort")]
            velocity[order] = np.gradient(positions[order], frames[order])
    return np.sign(np.nan_to_num(velocity, nan=0.0))


def _end_wall_distances(df: pd.DataFrame, tunnel_length: float,
                        end_wall: Optional[str]) -> dict:
    """Distances to both end walls and the one the subject faces."""
    half = tunnel_length / 2.0
    length = df["position_length"].to_numpy(dtype=float)
    signed_end_pos = half - length
    signed_end_neg = half + length
    dist_end_pos = np.abs(signed_end_pos)
    dist_end_neg = np.abs(signed_end_neg)

    heading = _motion_sign(df, "length")
    if end_wall is not None:
        fallback = np.full(len(df), end_wall, dtype=object)
    else:
        # Nearer wall when stationary; equal distances go to the positive end
        fallback = np.where(dist_end_pos <= dist_end_neg, "pos", "neg").astype(object)
    facing = np.where(heading > 0, "pos", np.where(heading < 0, "neg", fallback)).astype(object)
    dist_end = np.where(facing == "pos", dist_end_pos, dist_end_neg)

    return {
        "min_dist_end_pos": dist_end_pos,
        "min_dist_end_neg": dist_end_neg,
        "min_dist_end": dist_end,
        "end_wall": facing,
        "length_heading": heading,
    }


def _closest_wall(dist_pos: np.ndarray, dist_neg: np.ndarray, dist_end: np.ndarray,
                  end_wall: np.ndarray, width_heading: np.ndarray,
                  length_heading: np.ndarray) -> np.ndarray:
    """Name of the nearest wall; ties go to the wall the subject moves toward."""
    lateral = np.where(
        dist_pos < dist_neg, "lat_pos",
        np.where(dist_neg < dist_pos, "lat_neg",
                 np.where(width_heading < 0, "lat_neg", "lat_pos")),
    )
    lateral_dist = np.minimum(dist_pos, dist_neg)
    end_label = np.char.add("end_", end_wall.astype(str))
    return np.where(
        dist_end < lateral_dist, end_label,
        np.where(lateral_dist < dist_end, lateral,
                 np.where(length_heading != 0, end_label, lateral)),
    ).astype(object)


def _check_end_wall(end_wall: Optional[str]) -> None:
    require(end_wall is None or end_wall in END_WALLS,
            f"end_wall must be 'pos', 'neg' or None, got {end_wall!r}",
            ConfigError, parameter="end_wall", constraint="'pos', 'neg' or None")


def _finish(table: TrajectoryTable, df: pd.DataFrame, lateral: dict, ends: dict,
            extra: dict, simplify_output: bool, step: str) -> TrajectoryTable:
    """Assemble output columns and enforce the geometry contract."""
    df["min_dist_pos"] = np.abs(lateral["signed_dist_pos"])
    df["min_dist_neg"] = np.abs(lateral["signed_dist_neg"])
    df["min_dist_end"] = ends["min_dist_end"]
    df["end_wall"] = ends["end_wall"]
    df["closest_wall"] = _closest_wall(
        df["min_dist_pos"].to_numpy(), df["min_dist_neg"].to_numpy(),
        ends["min_dist_end"], ends["end_wall"],
        _motion_sign(df, "width"), ends["length_heading"],
    )
    if not simplify_output:
        df["min_dist_end_pos"] = ends["min_dist_end_pos"]
        df["min_dist_end_neg"] = ends["min_dist_end_neg"]
        for name, values in {**lateral, **extra}.items():
            df[name] = values

    result = table.replace(data=df, meta=table.meta.with_step(step))
    assert_wall_distances(result, step)
    logger.info("%s: wall distances for %d rows", step, len(df))
    return result


# ============================================================================
# TUNNEL SHAPES
# ============================================================================

def calc_min_dist_box(table: TrajectoryTable, simplify_output: bool = True,
                      end_wall: Optional[str] = None) -> TrajectoryTable:
    """Wall distances in a box tunnel.

    For axis-aligned planar walls the perpendicular distance is the
    coordinate difference: ``tunnel_width / 2 -/+ position_width`` for the
    lateral walls and ``tunnel_length / 2 -/+ position_length`` for the ends.

    Parameters
    ----------
    table : TrajectoryTable
        Centered table with a box treatment.
    simplify_output : bool
        Drop diagnostic columns (signed distances, both end distances).
    end_wall : {"pos", "neg"}, optional
        End wall used when the direction of motion is undefined.

    Raises
    ------
    ConfigError
        If the treatment is missing, not a box, or lacks dimensions.
    """
    _check_end_wall(end_wall)
    tunnel = require_tunnel(table.meta.tunnel, "calc_min_dist_box", "box")
    assert_canonical(table, "calc_min_dist_box")
    warn_if_uncentered(table, "calc_min_dist_box")

    df = table.data.copy()
    half_width = tunnel.tunnel_width / 2.0
    width = df["position_width"].to_numpy(dtype=float)
    lateral = {
        "signed_dist_pos": half_width - width,
        "signed_dist_neg": half_width + width,
    }
    ends = _end_wall_distances(df, tunnel.tunnel_length, end_wall)
    return _finish(table, df, lateral, ends, {}, simplify_output, "calc_min_dist_box")


def calc_min_dist_v(table: TrajectoryTable, simplify_output: bool = True,
                    end_wall: Optional[str] = None) -> TrajectoryTable:
    """Wall distances in a V-shaped tunnel.

    With ``a = vertex_angle / 2`` and the vertex at
    ``(width, height) = (0, -perch_2_vertex)``, each lateral wall is a plane
    containing the length axis through the vertex. Its inward unit normal is
    ``(0, -cos a, sin a)`` for the positive wall and ``(0, cos a, sin a)``
    for the negative wall (length, width, height). The signed distance is the
    projection of the vertex-to-point vector onto that normal::

        h' = position_height + perch_2_vertex
        signed_dist_pos = h' * sin(a) - position_width * cos(a)
        signed_dist_neg = h' * sin(a) + position_width * cos(a)

    Diagnostic columns (``simplify_output=False``): ``height_2_vertex``,
    normal components ``normal_pos_width`` etc., and the foot of the
    perpendicular ``proj_pos_width``, ``proj_pos_height`` (and ``neg``).

    Raises
    ------
    ConfigError
        If the treatment is missing, not a V, or lacks dimensions.
    """
    _check_end_wall(end_wall)
    tunnel = require_tunnel(table.meta.tunnel, "calc_min_dist_v", "v")
    assert_canonical(table, "calc_min_dist_v")
    warn_if_uncentered(table, "calc_min_dist_v")

    df = table.data.copy()
    half_angle = np.radians(tunnel.vertex_angle / 2.0)
    cos_a, sin_a = np.cos(half_angle), np.sin(half_angle)

    width = df["position_width"].to_numpy(dtype=float)
    height = df["position_height"].to_numpy(dtype=float)
    height_2_vertex = height + tunnel.perch_2_vertex

    normal_pos = np.array([-cos_a, sin_a])  # (width, height)
    normal_neg = np.array([cos_a, sin_a])
    offset = np.column_stack([width, height_2_vertex])
    signed_pos = offset @ normal_pos
    signed_neg = offset @ normal_neg

    lateral = {
        "signed_dist_pos": signed_pos,
        "signed_dist_neg": signed_neg,
    }
    extra = {
        "height_2_vertex": height_2_vertex,
        "normal_pos_width": np.full(len(df), normal_pos[0]),
        "normal_pos_height": np.full(len(df), normal_pos[1]),
        "normal_neg_width": np.full(len(df), normal_neg[0]),
        "normal_neg_height": np.full(len(df), normal_neg[1]),
        "proj_pos_width": width - signed_pos * normal_pos[0],
        "proj_pos_height": height - signed_pos * normal_pos[1],
        "proj_neg_width": width - signed_neg * normal_neg[0],
        "proj_neg_height": height - signed_neg * normal_neg[1],
    }
    ends = _end_wall_distances(df, tunnel.tunnel_length, end_wall)
    return _finish(table, df, lateral, ends, extra, simplify_output, "calc_min_dist_v")


def calc_min_dist(table: TrajectoryTable, simplify_output: bool = True,
                  end_wall: Optional[str] = None) -> TrajectoryTable:
    """Dispatch to the box or V calculation based on the treatment."""
    tunnel = require_tunnel(table.meta.tunnel, "calc_min_dist")
    if tunnel.tunnel_config == "box":
        return calc_min_dist_box(table, simplify_output=simplify_output, end_wall=end_wall)
    return calc_min_dist_v(table, simplify_output=simplify_output, end_wall=end_wall)
