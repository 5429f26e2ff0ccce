"""Axis and coordinate standardization.

Brings capture data into the canonical tunnel frame:

- relabel_axes: map raw axis suffixes (``_x``, ``_y``, ``_z``) to tunnel roles
- gather_tunnel_data: reshape wide per-subject columns into the long table
- trim_tunnel_outliers / remove_duplicate_frames / rename_subjects: cleanup
- redefine_tunnel_center: translate so (0, 0, 0) is the tunnel center
- rotate_tunnel: rotate and translate using two perch landmarks

Every function returns a new table; inputs are never modified.
"""

import logging
import re
from typing import Optional, Union

import numpy as np
import pandas as pd
from scipy.spatial.transform import Rotation

from tunnelpath.contracts import (
    ConfigError,
    InsufficientDataError,
    assert_canonical,
    require,
)
from tunnelpath.contracts.table import AXES_STANDARDIZED, POSITION_COLUMNS
from tunnelpath.tunnel.table import TrajectoryTable

__all__ = [
    'relabel_axes',
    'gather_tunnel_data',
    'trim_tunnel_outliers',
    'remove_duplicate_frames',
    'rename_subjects',
    'redefine_tunnel_center',
    'rotate_tunnel',
]

logger = logging.getLogger(__name__)

CENTER_METHODS = ("original", "middle", "median", "user-defined")

_WIDE_COLUMN = re.compile(
    r"^(?P<subject>.+)_(?P<kind>position|rotation)_(?P<axis>length|width|height|real)$"
)


# ============================================================================
# AXIS LABELS
# ============================================================================

def _axis_rename_map(columns, roles: dict) -> dict:
    """Map column names ending in a raw suffix to their canonical role."""
    for role in ("length", "width", "height"):
        require(
            bool(roles.get(role)),
            f"relabel_axes: tunnel_{role} has no raw axis suffix",
            ConfigError,
            parameter=f"tunnel_{role}",
            constraint="non-empty suffix",
        )
    suffixes = [s for s in roles.values() if s]
    require(
        len(set(suffixes)) == len(suffixes),
        f"relabel_axes: two roles share a suffix {suffixes}",
        ConfigError,
        parameter="suffixes",
        constraint="unique per role",
    )

    # Longest suffix first so '_xx' is not eaten by '_x'
    ordered = sorted(((s, r) for r, s in roles.items() if s), key=lambda t: -len(t[0]))
    rename = {}
    for col in columns:
        for suffix, role in ordered:
            if col != suffix and col.endswith(suffix):
                rename[col] = col[: -len(suffix)] + f"_{role}"
                break
    return rename


def relabel_axes(obj: Union[TrajectoryTable, pd.DataFrame],
                 tunnel_length: str = "_z",
                 tunnel_width: str = "_x",
                 tunnel_height: str = "_y",
                 real: Optional[str] = "_w") -> Union[TrajectoryTable, pd.DataFrame]:
    """Rename raw axis suffixes to ``_length``, ``_width`` and ``_height``.

    Capture systems name axes after their own frame (Motive uses a
    y-up system, Flydra a z-up one). This maps each raw suffix to the
    tunnel role it plays, e.g. ``device_position_z`` becomes
    ``device_position_length`` with the defaults.

    Parameters
    ----------
    obj : TrajectoryTable or pd.DataFrame
        Wide (pre-gather) frame or long table.
    tunnel_length, tunnel_width, tunnel_height : str
        Raw suffix for each canonical role. All three are required.
    real : str, optional
        Suffix of the quaternion real part, renamed to ``_real``.

    Returns
    -------
    Same type as ``obj`` with renamed columns.

    Raises
    ------
    ConfigError
        If a required role is unmapped or two roles share a suffix.
    """
    roles = {"length": tunnel_length, "width": tunnel_width,
             "height": tunnel_height, "real": real}
    df = obj.data if isinstance(obj, TrajectoryTable) else obj
    rename = _axis_rename_map(df.columns, roles)
    logger.debug("relabel_axes: renaming %d columns", len(rename))
    out = df.rename(columns=rename)

    if not isinstance(obj, TrajectoryTable):
        return out

    meta = obj.meta.with_step("relabel_axes")
    if all(col in out.columns for col in POSITION_COLUMNS) and AXES_STANDARDIZED not in meta.steps:
        meta = meta.with_step(AXES_STANDARDIZED)
    return obj.replace(data=out, meta=meta)


def gather_tunnel_data(df: pd.DataFrame, frame_rate: float, file_id: str = "session",
                       frame_col: str = "frame", time_col: Optional[str] = None,
                       drop_na: bool = True) -> TrajectoryTable:
    """Reshape wide per-subject columns into the canonical long table.

    Columns named ``<subject>_position_<axis>`` (and optionally
    ``<subject>_rotation_<axis>``) become one row per frame and subject.
    Run relabel_axes() first so the axis parts are canonical.

    Parameters
    ----------
    df : pd.DataFrame
        Wide frame with one column per subject and axis.
    frame_rate : float
        Capture rate in Hz.
    file_id : str, optional
        Session identifier.
    frame_col : str, optional
        Name of the frame index column.
    time_col : str, optional
        Name of the time column; ``time`` or ``time_sec`` when omitted.
    drop_na : bool, optional
        Drop rows where any position is missing (frames a subject was lost).

    Raises
    ------
    ValidationError
        If the frame column or any complete subject position set is missing.
    """
    require(frame_col in df.columns, f"gather_tunnel_data: missing '{frame_col}'",
            parameter="frame_col")
    if time_col is None:
        time_col = next((c for c in ("time", "time_sec") if c in df.columns), None)

    by_subject = {}
    for col in df.columns:
        match = _WIDE_COLUMN.match(str(col))
        if match:
            by_subject.setdefault(match["subject"], {})[f"{match['kind']}_{match['axis']}"] = col

    subjects = [s for s, cols in by_subject.items()
                if all(c in cols for c in POSITION_COLUMNS)]
    require(len(subjects) > 0,
            "gather_tunnel_data: no subject has length, width and height position columns",
            parameter="columns")

    pieces = []
    for subject in subjects:
        cols = by_subject[subject]
        piece = pd.DataFrame({"frame": df[frame_col].to_numpy()})
        if time_col is not None:
            piece["time"] = df[time_col].to_numpy()
        piece["subject"] = subject
        for canonical in sorted(cols):
            piece[canonical] = df[cols[canonical]].to_numpy()
        pieces.append(piece)

    long = pd.concat(pieces, ignore_index=True)
    if drop_na:
        before = len(long)
        long = long.dropna(subset=list(POSITION_COLUMNS))
        logger.debug("gather_tunnel_data: dropped %d rows with missing positions",
                     before - len(long))
    long = long.sort_values(["subject", "frame"], kind="mergesort")

    table = TrajectoryTable.from_dataframe(long, frame_rate=frame_rate, file_id=file_id)
    logger.info("Gathered %d subjects into %d rows", len(subjects), len(table))
    return table.replace(meta=table.meta.with_step("gather_tunnel_data"))


# ============================================================================
# CLEANUP
# ============================================================================

def trim_tunnel_outliers(table: TrajectoryTable,
                         lengths_min: Optional[float] = None, lengths_max: Optional[float] = None,
                         widths_min: Optional[float] = None, widths_max: Optional[float] = None,
                         heights_min: Optional[float] = None, heights_max: Optional[float] = None,
                         ) -> TrajectoryTable:
    """Keep rows inside an axis-aligned box; ``None`` leaves a side open."""
    assert_canonical(table, "trim_tunnel_outliers")
    df = table.data
    bounds = {
        "position_length": (lengths_min, lengths_max),
        "position_width": (widths_min, widths_max),
        "position_height": (heights_min, heights_max),
    }
    keep = np.ones(len(df), dtype=bool)
    for col, (lo, hi) in bounds.items():
        if lo is not None and hi is not None:
            require(lo < hi, f"trim_tunnel_outliers: {col} min >= max", ConfigError,
                    parameter=col, constraint="min < max")
        if lo is not None:
            keep &= df[col].to_numpy() >= lo
        if hi is not None:
            keep &= df[col].to_numpy() <= hi

    out = df.loc[keep].reset_index(drop=True)
    logger.info("trim_tunnel_outliers: kept %d of %d rows", len(out), len(df))
    return table.replace(data=out, meta=table.meta.with_step("trim_tunnel_outliers"))


def remove_duplicate_frames(table: TrajectoryTable) -> TrajectoryTable:
    """Drop repeated (file_id, subject, frame) rows, keeping the first."""
    assert_canonical(table, "remove_duplicate_frames")
    df = table.data
    keys = [c for c in ("file_id", "subject", "frame") if c in df.columns]
    dup = df.duplicated(subset=keys, keep="first")
    meta = table.meta.with_step("remove_duplicate_frames")
    n_dup = int(dup.sum())
    if n_dup:
        message = f"remove_duplicate_frames: dropped {n_dup} duplicate rows"
        logger.info(message)
        meta = meta.with_warning(message)
    return table.replace(data=df.loc[~dup].reset_index(drop=True), meta=meta)


def rename_subjects(table: TrajectoryTable, target: str, replacement: str = "") -> TrajectoryTable:
    """Replace ``target`` with ``replacement`` inside subject names."""
    require(bool(target), "rename_subjects: target must be non-empty", ConfigError,
            parameter="target")
    df = table.data.copy()
    df["subject"] = df["subject"].str.replace(target, replacement, regex=False)
    return table.replace(data=df, meta=table.meta.with_step("rename_subjects"))


# ============================================================================
# CENTERING AND ROTATION
# ============================================================================

def _axis_offset(values: np.ndarray, method: str, zero: Optional[float], axis: str) -> float:
    """Amount subtracted from one axis for a centering method."""
    require(method in CENTER_METHODS,
            f"redefine_tunnel_center: unknown {axis}_method '{method}'",
            ConfigError, parameter=f"{axis}_method", constraint=f"one of {CENTER_METHODS}")
    if method == "original":
        return 0.0
    if method == "user-defined":
        require(zero is not None,
                f"redefine_tunnel_center: {axis}_method='user-defined' needs {axis}_zero",
                ConfigError, parameter=f"{axis}_zero")
        return float(zero)
    require(values.size > 0, f"redefine_tunnel_center: no rows to compute {axis} {method}",
            InsufficientDataError, parameter=f"position_{axis}")
    if method == "middle":
        return float((np.nanmin(values) + np.nanmax(values)) / 2.0)
    return float(np.nanmedian(values))


def redefine_tunnel_center(table: TrajectoryTable,
                           length_method: str = "middle",
                           width_method: str = "middle",
                           height_method: str = "original",
                           length_zero: Optional[float] = None,
                           width_zero: Optional[float] = None,
                           height_zero: Optional[float] = None) -> TrajectoryTable:
    """Translate coordinates so the tunnel center sits at the origin.

    Per axis, the method picks the value that becomes zero:

    - ``"original"``: leave the axis untouched
    - ``"middle"``: midpoint of the observed range
    - ``"median"``: median of the observed values
    - ``"user-defined"``: the matching ``*_zero`` argument

    Centering with user-defined offsets and then with the negated offsets
    returns the original coordinates.

    Raises
    ------
    ConfigError
        Unknown method, or ``user-defined`` without an offset.
    """
    assert_canonical(table, "redefine_tunnel_center")
    df = table.data.copy()
    settings = {
        "length": (length_method, length_zero),
        "width": (width_method, width_zero),
        "height": (height_method, height_zero),
    }
    # Resolve all offsets before touching any column
    offsets = {
        axis: _axis_offset(df[f"position_{axis}"].to_numpy(dtype=float), method, zero, axis)
        for axis, (method, zero) in settings.items()
    }
    for axis, offset in offsets.items():
        df[f"position_{axis}"] = df[f"position_{axis}"] - offset

    logger.info("Tunnel re-centered: offsets length=%.4f width=%.4f height=%.4f",
                offsets["length"], offsets["width"], offsets["height"])
    meta = table.meta.with_step("redefine_tunnel_center", centering="redefine_tunnel_center")
    return table.replace(data=df, meta=meta)


def _landmark_centroid(df: pd.DataFrame, name: str, ranges: dict) -> np.ndarray:
    """Mean position of rows inside a landmark bounding box."""
    mask = np.ones(len(df), dtype=bool)
    for col, (lo, hi) in ranges.items():
        if lo is None and hi is None:
            continue
        require(lo is not None and hi is not None and lo < hi,
                f"rotate_tunnel: {name} {col} range must be (min, max) with min < max",
                ConfigError, parameter=f"{name}_{col}", constraint="min < max")
        values = df[col].to_numpy(dtype=float)
        mask &= (values >= lo) & (values <= hi)

    points = df.loc[mask, list(POSITION_COLUMNS)].to_numpy(dtype=float)
    require(len(points) > 0,
            f"rotate_tunnel: no rows fall inside the {name} bounding box",
            InsufficientDataError, parameter=name, constraint="at least one landmark row")
    logger.debug("rotate_tunnel: %s centroid from %d rows", name, len(points))
    return points.mean(axis=0)


def rotate_tunnel(table: TrajectoryTable,
                  perch1_len_min: float, perch1_len_max: float,
                  perch2_len_min: float, perch2_len_max: float,
                  perch1_wid_min: float, perch1_wid_max: float,
                  perch2_wid_min: float, perch2_wid_max: float,
                  perch1_hei_min: Optional[float] = None, perch1_hei_max: Optional[float] = None,
                  perch2_hei_min: Optional[float] = None, perch2_hei_max: Optional[float] = None,
                  ) -> TrajectoryTable:
    """Center and rotate the tunnel using two perch landmarks.

    Each perch centroid is the mean position of rows inside its bounding
    box. The midpoint between centroids becomes the origin, and all points
    are rotated about the height axis so the perch-to-perch line runs along
    the length axis (both perches end up at ``width = 0``).

    Raises
    ------
    InsufficientDataError
        If no rows fall inside a perch bounding box.
    ConfigError
        If a range is inverted or half specified.
    """
    assert_canonical(table, "rotate_tunnel")
    df = table.data.copy()

    perch1 = _landmark_centroid(df, "perch1", {
        "position_length": (perch1_len_min, perch1_len_max),
        "position_width": (perch1_wid_min, perch1_wid_max),
        "position_height": (perch1_hei_min, perch1_hei_max),
    })
    perch2 = _landmark_centroid(df, "perch2", {
        "position_length": (perch2_len_min, perch2_len_max),
        "position_width": (perch2_wid_min, perch2_wid_max),
        "position_height": (perch2_hei_min, perch2_hei_max),
    })
    require(not np.allclose(perch1[:2], perch2[:2]),
            "rotate_tunnel: perch centroids coincide in the length/width plane",
            InsufficientDataError, parameter="perch2")

    origin = (perch1 + perch2) / 2.0
    delta = perch2 - perch1
    angle = float(np.arctan2(delta[1], delta[0]))

    # (length, width, height) is a right-handed (x, y, z) frame; height is z
    rotation = Rotation.from_euler("z", -angle)
    points = df[list(POSITION_COLUMNS)].to_numpy(dtype=float) - origin
    df[list(POSITION_COLUMNS)] = rotation.apply(points) if len(points) else points

    logger.info("Tunnel rotated by %.2f deg about height; origin moved to (%.4f, %.4f, %.4f)",
                np.degrees(angle), *origin)
    meta = table.meta.with_step("rotate_tunnel", centering="rotate_tunnel", rotation_angle=angle)
    return table.replace(data=df, meta=meta)
