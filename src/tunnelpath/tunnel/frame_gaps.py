"""Frame-gap analysis and automatic ``max_frame_gap`` detection.

Choosing how many missing frames a trajectory may bridge is a trade-off:
a strict threshold splits real flights at every dropped frame, a loose one
glues separate visits together. The yield curve (number of trajectories
that span the region of interest, per candidate threshold) usually rises
steeply and then flattens; the knee of that curve is the auto-detected
threshold.

This is the only stage that needs the whole dataset at once: the gap
distribution and every candidate are evaluated globally before any
stream is labeled.
"""

import logging
import math
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from tunnelpath.contracts import ConfigError, assert_canonical, require
from tunnelpath.tunnel.roi import roi_length
from tunnelpath.tunnel.table import TrajectoryTable

__all__ = [
    'stream_keys',
    'frame_gap_distribution',
    'evaluate_frame_gap_choices',
    'find_curve_elbow',
    'autodetect_max_frame_gap',
]

logger = logging.getLogger(__name__)


def stream_keys(df: pd.DataFrame) -> list:
    """Columns identifying one subject's stream within one session."""
    return ["file_id", "subject"] if "file_id" in df.columns else ["subject"]


def _sorted_streams(table: TrajectoryTable) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Frames, lengths and stream-start flags for streams with >= 2 frames."""
    df = table.data
    keys = stream_keys(df)
    sizes = df.groupby(keys, sort=False)["frame"].transform("size")
    usable = df.loc[sizes >= 2].sort_values(keys + ["frame"], kind="mergesort")

    frames = usable["frame"].to_numpy(dtype=np.int64)
    lengths = usable["position_length"].to_numpy(dtype=float)
    starts = np.ones(len(usable), dtype=bool)
    if len(usable) > 1:
        same_stream = np.ones(len(usable) - 1, dtype=bool)
        for key in keys:
            values = usable[key].to_numpy()
            same_stream &= values[1:] == values[:-1]
        starts[1:] = ~same_stream
    return frames, lengths, starts


def frame_gap_distribution(table: TrajectoryTable) -> pd.Series:
    """Counts of consecutive-frame gaps across all streams.

    Returns
    -------
    pd.Series
        Index is the gap size (1 = no missing frame), values are counts,
        sorted by gap size.
    """
    assert_canonical(table, "frame_gap_distribution")
    frames, _, starts = _sorted_streams(table)
    if len(frames) < 2:
        return pd.Series(dtype=np.int64, name="count")
    gaps = np.diff(frames)[~starts[1:]]
    values, counts = np.unique(gaps, return_counts=True)
    return pd.Series(counts, index=pd.Index(values, name="frame_gap"), name="count")


def evaluate_frame_gap_choices(table: TrajectoryTable, max_candidate: Optional[int] = None,
                               span: float = 0.8) -> pd.DataFrame:
    """Yield of every candidate threshold, from the largest down to 1.

    For each candidate the streams are split wherever the frame gap exceeds
    it, and the resulting trajectories are scored with the same span rule
    as get_full_trajectories().

    Parameters
    ----------
    table : TrajectoryTable
        Standardized table (ROI already selected, if any).
    max_candidate : int, optional
        Largest threshold tried. Defaults to the largest observed gap.
    span : float
        Fraction of the ROI length a trajectory must cover to count as full.

    Returns
    -------
    pd.DataFrame
        Columns ``max_frame_gap``, ``trajectories``, ``full_trajectories``
        and ``retained_proportion`` (rows in full trajectories / usable rows),
        one row per candidate in descending threshold order.
    """
    require(0 < span <= 1, f"evaluate_frame_gap_choices: span={span} out of range",
            ConfigError, parameter="span", constraint="0 < span <= 1")
    assert_canonical(table, "evaluate_frame_gap_choices")

    frames, lengths, starts = _sorted_streams(table)
    roi_len = roi_length(table)
    gaps = np.zeros(len(frames), dtype=np.int64)
    if len(frames) > 1:
        gaps[1:] = np.diff(frames)

    observed_max = int(gaps[~starts].max()) if (~starts).any() else 1
    if max_candidate is None:
        max_candidate = observed_max
    require(max_candidate >= 1, "evaluate_frame_gap_choices: max_candidate must be >= 1",
            ConfigError, parameter="max_candidate", constraint=">= 1")

    rows = []
    for candidate in range(int(max_candidate), 0, -1):
        breaks = starts | (gaps > candidate)
        idx = np.flatnonzero(breaks)
        if idx.size == 0:
            rows.append((candidate, 0, 0, 0.0))
            continue
        sizes = np.diff(np.append(idx, len(frames)))
        covered = np.maximum.reduceat(lengths, idx) - np.minimum.reduceat(lengths, idx)
        if roi_len > 0:
            full = covered / roi_len >= span
        else:
            full = np.zeros(idx.size, dtype=bool)
        retained = float(sizes[full].sum()) / len(frames)
        rows.append((candidate, int(idx.size), int(full.sum()), retained))

    return pd.DataFrame(rows, columns=["max_frame_gap", "trajectories",
                                       "full_trajectories", "retained_proportion"])


def find_curve_elbow(x, y) -> int:
    """Index of the knee of a curve.

    Both axes are scaled to [0, 1]; the knee is the point farthest from the
    straight line joining the first and last points. Ties resolve to the
    lowest index. Curves with fewer than three points, or with no spread in
    ``y``, return the first index attaining the maximum ``y``.

    Parameters
    ----------
    x, y : array-like
        Curve coordinates, ``x`` sorted ascending.

    Returns
    -------
    int
        Position in ``x`` / ``y`` of the knee.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    require(x.shape == y.shape and x.size > 0, "find_curve_elbow: x and y must be non-empty and aligned",
            ConfigError, parameter="x")

    y_span = y.max() - y.min()
    x_span = x.max() - x.min()
    if x.size < 3 or y_span == 0 or x_span == 0:
        return int(np.argmax(y))

    xn = (x - x.min()) / x_span
    yn = (y - y.min()) / y_span
    x1, y1, x2, y2 = xn[0], yn[0], xn[-1], yn[-1]
    norm = math.hypot(x2 - x1, y2 - y1)
    distances = np.abs((x2 - x1) * (y1 - yn) - (x1 - xn) * (y2 - y1)) / norm
    return int(np.argmax(distances))


def autodetect_max_frame_gap(table: TrajectoryTable, frame_rate_proportion: float = 0.1,
                             span: float = 0.8, messaging: bool = False
                             ) -> Tuple[int, pd.DataFrame]:
    """Pick ``max_frame_gap`` from the knee of the yield curve.

    Candidates run from ``min(largest observed gap, ceil(frame_rate *
    frame_rate_proportion))`` down to 1. Deterministic for a fixed table
    and fixed parameters.

    Parameters
    ----------
    table : TrajectoryTable
        Standardized table.
    frame_rate_proportion : float
        Sensitivity: the largest gap considered, as a fraction of the frame
        rate (0.1 at 100 Hz allows at most 10 missing frames).
    span : float
        Span rule used to count full trajectories.
    messaging : bool
        Log the yield curve and the chosen value at INFO level.

    Returns
    -------
    (int, pd.DataFrame)
        The chosen threshold and the evaluated curve.
    """
    require(0 < frame_rate_proportion <= 1,
            f"autodetect_max_frame_gap: frame_rate_proportion={frame_rate_proportion} out of range",
            ConfigError, parameter="frame_rate_proportion", constraint="0 < proportion <= 1")

    distribution = frame_gap_distribution(table)
    observed_max = int(distribution.index.max()) if len(distribution) else 1
    budget = max(1, math.ceil(table.frame_rate * frame_rate_proportion))
    upper = max(1, min(observed_max, budget))

    curve = evaluate_frame_gap_choices(table, max_candidate=upper, span=span)
    ascending = curve.iloc[::-1].reset_index(drop=True)
    knee = find_curve_elbow(ascending["max_frame_gap"], ascending["full_trajectories"])
    chosen = int(ascending.loc[knee, "max_frame_gap"])

    log = logger.info if messaging else logger.debug
    log("Frame gaps observed (gap: count): %s", dict(distribution.items()))
    for row in ascending.itertuples(index=False):
        log("  max_frame_gap=%d trajectories=%d full=%d retained=%.3f",
            row.max_frame_gap, row.trajectories, row.full_trajectories, row.retained_proportion)
    log("Auto-detected max_frame_gap=%d (searched 1..%d)", chosen, upper)
    return chosen, curve
