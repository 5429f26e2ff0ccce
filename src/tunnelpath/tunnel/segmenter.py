"""Trajectory segmentation by frame-gap tolerance."""

import logging
from collections import Counter
from typing import List, Tuple, Union

import numpy as np
import pandas as pd

from tunnelpath.contracts import (
    ConfigError,
    ValidationError,
    assert_canonical,
    assert_segmented,
    require,
)
from tunnelpath.tunnel.frame_gaps import autodetect_max_frame_gap, stream_keys
from tunnelpath.tunnel.table import TrajectoryTable

__all__ = ['TrajectorySegmenter', 'separate_trajectories']

logger = logging.getLogger(__name__)

AUTODETECT = "autodetect"


class TrajectorySegmenter:
    """Split each subject's frame stream into gap-bounded trajectories.

    Per stream (one subject within one session), frames are visited in
    ascending order with two pieces of state: the current trajectory
    ordinal and the last frame seen. A step larger than ``max_frame_gap``
    closes the current trajectory and opens the next ordinal.
    ``max_frame_gap=1`` means zero tolerance: any missing frame splits.

    Parameters
    ----------
    max_frame_gap : int or "autodetect"
        Largest frame step bridged within one trajectory.
    frame_rate_proportion : float
        Search budget for auto-detection (fraction of the frame rate).
    span : float
        Span rule used by auto-detection to score candidates.
    frame_gap_messaging : bool
        Log the auto-detection curve at INFO level.

    Examples
    --------
    >>> seg = TrajectorySegmenter(max_frame_gap=5)
    >>> labeled = seg.segment(table)
    >>> labeled.trajectories[:2]
    ['session_bird01_1', 'session_bird01_2']
    """

    def __init__(self, max_frame_gap: Union[int, str] = 1,
                 frame_rate_proportion: float = 0.1,
                 span: float = 0.8,
                 frame_gap_messaging: bool = False):
        if isinstance(max_frame_gap, str):
            require(max_frame_gap.lower().strip() == AUTODETECT,
                    f"Unknown max_frame_gap '{max_frame_gap}'",
                    ConfigError, parameter="max_frame_gap",
                    constraint="positive integer or 'autodetect'")
            max_frame_gap = AUTODETECT
        else:
            require(int(max_frame_gap) == max_frame_gap and max_frame_gap >= 1,
                    f"max_frame_gap={max_frame_gap} must be a positive integer",
                    ConfigError, parameter="max_frame_gap", constraint=">= 1")
            max_frame_gap = int(max_frame_gap)

        self.max_frame_gap = max_frame_gap
        self.frame_rate_proportion = frame_rate_proportion
        self.span = span
        self.frame_gap_messaging = frame_gap_messaging

        logger.debug("TrajectorySegmenter initialized: max_frame_gap=%s", self.max_frame_gap)

    @property
    def autodetect(self) -> bool:
        return self.max_frame_gap == AUTODETECT

    def resolve_max_frame_gap(self, table: TrajectoryTable) -> int:
        """Fixed threshold, or the auto-detected one for this table."""
        if not self.autodetect:
            return self.max_frame_gap
        chosen, _ = autodetect_max_frame_gap(
            table,
            frame_rate_proportion=self.frame_rate_proportion,
            span=self.span,
            messaging=self.frame_gap_messaging,
        )
        return chosen

    def segment(self, table: TrajectoryTable) -> TrajectoryTable:
        """Label every row with its trajectory.

        Adds ``traj_id`` (ordinal from 1 within a stream), ``sub_traj``
        (``<subject>_<ordinal>``) and ``file_sub_traj``
        (``<file_id>_<subject>_<ordinal>``, with a ``-<n>`` suffix on the
        prefix when two streams would otherwise share it). Streams with
        fewer than two frames are dropped with one aggregated warning.

        Raises
        ------
        ValidationError
            If the table is not standardized or a stream repeats a frame.
        """
        assert_canonical(table, "separate_trajectories")
        max_frame_gap = self.resolve_max_frame_gap(table)

        df = table.data
        if "file_id" not in df.columns:
            df = df.assign(file_id=table.meta.file_id)
        keys = stream_keys(df)

        streams = []
        dropped = []
        for key, group in df.groupby(keys, sort=True):
            stream = group.sort_values("frame", kind="mergesort")
            if len(stream) < 2:
                dropped.append("/".join(str(k) for k in np.atleast_1d(key)))
                continue
            streams.append(stream)

        prefixes, renamed = _stream_prefixes(streams)
        labeled = [self._label_stream(stream, prefix, max_frame_gap)
                   for stream, prefix in zip(streams, prefixes)]

        if labeled:
            out = pd.concat(labeled, ignore_index=True)
        else:
            out = df.iloc[0:0].assign(traj_id=pd.Series(dtype=np.int64),
                                      sub_traj=pd.Series(dtype=object),
                                      file_sub_traj=pd.Series(dtype=object))

        meta = table.meta.with_step(
            "separate_trajectories",
            max_frame_gap=max_frame_gap,
            frame_gap_autodetected=self.autodetect,
        )
        if dropped:
            message = (f"separate_trajectories: dropped {len(dropped)} stream(s) with fewer "
                       f"than 2 frames: {', '.join(dropped)}")
            logger.info(message)
            meta = meta.with_warning(message)
        if renamed:
            message = (f"separate_trajectories: {len(renamed)} stream(s) would share a label "
                       f"prefix, relabeled as: {', '.join(renamed)}")
            logger.info(message)
            meta = meta.with_warning(message)

        result = table.replace(data=out, meta=meta)
        assert_segmented(result, "separate_trajectories")
        logger.info("separate_trajectories: %d trajectories from %d streams (max_frame_gap=%d%s)",
                    out["file_sub_traj"].nunique(), len(labeled), max_frame_gap,
                    ", autodetected" if self.autodetect else "")
        return result

    @staticmethod
    def _label_stream(stream: pd.DataFrame, prefix: str, max_frame_gap: int) -> pd.DataFrame:
        """Run the gap state machine over one stream sorted by frame."""
        frames = stream["frame"].to_numpy(dtype=np.int64)
        ordinals = np.empty(len(frames), dtype=np.int64)

        current_trajectory_id = 1
        last_frame_seen = frames[0]
        for i, frame in enumerate(frames):
            gap = frame - last_frame_seen
            if i > 0 and gap <= 0:
                raise ValidationError(
                    f"frame {frame} repeats or goes backwards in stream "
                    f"'{stream['subject'].iloc[0]}'; run remove_duplicate_frames first",
                    parameter="frame", constraint="strictly increasing per stream",
                )
            if gap > max_frame_gap:
                current_trajectory_id += 1
            ordinals[i] = current_trajectory_id
            last_frame_seen = frame

        out = stream.copy()
        subject = out["subject"].astype(str)
        out["traj_id"] = ordinals
        out["sub_traj"] = subject + "_" + out["traj_id"].astype(str)
        out["file_sub_traj"] = prefix + "_" + out["traj_id"].astype(str)
        return out


def _stream_prefixes(streams: List[pd.DataFrame]) -> Tuple[List[str], List[str]]:
    """Label prefix for each stream, unique across the table.

    The prefix is ``<file_id>_<subject>``. Since ids and subject names may
    themselves contain ``_``, two streams can join to the same text (file
    ``a`` with subject ``b_c`` and file ``a_b`` with subject ``c``). Every
    stream in such a group gets a ``-<n>`` suffix, with ``n`` chosen so the
    result matches no other prefix. The ordinal appended after the last
    ``_`` is all digits, so unique prefixes give unique labels.

    Returns
    -------
    prefixes : list of str
        One prefix per stream, in input order.
    renamed : list of str
        The suffixed prefixes.
    """
    natural = [f"{stream['file_id'].iloc[0]}_{stream['subject'].iloc[0]}" for stream in streams]
    counts = Counter(natural)
    taken = set(natural)

    prefixes = []
    renamed = []
    for prefix in natural:
        if counts[prefix] > 1:
            n = 1
            while f"{prefix}-{n}" in taken:
                n += 1
            prefix = f"{prefix}-{n}"
            taken.add(prefix)
            renamed.append(prefix)
        prefixes.append(prefix)
    return prefixes, renamed


def separate_trajectories(table: TrajectoryTable, max_frame_gap: Union[int, str] = 1,
                          frame_rate_proportion: float = 0.1, span: float = 0.8,
                          frame_gap_messaging: bool = False) -> TrajectoryTable:
    """Functional wrapper around TrajectorySegmenter.segment()."""
    segmenter = TrajectorySegmenter(
        max_frame_gap=max_frame_gap,
        frame_rate_proportion=frame_rate_proportion,
        span=span,
        frame_gap_messaging=frame_gap_messaging,
    )
    return segmenter.segment(table)
