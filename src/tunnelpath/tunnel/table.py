"""Canonical trajectory table shared by every pipeline stage.

A ``TrajectoryTable`` pairs a long-format DataFrame (one row per frame and
subject) with an immutable ``TableMetadata`` record. Stages never modify a
table in place: they copy the frame, add or filter columns, and return a
new table with updated metadata.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from tunnelpath.contracts import ValidationError, require
from tunnelpath.contracts.table import AXES_STANDARDIZED, CANONICAL_COLUMNS, POSITION_COLUMNS
from tunnelpath.schemas.metadata import TableMetadata

__all__ = ['TrajectoryTable', 'CANONICAL_COLUMNS', 'POSITION_COLUMNS', 'warn_if_uncentered']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrajectoryTable:
    """Per-frame subject positions plus read-only metadata.

    Attributes
    ----------
    data : pd.DataFrame
        Long-format table. After standardization it holds ``frame``,
        ``time``, ``subject``, ``file_id`` and the three ``position_*``
        columns; later stages add trajectory labels, distances and
        perception metrics.
    meta : TableMetadata
        Frame rate, processing history and tunnel treatment.
    """

    data: pd.DataFrame
    meta: TableMetadata

    def __len__(self) -> int:
        return len(self.data)

    @property
    def frame_rate(self) -> float:
        return self.meta.frame_rate

    @property
    def subjects(self) -> list:
        return sorted(self.data["subject"].unique().tolist()) if "subject" in self.data else []

    @property
    def trajectories(self) -> list:
        """Trajectory labels in order of first appearance."""
        if "file_sub_traj" not in self.data:
            return []
        return self.data["file_sub_traj"].drop_duplicates().tolist()

    def replace(self, data: Optional[pd.DataFrame] = None,
                meta: Optional[TableMetadata] = None) -> "TrajectoryTable":
        """Return a new table sharing whatever is not replaced."""
        return TrajectoryTable(
            data=self.data if data is None else data,
            meta=self.meta if meta is None else meta,
        )

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, frame_rate: float,
                       file_id: str = "session",
                       meta: Optional[TableMetadata] = None) -> "TrajectoryTable":
        """Build a table from a frame that already uses canonical column names.

        ``time`` is derived as ``frame / frame_rate`` when absent, and a
        ``file_id`` column is filled from ``file_id`` when absent. Frames
        that do not yet carry canonical axes are accepted (and marked as
        not standardized) so relabel_axes() can run on them.

        Parameters
        ----------
        df : pd.DataFrame
            Input records. Must contain at least ``frame`` and ``subject``.
        frame_rate : float
            Capture rate in Hz (> 0).
        file_id : str, optional
            Session identifier for trajectory labels.
        meta : TableMetadata, optional
            Existing metadata to extend instead of creating a new record.

        Raises
        ------
        ValidationError
            If ``frame`` or ``subject`` is missing or frames are not integral.
        """
        require("frame" in df.columns, "missing 'frame' column", parameter="frame")
        require("subject" in df.columns, "missing 'subject' column", parameter="subject")

        out = df.copy()
        frames = out["frame"].to_numpy()
        if not np.issubdtype(frames.dtype, np.integer):
            if not np.all(np.mod(frames.astype(float), 1) == 0):
                raise ValidationError("frame values must be integers", parameter="frame")
        out["frame"] = out["frame"].astype(np.int64)
        out["subject"] = out["subject"].astype(str)

        if meta is None:
            meta = TableMetadata(frame_rate=frame_rate, file_id=file_id)

        if "time" not in out.columns:
            out["time"] = out["frame"] / meta.frame_rate
        if "file_id" not in out.columns:
            out["file_id"] = meta.file_id

        if all(col in out.columns for col in POSITION_COLUMNS):
            if AXES_STANDARDIZED not in meta.steps:
                meta = meta.with_step(AXES_STANDARDIZED)
        else:
            logger.debug("Table has no canonical position columns yet: %s", list(out.columns))

        return cls(data=out.reset_index(drop=True), meta=meta)


def warn_if_uncentered(table: TrajectoryTable, stage: str) -> None:
    """Log a warning when no centering or rotation stage has run.

    Window bounds and wall positions are measured from the tunnel midpoint,
    so results on an uncentered table are offset by wherever the capture
    system put its origin.
    """
    if table.meta.centering is None:
        logger.warning("%s: table was never centered (run redefine_tunnel_center or "
                       "rotate_tunnel first); positions are taken as-is", stage)
