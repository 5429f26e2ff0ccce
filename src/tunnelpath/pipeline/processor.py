"""Stage dispatch for the tunnel pipeline.

Maps each stage config in ``tunnelpath.schemas.stages`` to the tunnel
function it parameterizes. Stage functions are pure: they take a
TrajectoryTable plus the config's keyword arguments and return a new
table.
"""

import logging
import time
from typing import TYPE_CHECKING

from tunnelpath.contracts import ConfigError
from tunnelpath.tunnel import (
    calc_min_dist,
    exclude_by_velocity,
    get_full_trajectories,
    get_sf,
    get_velocity,
    get_vis_angle,
    insert_treatments,
    redefine_tunnel_center,
    relabel_axes,
    remove_duplicate_frames,
    rename_subjects,
    rotate_tunnel,
    select_x_percent,
    separate_trajectories,
    trim_tunnel_outliers,
)
from tunnelpath.tunnel.table import TrajectoryTable

if TYPE_CHECKING:
    from tunnelpath.schemas.stages import StageConfig

__all__ = ['STAGE_FUNCTIONS', 'StageProcessor']

logger = logging.getLogger(__name__)


STAGE_FUNCTIONS = {
    "relabel_axes": relabel_axes,
    "trim_tunnel_outliers": trim_tunnel_outliers,
    "remove_duplicate_frames": remove_duplicate_frames,
    "redefine_tunnel_center": redefine_tunnel_center,
    "rotate_tunnel": rotate_tunnel,
    "rename_subjects": rename_subjects,
    "get_velocity": get_velocity,
    "select_x_percent": select_x_percent,
    "separate_trajectories": separate_trajectories,
    "get_full_trajectories": get_full_trajectories,
    "exclude_by_velocity": exclude_by_velocity,
    "insert_treatments": insert_treatments,
    "calc_min_dist": calc_min_dist,
    "get_vis_angle": get_vis_angle,
    "get_sf": get_sf,
}


class StageProcessor:
    """Runs one configured stage on a table.

    Keeps per-stage timing and row counts for the run summary.

    Example usage::

        processor = StageProcessor()
        table = processor.process(table, SelectPercentConfig(desired_percent=50))
        processor.history   # [("select_x_percent", rows_in, rows_out, seconds)]
    """

    def __init__(self):
        self.history = []

    def process(self, table: TrajectoryTable, stage: "StageConfig") -> TrajectoryTable:
        """Apply ``stage`` to ``table``.

        Raises
        ------
        ConfigError
            If no function is registered for the stage name.
        """
        func = STAGE_FUNCTIONS.get(stage.stage)
        if func is None:
            raise ConfigError(f"Unknown pipeline stage '{stage.stage}'", parameter="stage")

        rows_in = len(table)
        started = time.perf_counter()
        result = func(table, **stage.kwargs())
        elapsed = time.perf_counter() - started

        self.history.append((stage.stage, rows_in, len(result), elapsed))
        logger.debug("%s: %d -> %d rows in %.3fs", stage.stage, rows_in, len(result), elapsed)
        return result
