"""Region-of-interest selection along the tunnel's long axis."""

import logging
from typing import Optional

import numpy as np

from tunnelpath.contracts import ConfigError, InsufficientDataError, assert_canonical, require
from tunnelpath.schemas.metadata import RegionOfInterest
from tunnelpath.tunnel.table import TrajectoryTable, warn_if_uncentered

__all__ = ['select_x_percent', 'roi_length']

logger = logging.getLogger(__name__)


def select_x_percent(table: TrajectoryTable, desired_percent: float = 33,
                     tunnel_length: Optional[float] = None) -> TrajectoryTable:
    """Keep the central ``desired_percent`` of the tunnel length.

    Rows with ``position_length`` in ``[-L*p/200, +L*p/200]`` are kept,
    where ``L`` is ``tunnel_length`` if given, otherwise the treatment's
    tunnel length, otherwise the observed length range. The table must be
    centered on the tunnel midpoint for the window to be meaningful.

    Parameters
    ----------
    table : TrajectoryTable
        Standardized, centered table.
    desired_percent : float
        Percentage of the tunnel length to keep, in (0, 100].
    tunnel_length : float, optional
        Known physical tunnel length.

    Returns
    -------
    TrajectoryTable
        Filtered rows; ``meta.roi`` records the window.

    Raises
    ------
    ConfigError
        If ``desired_percent`` is outside (0, 100] or ``tunnel_length`` <= 0.
    """
    require(0 < desired_percent <= 100,
            f"select_x_percent: desired_percent={desired_percent} is out of range",
            ConfigError, parameter="desired_percent", constraint="0 < p <= 100")
    if tunnel_length is not None:
        require(tunnel_length > 0, "select_x_percent: tunnel_length must be positive",
                ConfigError, parameter="tunnel_length", constraint="> 0")
    assert_canonical(table, "select_x_percent")
    warn_if_uncentered(table, "select_x_percent")

    df = table.data
    if tunnel_length is None and table.meta.tunnel is not None:
        tunnel_length = table.meta.tunnel.tunnel_length
    if tunnel_length is None:
        require(len(df) > 0, "select_x_percent: cannot infer tunnel length from an empty table",
                InsufficientDataError, parameter="position_length")
        lengths = df["position_length"].to_numpy(dtype=float)
        tunnel_length = float(np.nanmax(lengths) - np.nanmin(lengths))
        require(tunnel_length > 0, "select_x_percent: observed length range is zero",
                InsufficientDataError, parameter="position_length")

    half = tunnel_length * desired_percent / 200.0
    values = df["position_length"].to_numpy(dtype=float)
    keep = (values >= -half) & (values <= half)
    out = df.loc[keep].reset_index(drop=True)

    roi = RegionOfInterest(
        percent=float(desired_percent),
        full_length=float(tunnel_length),
        selected_length=2.0 * half,
        lower=-half,
        upper=half,
    )
    logger.info("select_x_percent: %.1f%% of %.3f -> [%.3f, %.3f], kept %d of %d rows",
                desired_percent, tunnel_length, -half, half, len(out), len(df))
    return table.replace(data=out, meta=table.meta.with_step("select_x_percent", roi=roi))


def roi_length(table: TrajectoryTable) -> float:
    """Length of the active region of interest.

    The selected window when select_x_percent() has run, else the observed
    ``position_length`` range. Returns 0.0 for an empty table without ROI.
    """
    if table.meta.roi is not None:
        return table.meta.roi.selected_length
    if len(table.data) == 0:
        return 0.0
    lengths = table.data["position_length"].to_numpy(dtype=float)
    return float(np.nanmax(lengths) - np.nanmin(lengths))
