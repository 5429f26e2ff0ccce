"""Canonical table contract.

Enforces the guarantee that a table has been through axis standardization
before any ROI, segmentation or geometry stage touches it.
"""

import pandas as pd

from tunnelpath.contracts.base import require

POSITION_COLUMNS = ("position_length", "position_width", "position_height")
CANONICAL_COLUMNS = ("frame", "time", "subject") + POSITION_COLUMNS

AXES_STANDARDIZED = "axes_standardized"


def assert_canonical(table, stage: str) -> None:
    """Enforce the standardized-table contract.

    Parameters
    ----------
    table : TrajectoryTable
        Table handed to ``stage``.
    stage : str
        Name of the calling stage, used in messages.

    Raises
    ------
    ValidationError
        If a canonical column is missing or the axes were never standardized.
    """
    df = table.data
    require(
        isinstance(df, pd.DataFrame),
        f"{stage}: table data is {type(df)}, expected DataFrame",
    )
    for col in CANONICAL_COLUMNS:
        require(
            col in df.columns,
            f"{stage}: missing canonical column '{col}'",
            parameter=col,
        )
    require(
        AXES_STANDARDIZED in table.meta.steps,
        f"{stage}: table has not been through axis standardization",
        parameter="steps",
        constraint=f"'{AXES_STANDARDIZED}' in steps",
    )
