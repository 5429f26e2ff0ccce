"""Segmentation stage contract.

Enforces the guarantee that after segmentation every row carries a
trajectory label and labels never span two subjects or two sessions.
"""

from tunnelpath.contracts.base import require
from tunnelpath.contracts.table import assert_canonical

TRAJECTORY_COLUMNS = ("traj_id", "sub_traj", "file_sub_traj")


def assert_segmented(table, stage: str = "segmentation") -> None:
    """Enforce segmentation stage contract.

    Called after separate_trajectories() and on entry to every stage that
    groups by trajectory.

    Raises
    ------
    ValidationError
        If labels are missing or null, or shared between subjects or sessions.
    """
    assert_canonical(table, stage)
    df = table.data
    for col in TRAJECTORY_COLUMNS:
        require(
            col in df.columns,
            f"{stage}: missing '{col}', run separate_trajectories first",
            parameter=col,
        )

    if len(df) > 0:
        require(
            df["file_sub_traj"].notna().all(),
            f"{stage}: file_sub_traj contains unset labels",
            parameter="file_sub_traj",
        )
        subjects_per_traj = df.groupby("file_sub_traj", sort=False)["subject"].nunique()
        require(
            (subjects_per_traj == 1).all(),
            f"{stage}: a trajectory label spans more than one subject",
            parameter="file_sub_traj",
            constraint="one subject per trajectory",
        )
        if "file_id" in df.columns:
            sessions_per_traj = df.groupby("file_sub_traj", sort=False)["file_id"].nunique()
            require(
                (sessions_per_traj == 1).all(),
                f"{stage}: a trajectory label spans more than one session",
                parameter="file_sub_traj",
                constraint="one session per trajectory",
            )
