"""ParamConfig: Expert defaults for the tunnelpath pipeline.

This module defines the complete default configuration. Every stage
parameter has a default here; the stage functions themselves are called
with explicit arguments only and never look up fallbacks.

Runtime code NEVER reads from ParamConfig directly - it only receives the
resolved PipelineConfig.
"""

from typing import Literal, Optional

from pydantic import Field

from tunnelpath.schemas.base import TunnelBaseModel
from tunnelpath.schemas.stages import (
    ExcludeByVelocityConfig,
    FullTrajectoriesConfig,
    InsertTreatmentsConfig,
    MinDistConfig,
    RedefineCenterConfig,
    RelabelAxesConfig,
    RenameSubjectsConfig,
    RotateTunnelConfig,
    SelectPercentConfig,
    SeparateTrajectoriesConfig,
    TrimOutliersConfig,
)

LOG_LEVELS = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ParamConfig(TunnelBaseModel):
    """Expert defaults, one section per stage.

    ``None`` sections are stages that are off unless a user supplies their
    parameters (axis relabeling, outlier trimming, subject renaming,
    rotation, velocity filtering, treatments). Boolean sections are stages
    without parameters.

    The defaults reproduce the usual cleaning run: drop duplicate frames,
    center length and width on their observed midpoints, compute velocity,
    keep the central 33 % of the tunnel, split on any dropped frame and keep
    trajectories covering 80 % of the region of interest.
    """

    frame_rate: Optional[float] = Field(None, gt=0, description="Capture rate in Hz; required to build a table from raw rows")
    file_id: str = "session"

    relabel_axes: Optional[RelabelAxesConfig] = None
    trim_tunnel_outliers: Optional[TrimOutliersConfig] = None
    remove_duplicate_frames: bool = True
    rename_subjects: Optional[RenameSubjectsConfig] = None

    standardization_option: Literal["redefine_tunnel_center", "rotate_tunnel"] = "redefine_tunnel_center"
    redefine_tunnel_center: RedefineCenterConfig = Field(default_factory=RedefineCenterConfig)
    rotate_tunnel: Optional[RotateTunnelConfig] = None

    get_velocity: bool = True
    select_x_percent: Optional[SelectPercentConfig] = Field(default_factory=SelectPercentConfig)
    separate_trajectories: SeparateTrajectoriesConfig = Field(default_factory=SeparateTrajectoriesConfig)
    get_full_trajectories: Optional[FullTrajectoriesConfig] = Field(default_factory=FullTrajectoriesConfig)
    exclude_by_velocity: Optional[ExcludeByVelocityConfig] = None

    insert_treatments: Optional[InsertTreatmentsConfig] = None
    calc_min_dist: Optional[MinDistConfig] = Field(default_factory=MinDistConfig)
    get_vis_angle: bool = True
    get_sf: bool = True

    log_level: LOG_LEVELS = "INFO"
