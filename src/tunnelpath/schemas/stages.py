"""Per-stage configuration models.

Each pipeline stage has one frozen model carrying exactly the parameters
of the matching function in ``tunnelpath.tunnel``. The ``stage`` literal
discriminates them inside ``PipelineConfig.stages`` so an ordered list of
plain dicts validates into the right models.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import Field, field_validator, model_validator

from tunnelpath.schemas.base import TunnelBaseModel


class StageConfig(TunnelBaseModel):
    """Common behaviour for stage configs."""

    def kwargs(self) -> dict:
        """Keyword arguments for the stage function."""
        return self.model_dump(exclude={"stage"})


class RelabelAxesConfig(StageConfig):
    """Raw axis suffix for each tunnel role."""
    stage: Literal["relabel_axes"] = "relabel_axes"
    tunnel_length: str = "_z"
    tunnel_width: str = "_x"
    tunnel_height: str = "_y"
    real: Optional[str] = "_w"


class TrimOutliersConfig(StageConfig):
    """Axis-aligned box of plausible positions; None leaves a side open."""
    stage: Literal["trim_tunnel_outliers"] = "trim_tunnel_outliers"
    lengths_min: Optional[float] = None
    lengths_max: Optional[float] = None
    widths_min: Optional[float] = None
    widths_max: Optional[float] = None
    heights_min: Optional[float] = None
    heights_max: Optional[float] = None


class RemoveDuplicateFramesConfig(StageConfig):
    stage: Literal["remove_duplicate_frames"] = "remove_duplicate_frames"


class RedefineCenterConfig(StageConfig):
    """Translation-only centering."""
    stage: Literal["redefine_tunnel_center"] = "redefine_tunnel_center"
    length_method: Literal["original", "middle", "median", "user-defined"] = "middle"
    width_method: Literal["original", "middle", "median", "user-defined"] = "middle"
    height_method: Literal["original", "middle", "median", "user-defined"] = "original"
    length_zero: Optional[float] = None
    width_zero: Optional[float] = None
    height_zero: Optional[float] = None

    @field_validator("length_method", "width_method", "height_method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        """Accept 'Middle', 'user_defined' and similar spellings."""
        if isinstance(v, str):
            return v.lower().strip().replace("_", "-")
        return v

    @model_validator(mode="after")
    def user_defined_needs_offset(self):
        for axis in ("length", "width", "height"):
            if getattr(self, f"{axis}_method") == "user-defined" and getattr(self, f"{axis}_zero") is None:
                raise ValueError(f"{axis}_method='user-defined' requires {axis}_zero")
        return self


class RotateTunnelConfig(StageConfig):
    """Perch bounding boxes for rotate_tunnel()."""
    stage: Literal["rotate_tunnel"] = "rotate_tunnel"
    perch1_len_min: float
    perch1_len_max: float
    perch2_len_min: float
    perch2_len_max: float
    perch1_wid_min: float
    perch1_wid_max: float
    perch2_wid_min: float
    perch2_wid_max: float
    perch1_hei_min: Optional[float] = None
    perch1_hei_max: Optional[float] = None
    perch2_hei_min: Optional[float] = None
    perch2_hei_max: Optional[float] = None


class RenameSubjectsConfig(StageConfig):
    stage: Literal["rename_subjects"] = "rename_subjects"
    target: str = Field(min_length=1)
    replacement: str = ""


class VelocityConfig(StageConfig):
    stage: Literal["get_velocity"] = "get_velocity"


class SelectPercentConfig(StageConfig):
    """Central window of the tunnel length."""
    stage: Literal["select_x_percent"] = "select_x_percent"
    desired_percent: float = Field(33.0, gt=0, le=100)
    tunnel_length: Optional[float] = Field(None, gt=0)


class SeparateTrajectoriesConfig(StageConfig):
    """Frame-gap segmentation."""
    stage: Literal["separate_trajectories"] = "separate_trajectories"
    max_frame_gap: Union[int, Literal["autodetect"]] = 1
    frame_rate_proportion: float = Field(0.1, gt=0, le=1)
    span: float = Field(0.8, gt=0, le=1)
    frame_gap_messaging: bool = False

    @field_validator("max_frame_gap", mode="before")
    @classmethod
    def normalize_max_frame_gap(cls, v):
        """Accept 'AUTODETECT' / 'auto' and numeric strings."""
        if isinstance(v, str):
            v = v.lower().strip()
            if v in ("auto", "autodetect"):
                return "autodetect"
            return int(v)
        return v

    @field_validator("max_frame_gap")
    @classmethod
    def positive_gap(cls, v):
        if isinstance(v, int) and v < 1:
            raise ValueError("max_frame_gap must be >= 1")
        return v


class FullTrajectoriesConfig(StageConfig):
    stage: Literal["get_full_trajectories"] = "get_full_trajectories"
    span: float = Field(0.8, gt=0, le=1)


class ExcludeByVelocityConfig(StageConfig):
    stage: Literal["exclude_by_velocity"] = "exclude_by_velocity"
    vel_min: Optional[float] = None
    vel_max: Optional[float] = None

    @model_validator(mode="after")
    def at_least_one_bound(self):
        if self.vel_min is None and self.vel_max is None:
            raise ValueError("exclude_by_velocity needs vel_min or vel_max")
        return self


class InsertTreatmentsConfig(StageConfig):
    """Tunnel geometry and stimulus sizes."""
    stage: Literal["insert_treatments"] = "insert_treatments"
    tunnel_config: Literal["box", "v"]
    stim_param_lat_pos: float = Field(gt=0)
    stim_param_lat_neg: float = Field(gt=0)
    stim_param_end_pos: float = Field(gt=0)
    stim_param_end_neg: float = Field(gt=0)
    treatment: str = ""
    tunnel_width: Optional[float] = Field(None, gt=0)
    tunnel_length: Optional[float] = Field(None, gt=0)
    vertex_angle: Optional[float] = Field(None, gt=0, lt=180)
    perch_2_vertex: Optional[float] = Field(None, gt=0)

    @field_validator("tunnel_config", mode="before")
    @classmethod
    def normalize_config(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v


class MinDistConfig(StageConfig):
    stage: Literal["calc_min_dist"] = "calc_min_dist"
    simplify_output: bool = True
    end_wall: Optional[Literal["pos", "neg"]] = None


class VisAngleConfig(StageConfig):
    stage: Literal["get_vis_angle"] = "get_vis_angle"


class SpatialFrequencyConfig(StageConfig):
    stage: Literal["get_sf"] = "get_sf"


AnyStageConfig = Annotated[
    Union[
        RelabelAxesConfig,
        TrimOutliersConfig,
        RemoveDuplicateFramesConfig,
        RedefineCenterConfig,
        RotateTunnelConfig,
        RenameSubjectsConfig,
        VelocityConfig,
        SelectPercentConfig,
        SeparateTrajectoriesConfig,
        FullTrajectoriesConfig,
        ExcludeByVelocityConfig,
        InsertTreatmentsConfig,
        MinDistConfig,
        VisAngleConfig,
        SpatialFrequencyConfig,
    ],
    Field(discriminator="stage"),
]
