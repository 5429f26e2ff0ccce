"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts the flat keys of the all-in-one cleaning run with
upper-case aliases (DESIRED_PERCENT -> desired_percent, SPAN -> span,
...). Users only specify what they want to override from the expert
defaults; toggles switch whole stages on or off and the nested dict
sections carry stage parameters that have no flat alias.
"""

from typing import Any, Literal, Optional, Union

from pydantic import ConfigDict, Field, field_validator

from tunnelpath.schemas.base import ForgivingBaseModel


class UserConfig(ForgivingBaseModel):
    """User-facing configuration schema.

    Usage
    -----
        user_cfg = UserConfig(
            STANDARDIZATION_OPTION="rotate_tunnel",
            PERCHES=dict(perch1_len_min=-3.2, perch1_len_max=-2.8, ...),
            DESIRED_PERCENT=50,
            MAX_FRAME_GAP="autodetect",
            SPAN=0.95,
        )

        config = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    model_config = ConfigDict(
        extra='ignore',           # Tolerate unrelated keys in user config files
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    # Session
    frame_rate: Optional[float] = Field(None, alias="FRAME_RATE", gt=0)
    file_id: Optional[str] = Field(None, alias="FILE_ID")

    # Stage toggles
    relabel_axes: Optional[bool] = Field(None, alias="RELABEL_AXES")
    trim_tunnel_outliers: Optional[bool] = Field(None, alias="TRIM_TUNNEL_OUTLIERS")
    remove_duplicate_frames: Optional[bool] = Field(None, alias="REMOVE_DUPLICATE_FRAMES")
    rename_subjects: Optional[bool] = Field(None, alias="RENAME_SUBJECTS")
    get_velocity: Optional[bool] = Field(None, alias="GET_VELOCITY")
    select_x_percent: Optional[bool] = Field(None, alias="SELECT_X_PERCENT")
    get_full_trajectories: Optional[bool] = Field(None, alias="GET_FULL_TRAJECTORIES")
    get_min_dist: Optional[bool] = Field(None, alias="GET_MIN_DIST")
    get_vis_angle: Optional[bool] = Field(None, alias="GET_VIS_ANGLE")
    get_sf: Optional[bool] = Field(None, alias="GET_SF")

    # Flat stage parameters
    standardization_option: Optional[Literal["redefine_tunnel_center", "rotate_tunnel"]] = Field(
        None, alias="STANDARDIZATION_OPTION")
    desired_percent: Optional[float] = Field(None, alias="DESIRED_PERCENT")
    tunnel_length: Optional[float] = Field(None, alias="TUNNEL_LENGTH")
    max_frame_gap: Optional[Union[int, str]] = Field(None, alias="MAX_FRAME_GAP")
    frame_rate_proportion: Optional[float] = Field(None, alias="FRAME_RATE_PROPORTION")
    frame_gap_messaging: Optional[bool] = Field(None, alias="FRAME_GAP_MESSAGING")
    span: Optional[float] = Field(None, alias="SPAN")
    target: Optional[str] = Field(None, alias="TARGET")
    replacement: Optional[str] = Field(None, alias="REPLACEMENT")
    vel_min: Optional[float] = Field(None, alias="VEL_MIN")
    vel_max: Optional[float] = Field(None, alias="VEL_MAX")
    simplify_output: Optional[bool] = Field(None, alias="SIMPLIFY_OUTPUT")
    end_wall: Optional[str] = Field(None, alias="END_WALL")
    log_level: Optional[str] = Field(None, alias="LOG_LEVEL")

    # Nested stage parameters (advanced users)
    axes: Optional[dict[str, Any]] = Field(None, alias="AXES")
    trim: Optional[dict[str, Any]] = Field(None, alias="TRIM")
    center: Optional[dict[str, Any]] = Field(None, alias="CENTER")
    perches: Optional[dict[str, Any]] = Field(None, alias="PERCHES")
    treatment: Optional[dict[str, Any]] = Field(None, alias="TREATMENT")

    @field_validator("standardization_option", mode="before")
    @classmethod
    def normalize_option(cls, v):
        """Accept 'Rotate_Tunnel', 'rotate tunnel' and similar."""
        if isinstance(v, str):
            return v.lower().strip().replace(" ", "_")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper().strip()
        return v

    @field_validator("end_wall", mode="before")
    @classmethod
    def normalize_end_wall(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v

    def _toggle(self, overrides: dict, section: str, enabled: Optional[bool],
                params: dict) -> None:
        """Switch a parameterized section on/off and merge its parameters.

        ``False`` clears the section. ``True`` or any supplied parameter
        switches it on.
        """
        if enabled is False:
            overrides[section] = None
        elif enabled or params:
            overrides[section] = params

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to the nested ParamConfig structure.

        Returns
        -------
        dict
            Nested dictionary of ParamConfig sections. ``None`` switches an
            optional stage off.
        """
        overrides = {}

        if self.frame_rate is not None:
            overrides["frame_rate"] = self.frame_rate
        if self.file_id is not None:
            overrides["file_id"] = self.file_id
        if self.log_level is not None:
            overrides["log_level"] = self.log_level

        self._toggle(overrides, "relabel_axes", self.relabel_axes, dict(self.axes or {}))
        self._toggle(overrides, "trim_tunnel_outliers", self.trim_tunnel_outliers,
                     dict(self.trim or {}))

        rename = {}
        if self.target is not None:
            rename["target"] = self.target
        if self.replacement is not None:
            rename["replacement"] = self.replacement
        self._toggle(overrides, "rename_subjects", self.rename_subjects, rename)

        if self.remove_duplicate_frames is not None:
            overrides["remove_duplicate_frames"] = self.remove_duplicate_frames
        if self.get_velocity is not None:
            overrides["get_velocity"] = self.get_velocity

        # Standardization
        if self.standardization_option is not None:
            overrides["standardization_option"] = self.standardization_option
        if self.center is not None:
            overrides["redefine_tunnel_center"] = dict(self.center)
        if self.perches is not None:
            overrides["rotate_tunnel"] = dict(self.perches)

        # Region of interest
        roi = {}
        if self.desired_percent is not None:
            roi["desired_percent"] = self.desired_percent
        if self.tunnel_length is not None:
            roi["tunnel_length"] = self.tunnel_length
        self._toggle(overrides, "select_x_percent", self.select_x_percent, roi)

        # Segmentation; span is shared with the full-trajectory filter
        segmentation = {}
        if self.max_frame_gap is not None:
            segmentation["max_frame_gap"] = self.max_frame_gap
        if self.frame_rate_proportion is not None:
            segmentation["frame_rate_proportion"] = self.frame_rate_proportion
        if self.frame_gap_messaging is not None:
            segmentation["frame_gap_messaging"] = self.frame_gap_messaging
        if self.span is not None:
            segmentation["span"] = self.span
        if segmentation:
            overrides["separate_trajectories"] = segmentation

        full = {"span": self.span} if self.span is not None else {}
        self._toggle(overrides, "get_full_trajectories", self.get_full_trajectories, full)

        velocity_bounds = {}
        if self.vel_min is not None:
            velocity_bounds["vel_min"] = self.vel_min
        if self.vel_max is not None:
            velocity_bounds["vel_max"] = self.vel_max
        if velocity_bounds:
            overrides["exclude_by_velocity"] = velocity_bounds

        # Geometry and perception
        if self.treatment is not None:
            overrides["insert_treatments"] = dict(self.treatment)
        geometry = {}
        if self.simplify_output is not None:
            geometry["simplify_output"] = self.simplify_output
        if self.end_wall is not None:
            geometry["end_wall"] = self.end_wall
        self._toggle(overrides, "calc_min_dist", self.get_min_dist, geometry)
        if self.get_vis_angle is not None:
            overrides["get_vis_angle"] = self.get_vis_angle
        if self.get_sf is not None:
            overrides["get_sf"] = self.get_sf

        return overrides
