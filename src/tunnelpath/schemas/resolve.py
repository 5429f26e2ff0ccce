"""Configuration resolution and merging logic.

This module provides the single entrypoint for configuration resolution:
resolve_config(). It merges ParamConfig, UserConfig, and CLIConfig in
the correct precedence order and returns a frozen PipelineConfig with an
explicit, ordered stage list.

Precedence (highest to lowest):
1. CLIConfig (command-line overrides)
2. UserConfig (user file)
3. ParamConfig (expert defaults)
"""

import logging
from typing import Optional, Union

from tunnelpath.contracts import ConfigError, require
from tunnelpath.schemas.cli import CLIConfig
from tunnelpath.schemas.internal import PipelineConfig
from tunnelpath.schemas.param import ParamConfig
from tunnelpath.schemas.user import UserConfig

logger = logging.getLogger(__name__)


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Deep merge multiple dictionaries.

    Later dictionaries override earlier ones. Nested dictionaries are
    merged recursively; other values (including None) are replaced.

    Examples
    --------
    >>> base = {"a": 1, "b": {"c": 2, "d": 3}}
    >>> override = {"b": {"d": 4, "e": 5}, "f": None}
    >>> deep_merge(base, override)
    {'a': 1, 'b': {'c': 2, 'd': 4, 'e': 5}, 'f': None}
    """
    result = base.copy()

    for override in overrides:
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = deep_merge(result[key], value)
            else:
                result[key] = value

    return result


def build_stages(param: ParamConfig, user: Optional[UserConfig] = None) -> list:
    """Ordered stage configs for a merged ParamConfig.

    Order: axis relabeling, outlier trimming, duplicate removal, subject
    renaming, centering or rotation, velocity, region of interest,
    segmentation, span filter, velocity filter, treatments, wall distances,
    visual angle, spatial frequency.

    Raises
    ------
    ConfigError
        Rotation requested without perch bounds, a velocity filter without
        velocity, or wall distances requested without a treatment.
    """
    stages = []
    if param.relabel_axes is not None:
        stages.append(param.relabel_axes)
    if param.trim_tunnel_outliers is not None:
        stages.append(param.trim_tunnel_outliers)
    if param.remove_duplicate_frames:
        stages.append({"stage": "remove_duplicate_frames"})
    if param.rename_subjects is not None:
        stages.append(param.rename_subjects)

    if param.standardization_option == "rotate_tunnel":
        require(param.rotate_tunnel is not None,
                "standardization_option='rotate_tunnel' needs perch bounding boxes",
                ConfigError, parameter="rotate_tunnel", constraint="perch1_*/perch2_* bounds")
        stages.append(param.rotate_tunnel)
    else:
        stages.append(param.redefine_tunnel_center)

    if param.get_velocity:
        stages.append({"stage": "get_velocity"})
    if param.select_x_percent is not None:
        stages.append(param.select_x_percent)
    stages.append(param.separate_trajectories)
    if param.get_full_trajectories is not None:
        stages.append(param.get_full_trajectories)
    if param.exclude_by_velocity is not None:
        require(param.get_velocity, "exclude_by_velocity needs get_velocity enabled",
                ConfigError, parameter="get_velocity", constraint="True")
        stages.append(param.exclude_by_velocity)

    geometry_requested = user is not None and user.get_min_dist is True
    if param.insert_treatments is None:
        require(not geometry_requested,
                "wall distances need a tunnel treatment (TREATMENT section)",
                ConfigError, parameter="insert_treatments", constraint="required for calc_min_dist")
        return stages

    stages.append(param.insert_treatments)
    if param.calc_min_dist is None:
        return stages
    stages.append(param.calc_min_dist)
    if param.get_vis_angle:
        stages.append({"stage": "get_vis_angle"})
        if param.get_sf:
            stages.append({"stage": "get_sf"})
    return stages


def _coerce(cfg, model):
    """Validate a dict (or None) into ``model``; pass instances through."""
    if isinstance(cfg, model):
        return cfg
    return model.model_validate(cfg or {})


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
    cli_cfg: Optional[Union[dict, CLIConfig]] = None,
) -> PipelineConfig:
    """Resolve the runtime configuration from param, user, and CLI configs.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Expert configuration with complete defaults. Required.
    user_cfg : dict or UserConfig, optional
        User overrides (flat, forgiving keys).
    cli_cfg : dict or CLIConfig, optional
        Command-line overrides.

    Returns
    -------
    PipelineConfig
        Fully validated, immutable runtime configuration.

    Raises
    ------
    pydantic.ValidationError
        If any config fails validation.
    ConfigError
        If the merged configuration cannot form a pipeline.

    Examples
    --------
    >>> config = resolve_config(ParamConfig(), {"DESIRED_PERCENT": 50, "SPAN": 0.95})
    >>> config.stage_names
    ['remove_duplicate_frames', 'redefine_tunnel_center', 'get_velocity',
     'select_x_percent', 'separate_trajectories', 'get_full_trajectories']
    """
    param = _coerce(param_cfg, ParamConfig)
    user = _coerce(user_cfg, UserConfig)
    cli = _coerce(cli_cfg, CLIConfig)

    # Deep merge: param < user < cli, then re-validate the merged sections
    merged = deep_merge(param.model_dump(), user.to_internal_overrides(),
                        cli.to_internal_overrides())
    merged_param = ParamConfig.model_validate(merged)

    config = PipelineConfig(
        stages=build_stages(merged_param, user),
        logging={"level": merged_param.log_level, "log_file": cli.log_file},
        io={
            "input_path": cli.input_path,
            "output_path": cli.output_path,
            "frame_rate": merged_param.frame_rate,
            "file_id": merged_param.file_id,
        },
    )
    logger.debug("Resolved pipeline stages: %s", config.stage_names)
    return config
