"""PipelineConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully
validated and frozen, and lists the stages to run in order. Stage
functions receive exactly the parameters carried by their stage config.
"""

from typing import Literal, Optional

from pydantic import Field

from tunnelpath.schemas.base import TunnelBaseModel
from tunnelpath.schemas.stages import AnyStageConfig


class LoggingConfig(TunnelBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Optional[str] = None


class IOConfig(TunnelBaseModel):
    """Where the CLI reads and writes tables, and how it labels them."""
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    frame_rate: Optional[float] = Field(None, gt=0)
    file_id: str = "session"


class PipelineConfig(TunnelBaseModel):
    """Complete runtime configuration.

    Attributes
    ----------
    stages : tuple of stage configs
        Stages in execution order. Each entry is one of the models in
        ``tunnelpath.schemas.stages``; plain dicts are dispatched on their
        ``stage`` key.
    logging : LoggingConfig
    io : IOConfig

    Usage
    -----
        config = PipelineConfig(stages=[
            {"stage": "redefine_tunnel_center"},
            {"stage": "select_x_percent", "desired_percent": 50},
            {"stage": "separate_trajectories", "max_frame_gap": 1},
        ])
    """
    stages: tuple[AnyStageConfig, ...] = ()
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    io: IOConfig = Field(default_factory=IOConfig)

    @property
    def stage_names(self) -> list:
        return [stage.stage for stage in self.stages]
