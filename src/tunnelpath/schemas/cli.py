"""CLIConfig: Command-line operational overrides.

Minimal configuration for the parameters that commonly change between
runs: input and output paths, session metadata and verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional

from pydantic import Field

from tunnelpath.schemas.base import TunnelBaseModel


class CLIConfig(TunnelBaseModel):
    """Command-line configuration overrides.

    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(
            input_path="session1.csv",
            output_path="session1_clean.csv",
            frame_rate=100,
        )

        config = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    input_path: Optional[str] = None
    output_path: Optional[str] = None
    frame_rate: Optional[float] = Field(None, gt=0)
    file_id: Optional[str] = None
    max_frame_gap: Optional[str] = None
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None
    log_file: Optional[str] = None

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to the ParamConfig structure.

        Paths and the log file are not stage parameters; resolve_config()
        copies them onto the PipelineConfig directly.
        """
        overrides = {}

        if self.frame_rate is not None:
            overrides["frame_rate"] = self.frame_rate
        if self.file_id is not None:
            overrides["file_id"] = self.file_id
        if self.max_frame_gap is not None:
            overrides["separate_trajectories"] = {"max_frame_gap": self.max_frame_gap}
        if self.log_level is not None:
            overrides["log_level"] = self.log_level

        return overrides
