"""Pydantic configuration schemas for the tunnelpath pipeline.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
PipelineConfig : class
    Frozen runtime configuration with the ordered stage list
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
TableMetadata, TunnelTreatment, RegionOfInterest : class
    Immutable records threaded alongside trajectory tables
"""

from tunnelpath.schemas.metadata import RegionOfInterest, TableMetadata, TunnelTreatment
from tunnelpath.schemas.resolve import resolve_config
from tunnelpath.schemas.internal import PipelineConfig
from tunnelpath.schemas.param import ParamConfig
from tunnelpath.schemas.user import UserConfig
from tunnelpath.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'PipelineConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
    'TableMetadata',
    'TunnelTreatment',
    'RegionOfInterest',
]
