"""Declarative pipeline runner for tunnel trajectory tables."""

from tunnelpath.pipeline.orchestrator import TunnelPipeline, configure_logging
from tunnelpath.pipeline.processor import STAGE_FUNCTIONS, StageProcessor

__all__ = ['TunnelPipeline', 'StageProcessor', 'STAGE_FUNCTIONS', 'configure_logging']
