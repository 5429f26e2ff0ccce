"""Pipeline runner: executes a resolved stage list over one table.

The runner replaces flag-driven dispatch with the explicit, ordered stage
list of a PipelineConfig. It owns logging setup and reports the warnings
collected by the stages once, at the end of a run.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from tunnelpath.contracts import ConfigError, require
from tunnelpath.pipeline.processor import StageProcessor
from tunnelpath.schemas.internal import PipelineConfig
from tunnelpath.tunnel.standardizer import gather_tunnel_data, relabel_axes
from tunnelpath.tunnel.table import TrajectoryTable

__all__ = ['TunnelPipeline', 'configure_logging']

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO", log_path: Optional[Union[str, Path]] = None) -> None:
    """Install console (and optional file) handlers on the root logger.

    Existing root handlers are removed so repeated runs in one interpreter
    do not duplicate output.
    """
    log_level = getattr(logging, str(level).upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if log_path is not None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    root.addHandler(ch)


class TunnelPipeline:
    """Runs the configured stages in order.

    Parameters
    ----------
    config : PipelineConfig
        Resolved configuration from ``resolve_config()`` (or a
        PipelineConfig built directly from a stage list).

    Example usage::

        config = resolve_config(ParamConfig(), user_cfg)
        pipeline = TunnelPipeline(config)
        cleaned = pipeline.run(table)
        cleaned.meta.warnings   # everything reported during the run
    """

    def __init__(self, config: PipelineConfig):
        if not isinstance(config, PipelineConfig):
            config = PipelineConfig.model_validate(config)
        self.config = config
        self.processor = StageProcessor()

    def run(self, table: TrajectoryTable) -> TrajectoryTable:
        """Apply every stage to ``table`` and return the final table.

        Errors raised by a stage propagate unchanged; the run stops at the
        first failing stage.
        """
        return self._run_stages(table, self.config.stages)

    def _run_stages(self, table: TrajectoryTable, stages) -> TrajectoryTable:
        warnings_before = len(table.meta.warnings)
        logger.info("Running %d stages on %d rows: %s", len(stages), len(table),
                    ", ".join(stage.stage for stage in stages))

        for stage in stages:
            table = self.processor.process(table, stage)

        self._summarize(table, warnings_before)
        return table

    def _session(self, frame_rate: Optional[float], file_id: Optional[str]) -> tuple:
        frame_rate = frame_rate if frame_rate is not None else self.config.io.frame_rate
        require(frame_rate is not None, "A frame rate is required to build a trajectory table",
                ConfigError, parameter="frame_rate", constraint="> 0")
        file_id = file_id if file_id is not None else self.config.io.file_id
        return frame_rate, file_id

    def run_dataframe(self, df: pd.DataFrame, frame_rate: Optional[float] = None,
                      file_id: Optional[str] = None) -> TrajectoryTable:
        """Build a table from long-format ``df`` and run the pipeline on it.

        ``frame_rate`` and ``file_id`` default to the values in
        ``config.io``.

        Raises
        ------
        ConfigError
            If no frame rate is available.
        """
        frame_rate, file_id = self._session(frame_rate, file_id)
        table = TrajectoryTable.from_dataframe(df, frame_rate=frame_rate, file_id=file_id)
        return self.run(table)

    def run_wide_dataframe(self, df: pd.DataFrame, frame_rate: Optional[float] = None,
                           file_id: Optional[str] = None) -> TrajectoryTable:
        """Gather wide per-subject columns, then run the pipeline.

        A leading ``relabel_axes`` stage is applied to the wide frame before
        gathering, since gathering needs canonical axis names.
        """
        frame_rate, file_id = self._session(frame_rate, file_id)
        stages = list(self.config.stages)
        if stages and stages[0].stage == "relabel_axes":
            df = relabel_axes(df, **stages[0].kwargs())
            stages = stages[1:]
        table = gather_tunnel_data(df, frame_rate=frame_rate, file_id=file_id)
        return self._run_stages(table, stages)

    def _summarize(self, table: TrajectoryTable, warnings_before: int) -> None:
        new_warnings = table.meta.warnings[warnings_before:]
        trajectories = table.trajectories if "file_sub_traj" in table.data.columns else []
        logger.info("Pipeline finished: %d rows, %d trajectories", len(table), len(trajectories))
        if new_warnings:
            logger.warning("%d warning(s) during run:\n  %s", len(new_warnings),
                           "\n  ".join(new_warnings))
