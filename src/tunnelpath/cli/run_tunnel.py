"""Core tunnel pipeline execution logic.

This module contains the actual pipeline runner, separated from argument
parsing. Scripts are thin wrappers; this is the real implementation.
"""

import argparse
import importlib.util
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from tunnelpath.contracts import ConfigError, require
from tunnelpath.pipeline.orchestrator import TunnelPipeline, configure_logging
from tunnelpath.schemas import CLIConfig, ParamConfig, UserConfig, resolve_config
from tunnelpath.tunnel.table import TrajectoryTable

__all__ = ['load_user_config_dict', 'run_tunnel_pipeline', 'main']

logger = logging.getLogger(__name__)


def load_user_config_dict(config_path: str) -> dict:
    """Load the CONFIG dict from a Python user config file.

    Returns the raw dict before Pydantic validation.

    Raises
    ------
    FileNotFoundError
        If the config file does not exist.
    ValueError
        If no CONFIG dict is found in the file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("tunnel_user_config", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def run_tunnel_pipeline(
    user_config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None,
    wide: bool = False,
    verbose: bool = False,
) -> TrajectoryTable:
    """Clean one capture session stored as CSV.

    1. Loads and resolves configuration (Param < User < CLI)
    2. Reads ``input_path`` with pandas
    3. Runs the resolved stage list
    4. Writes the final table to ``output_path`` when given

    Parameters
    ----------
    user_config_path : str, optional
        Python file with a CONFIG dict. Expert defaults only when omitted.
    cli_args : dict, optional
        CLIConfig fields: input_path, output_path, frame_rate, file_id,
        max_frame_gap, log_level, log_file.
    wide : bool
        Input has one column per subject and axis (``<subject>_position_x``)
        instead of the long canonical layout.
    verbose : bool
        DEBUG logging and a dump of the resolved configuration.

    Returns
    -------
    TrajectoryTable
        The cleaned table.

    Raises
    ------
    ConfigError
        If no input path or frame rate is configured.
    """
    param_cfg = ParamConfig()
    user_cfg = UserConfig()
    if user_config_path is not None:
        user_cfg = UserConfig.model_validate(load_user_config_dict(user_config_path))

    cli_args = dict(cli_args or {})
    if verbose and cli_args.get("log_level") is None:
        cli_args["log_level"] = "DEBUG"
    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    config = resolve_config(param_cfg, user_cfg, cli_cfg)
    configure_logging(config.logging.level, config.logging.log_file)

    require(config.io.input_path is not None, "No input table given",
            ConfigError, parameter="input_path")
    logger.info("Reading %s", config.io.input_path)
    if verbose:
        logger.debug("Resolved configuration:\n%s", json.dumps(config.model_dump(), indent=2))

    df = pd.read_csv(config.io.input_path)
    pipeline = TunnelPipeline(config)
    if wide:
        table = pipeline.run_wide_dataframe(df)
    else:
        table = pipeline.run_dataframe(df)

    if config.io.output_path is not None:
        output = Path(config.io.output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        table.data.to_csv(output, index=False)
        logger.info("Wrote %d rows to %s", len(table), output)
    return table


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Clean tunnel motion-capture trajectories")
    parser.add_argument("input", help="CSV table of per-frame subject positions")
    parser.add_argument("-c", "--config", help="Path to user config file (CONFIG dict)")
    parser.add_argument("-o", "--output", help="Where to write the cleaned CSV")
    parser.add_argument("--frame-rate", type=float, help="Capture rate in Hz")
    parser.add_argument("--file-id", help="Session identifier used in trajectory labels")
    parser.add_argument("--max-frame-gap", help="Integer gap or 'autodetect'")
    parser.add_argument("--wide", action="store_true",
                        help="Input has one column per subject and axis")
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    run_tunnel_pipeline(
        args.config,
        cli_args={
            "input_path": args.input,
            "output_path": args.output,
            "frame_rate": args.frame_rate,
            "file_id": args.file_id,
            "max_frame_gap": args.max_frame_gap,
            "log_file": args.log_file,
        },
        wide=args.wide,
        verbose=args.verbose,
    )
    return 0
