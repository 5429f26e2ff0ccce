"""Attach tunnel geometry and stimulus parameters to a table."""

import logging
from typing import Optional

from tunnelpath.contracts import ConfigError, require
from tunnelpath.schemas.metadata import TunnelTreatment
from tunnelpath.tunnel.table import TrajectoryTable

__all__ = ['insert_treatments', 'require_tunnel']

logger = logging.getLogger(__name__)

REQUIRED_GEOMETRY = {
    "box": ("tunnel_width", "tunnel_length"),
    "v": ("vertex_angle", "perch_2_vertex", "tunnel_length"),
}


def require_tunnel(treatment: Optional[TunnelTreatment], stage: str,
                   tunnel_config: Optional[str] = None) -> TunnelTreatment:
    """Return the treatment or raise ConfigError if it is unusable.

    Checks that a treatment exists, matches ``tunnel_config`` when given,
    and carries every dimension its configuration needs.
    """
    require(treatment is not None,
            f"{stage}: no tunnel treatment attached, run insert_treatments first",
            ConfigError, parameter="tunnel")
    if tunnel_config is not None:
        require(treatment.tunnel_config == tunnel_config,
                f"{stage}: needs a '{tunnel_config}' tunnel, table has '{treatment.tunnel_config}'",
                ConfigError, parameter="tunnel_config", constraint=f"== '{tunnel_config}'")
    for field in REQUIRED_GEOMETRY[treatment.tunnel_config]:
        require(getattr(treatment, field) is not None,
                f"{stage}: {treatment.tunnel_config} tunnel is missing {field}",
                ConfigError, parameter=field, constraint="required")
    return treatment


def insert_treatments(table: TrajectoryTable, tunnel_config: str,
                      stim_param_lat_pos: float, stim_param_lat_neg: float,
                      stim_param_end_pos: float, stim_param_end_neg: float,
                      treatment: str = "",
                      tunnel_width: Optional[float] = None,
                      tunnel_length: Optional[float] = None,
                      vertex_angle: Optional[float] = None,
                      perch_2_vertex: Optional[float] = None) -> TrajectoryTable:
    """Record the experimental treatment for this table.

    Parameters
    ----------
    tunnel_config : {"box", "v"}
        Tunnel shape.
    stim_param_lat_pos, stim_param_lat_neg, stim_param_end_pos, stim_param_end_neg : float
        Physical size of one stimulus element (e.g. dot diameter or grating
        cycle length) on the positive/negative lateral and end walls.
    treatment : str
        Treatment label, copied into a ``treatment`` column.
    tunnel_width, tunnel_length : float
        Box tunnel dimensions (``tunnel_length`` also bounds V-tunnel end walls).
    vertex_angle : float
        Full opening angle of a V tunnel in degrees.
    perch_2_vertex : float
        Vertical distance from perch height (origin) down to the V vertex.

    Raises
    ------
    ConfigError
        Unknown configuration or missing dimension for it.
    """
    require(tunnel_config in REQUIRED_GEOMETRY,
            f"insert_treatments: unknown tunnel_config '{tunnel_config}'",
            ConfigError, parameter="tunnel_config", constraint="'box' or 'v'")
    supplied = {
        "tunnel_width": tunnel_width,
        "tunnel_length": tunnel_length,
        "vertex_angle": vertex_angle,
        "perch_2_vertex": perch_2_vertex,
    }
    for field in REQUIRED_GEOMETRY[tunnel_config]:
        require(supplied[field] is not None,
                f"insert_treatments: {tunnel_config} tunnel requires {field}",
                ConfigError, parameter=field, constraint="required")
    stims = {
        "stim_param_lat_pos": stim_param_lat_pos,
        "stim_param_lat_neg": stim_param_lat_neg,
        "stim_param_end_pos": stim_param_end_pos,
        "stim_param_end_neg": stim_param_end_neg,
    }
    for name, value in {**supplied, **stims}.items():
        if value is not None:
            require(value > 0, f"insert_treatments: {name} must be positive",
                    ConfigError, parameter=name, constraint="> 0")
    if vertex_angle is not None:
        require(vertex_angle < 180, "insert_treatments: vertex_angle must be below 180 degrees",
                ConfigError, parameter="vertex_angle", constraint="0 < angle < 180")

    tunnel = TunnelTreatment(tunnel_config=tunnel_config, treatment=treatment,
                             **supplied, **stims)

    df = table.data.copy()
    df["treatment"] = treatment
    logger.info("insert_treatments: %s tunnel, treatment=%r", tunnel_config, treatment)
    return table.replace(data=df, meta=table.meta.with_step("insert_treatments", tunnel=tunnel))
