"""Metadata records threaded alongside every trajectory table.

These replace session-wide attributes attached to the data. Each stage
returns a copy with its own fields updated (``model_copy(update=...)``);
nothing downstream mutates a record it was given.
"""

from typing import Literal, Optional

from pydantic import Field

from tunnelpath.schemas.base import TunnelBaseModel


class RegionOfInterest(TunnelBaseModel):
    """Central slice of the tunnel retained by select_x_percent()."""
    percent: float = Field(gt=0, le=100)
    full_length: float = Field(gt=0)
    selected_length: float = Field(gt=0)
    lower: float
    upper: float


class TunnelTreatment(TunnelBaseModel):
    """Tunnel geometry and stimulus sizes for one experimental treatment.

    Lengths are in the same unit as the position columns (usually metres).
    ``vertex_angle`` is the full opening angle of a V-shaped tunnel in
    degrees; ``perch_2_vertex`` is the vertical distance from the origin
    (perch height) down to the vertex.
    """
    tunnel_config: Literal["box", "v"]
    tunnel_width: Optional[float] = Field(None, gt=0)
    tunnel_length: Optional[float] = Field(None, gt=0)
    vertex_angle: Optional[float] = Field(None, gt=0, lt=180)
    perch_2_vertex: Optional[float] = Field(None, gt=0)
    stim_param_lat_pos: float = Field(gt=0)
    stim_param_lat_neg: float = Field(gt=0)
    stim_param_end_pos: float = Field(gt=0)
    stim_param_end_neg: float = Field(gt=0)
    treatment: str = ""


class TableMetadata(TunnelBaseModel):
    """Read-only record describing a trajectory table and its history.

    Attributes
    ----------
    frame_rate : float
        Capture rate in Hz.
    file_id : str
        Session identifier used in trajectory labels.
    steps : tuple of str
        Stages applied so far, oldest first.
    warnings : tuple of str
        Aggregated user-facing warnings, one entry per stage call.
    """
    frame_rate: float = Field(gt=0)
    file_id: str = "session"
    steps: tuple[str, ...] = ()
    centering: Optional[str] = None
    rotation_angle: Optional[float] = None
    roi: Optional[RegionOfInterest] = None
    max_frame_gap: Optional[int] = Field(None, ge=1)
    frame_gap_autodetected: bool = False
    span: Optional[float] = None
    tunnel: Optional[TunnelTreatment] = None
    warnings: tuple[str, ...] = ()

    def with_step(self, step: str, **updates) -> "TableMetadata":
        """Return a copy with ``step`` appended and ``updates`` applied."""
        updates["steps"] = self.steps + (step,)
        return self.model_copy(update=updates)

    def with_warning(self, message: str) -> "TableMetadata":
        """Return a copy with one more aggregated warning."""
        return self.model_copy(update={"warnings": self.warnings + (message,)})
