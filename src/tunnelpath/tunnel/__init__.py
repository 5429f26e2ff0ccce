"""Tunnel trajectory processing modules.

- table: canonical trajectory table and metadata
- standardizer: axis relabeling, reshaping, centering, rotation
- roi: region-of-interest selection
- segmenter / frame_gaps: trajectory segmentation and gap auto-detection
- trajectory_filter: span and velocity filters
- kinematics: instantaneous velocity
- treatments: tunnel geometry and stimulus metadata
- geometry: wall distances for box and V tunnels
- perception: visual angle and spatial frequency
"""

from tunnelpath.tunnel.table import TrajectoryTable
from tunnelpath.tunnel.standardizer import (
    relabel_axes,
    gather_tunnel_data,
    trim_tunnel_outliers,
    remove_duplicate_frames,
    rename_subjects,
    redefine_tunnel_center,
    rotate_tunnel,
)
from tunnelpath.tunnel.roi import select_x_percent
from tunnelpath.tunnel.segmenter import TrajectorySegmenter, separate_trajectories
from tunnelpath.tunnel.frame_gaps import (
    autodetect_max_frame_gap,
    evaluate_frame_gap_choices,
    find_curve_elbow,
    frame_gap_distribution,
)
from tunnelpath.tunnel.trajectory_filter import get_full_trajectories, exclude_by_velocity
from tunnelpath.tunnel.kinematics import get_velocity
from tunnelpath.tunnel.treatments import insert_treatments
from tunnelpath.tunnel.geometry import calc_min_dist, calc_min_dist_box, calc_min_dist_v
from tunnelpath.tunnel.perception import get_vis_angle, get_sf, visual_angle

__all__ = [
    "TrajectoryTable",
    "relabel_axes",
    "gather_tunnel_data",
    "trim_tunnel_outliers",
    "remove_duplicate_frames",
    "rename_subjects",
    "redefine_tunnel_center",
    "rotate_tunnel",
    "select_x_percent",
    "TrajectorySegmenter",
    "separate_trajectories",
    "autodetect_max_frame_gap",
    "evaluate_frame_gap_choices",
    "find_curve_elbow",
    "frame_gap_distribution",
    "get_full_trajectories",
    "exclude_by_velocity",
    "get_velocity",
    "insert_treatments",
    "calc_min_dist",
    "calc_min_dist_box",
    "calc_min_dist_v",
    "get_vis_angle",
    "get_sf",
    "visual_angle",
]
