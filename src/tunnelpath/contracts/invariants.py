"""Formal pipeline invariants.

This file documents what each stage MUST produce. This is architecture, not code.
Use this file as a reviewer anchor and system reference.
"""

PIPELINE_INVARIANTS = {
    "standardization": [
        "Columns frame, time, subject, position_length/width/height exist",
        "'axes_standardized' recorded in meta.steps",
        "Centering records the method used in meta.centering",
        "Rotation records the applied angle in meta.rotation_angle",
    ],

    "roi": [
        "All position_length values lie inside meta.roi bounds (inclusive)",
        "meta.roi.selected_length == full_length * percent / 100",
    ],

    "segmentation": [
        "Every row has traj_id >= 1, sub_traj and file_sub_traj",
        "file_sub_traj is unique across subjects and sessions",
        "No trajectory contains a frame gap larger than meta.max_frame_gap",
        "Streams with fewer than 2 frames are dropped and reported once",
    ],

    "full_trajectories": [
        "Each kept trajectory covers >= span of the ROI length",
        "An empty result is a valid table with the same columns",
    ],

    "geometry": [
        "min_dist_pos, min_dist_neg, min_dist_end exist and are >= 0",
        "end_wall in {'pos', 'neg'} and closest_wall names one wall",
        "Tunnel metadata is read, never modified",
    ],

    "perception": [
        "vis_angle_*_deg in (0, 180] for every distance column present",
        "sf_* == 1 / vis_angle_*_deg",
    ],
}

# Which stages are optional vs required
STAGE_REQUIREMENTS = {
    "standardization": "REQUIRED",   # Everything downstream needs canonical axes
    "roi": "OPTIONAL",               # Without it the observed range is the ROI
    "segmentation": "REQUIRED",      # Filters and per-trajectory kinematics need labels
    "full_trajectories": "OPTIONAL",
    "geometry": "OPTIONAL",          # Only with treatment metadata
    "perception": "OPTIONAL",        # Only after geometry
}
