"""tunnelpath User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the cleaning run. Every key is optional; expert defaults live in
tunnelpath.schemas.param.

Usage:
    python scripts/run_tunnel_pipeline.py session1.csv -c scripts/user_config.py
    python scripts/run_tunnel_pipeline.py session1.csv -c scripts/user_config.py --max-frame-gap 3
"""

CONFIG = {
    # ========================================================================
    # SESSION
    # ========================================================================
    "FRAME_RATE": 100,        # Capture rate in Hz
    "FILE_ID": "session1",    # Prefix of every trajectory label

    # ========================================================================
    # AXES & CLEANUP
    # ========================================================================
    "RELABEL_AXES": False,    # True for raw x/y/z column suffixes
    "AXES": {                 # Raw suffix playing each tunnel role
        "tunnel_length": "_z",
        "tunnel_width": "_x",
        "tunnel_height": "_y",
    },
    "TRIM_TUNNEL_OUTLIERS": False,
    "TRIM": {                 # Plausible position box; None leaves a side open
        "lengths_min": -1.6, "lengths_max": 1.6,
        "widths_min": -0.5, "widths_max": 0.5,
        "heights_min": None, "heights_max": None,
    },
    "REMOVE_DUPLICATE_FRAMES": True,
    "RENAME_SUBJECTS": False,
    "TARGET": "Bird_",        # Substring removed from subject names
    "REPLACEMENT": "",

    # ========================================================================
    # STANDARDIZATION
    # ========================================================================
    "STANDARDIZATION_OPTION": "redefine_tunnel_center",   # or "rotate_tunnel"
    "CENTER": {
        "length_method": "middle",   # original | middle | median | user-defined
        "width_method": "middle",
        "height_method": "original",
    },
    # Perch bounding boxes, only read with "rotate_tunnel"
    "PERCHES": {
        "perch1_len_min": -1.6, "perch1_len_max": -1.4,
        "perch2_len_min": 1.4, "perch2_len_max": 1.6,
        "perch1_wid_min": -0.1, "perch1_wid_max": 0.1,
        "perch2_wid_min": -0.1, "perch2_wid_max": 0.1,
    },

    # ========================================================================
    # REGION OF INTEREST & TRAJECTORIES
    # ========================================================================
    "GET_VELOCITY": True,
    "SELECT_X_PERCENT": True,
    "DESIRED_PERCENT": 33,    # Central percentage of the tunnel length
    "TUNNEL_LENGTH": None,    # None = treatment length, then observed range
    "MAX_FRAME_GAP": 1,       # Integer or "autodetect"
    "FRAME_RATE_PROPORTION": 0.1,  # Largest gap tried by autodetect, as a fraction of FRAME_RATE
    "FRAME_GAP_MESSAGING": False,  # Log the autodetect yield curve
    "GET_FULL_TRAJECTORIES": True,
    "SPAN": 0.8,              # Minimum covered fraction of the region of interest
    "VEL_MIN": None,          # Velocity filter bounds (None = no bound)
    "VEL_MAX": None,

    # ========================================================================
    # TREATMENT, GEOMETRY & PERCEPTION
    # ========================================================================
    # Uncomment to compute wall distances, visual angles and spatial frequency
    # "TREATMENT": {
    #     "tunnel_config": "box",       # "box" or "v"
    #     "tunnel_width": 0.6,
    #     "tunnel_length": 3.0,
    #     "vertex_angle": None,         # V tunnels: full opening angle (deg)
    #     "perch_2_vertex": None,       # V tunnels: perch height above vertex
    #     "stim_param_lat_pos": 0.1,
    #     "stim_param_lat_neg": 0.1,
    #     "stim_param_end_pos": 0.1,
    #     "stim_param_end_neg": 0.1,
    #     "treatment": "lat10_end10",
    # },
    "SIMPLIFY_OUTPUT": True,  # False keeps per-wall and signed distances
    "END_WALL": None,         # Facing end wall for stationary frames: "pos", "neg" or None
    "GET_VIS_ANGLE": True,
    "GET_SF": True,

    # ========================================================================
    # LOGGING
    # ========================================================================
    "LOG_LEVEL": "INFO",
}
