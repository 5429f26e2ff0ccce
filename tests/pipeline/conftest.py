
import numpy as np
import pandas as pd
import pytest


BOX_TREATMENT = dict(
    tunnel_config="box", tunnel_width=1.0, tunnel_length=3.0,
    stim_param_lat_pos=0.1, stim_param_lat_neg=0.1,
    stim_param_end_pos=0.2, stim_param_end_neg=0.2,
    treatment="lat10",
)


@pytest.fixture
def box_treatment():
    return dict(BOX_TREATMENT)


@pytest.fixture
def flight_df(make_rows):
    """Long-format rows: one full pass from -1.5 to 1.5 over 100 frames."""
    return make_rows(range(100), np.linspace(-1.5, 1.5, 100))


@pytest.fixture
def wide_flight_df():
    """Wide capture export with raw x/y/z suffixes (z along the tunnel)."""
    frames = np.arange(100)
    return pd.DataFrame({
        "frame": frames,
        "bird01_position_x": np.zeros(100),
        "bird01_position_y": np.zeros(100),
        "bird01_position_z": np.linspace(-1.5, 1.5, 100),
    })
