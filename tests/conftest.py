"""Root-level pytest fixtures for the tunnelpath test suite.

Provides shared configuration fixtures following the Pydantic-based
architecture, plus factories for small synthetic trajectory tables.
"""

import logging
import shutil
import tempfile
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from tunnelpath.schemas import ParamConfig, UserConfig, resolve_config
from tunnelpath.tunnel import TrajectoryTable, insert_treatments


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def pipeline_config(param_config):
    """Fully validated runtime configuration (no overrides)."""
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for PipelineConfigs with user overrides.

    Examples
    --------
    >>> def test_custom_percent(make_config):
    ...     config = make_config(DESIRED_PERCENT=50)
    ...     assert config.stages[3].desired_percent == 50
    """
    def _make(**user_overrides):
        if user_overrides:
            user = UserConfig(**user_overrides)
            return resolve_config(param_config, user, None)
        return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Table Fixtures
# =============================================================================

def frame_of(frames, length, width=0.0, height=0.0, subject="bird01"):
    """Long-format rows for one subject; scalars broadcast over frames."""
    frames = np.asarray(frames, dtype=np.int64)
    n = len(frames)
    return pd.DataFrame({
        "frame": frames,
        "subject": subject,
        "position_length": np.broadcast_to(np.asarray(length, dtype=float), (n,)).copy(),
        "position_width": np.broadcast_to(np.asarray(width, dtype=float), (n,)).copy(),
        "position_height": np.broadcast_to(np.asarray(height, dtype=float), (n,)).copy(),
    })


@pytest.fixture
def make_rows():
    """The ``frame_of`` row builder, for tests that assemble their own tables."""
    return frame_of


@pytest.fixture
def make_table():
    """Factory for TrajectoryTables from one or more ``frame_of`` frames.

    Examples
    --------
    >>> table = make_table(make_rows(range(10), np.linspace(-1, 1, 10)))
    """
    def _make(*frames, frame_rate=100.0, file_id="session"):
        df = pd.concat(frames, ignore_index=True)
        return TrajectoryTable.from_dataframe(df, frame_rate=frame_rate, file_id=file_id)

    return _make


@pytest.fixture
def straight_flight(make_table):
    """100 frames at 100 Hz flying from -1.5 to +1.5 along the tunnel."""
    return make_table(frame_of(range(100), np.linspace(-1.5, 1.5, 100)))


@pytest.fixture
def box_tunnel():
    """Attach a 1 m wide, 3 m long box treatment to a table."""
    def _attach(table, **overrides):
        params = dict(
            tunnel_config="box", tunnel_width=1.0, tunnel_length=3.0,
            stim_param_lat_pos=0.1, stim_param_lat_neg=0.1,
            stim_param_end_pos=0.2, stim_param_end_neg=0.3,
            treatment="lat10_end20",
        )
        params.update(overrides)
        return insert_treatments(table, **params)

    return _attach


@pytest.fixture
def v_tunnel():
    """Attach a 90 degree V treatment with the vertex 0.5 below the origin."""
    def _attach(table, **overrides):
        params = dict(
            tunnel_config="v", vertex_angle=90.0, perch_2_vertex=0.5, tunnel_length=3.0,
            stim_param_lat_pos=0.1, stim_param_lat_neg=0.1,
            stim_param_end_pos=0.2, stim_param_end_neg=0.2,
            treatment="v90",
        )
        params.update(overrides)
        return insert_treatments(table, **params)

    return _attach


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def restore_root_logger():
    """Undo configure_logging() side effects on the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
