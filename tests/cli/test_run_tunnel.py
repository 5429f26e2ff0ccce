"""Integration tests for the CSV command-line runner."""

import numpy as np
import pandas as pd
import pytest

from tunnelpath.cli.run_tunnel import load_user_config_dict, main, run_tunnel_pipeline
from tunnelpath.contracts import ConfigError

pytestmark = pytest.mark.integration


@pytest.fixture
def session_csv(temp_dir, make_rows):
    path = temp_dir / "session.csv"
    make_rows(range(100), np.linspace(-1.5, 1.5, 100)).to_csv(path, index=False)
    return path


@pytest.fixture
def user_config_file(temp_dir):
    path = temp_dir / "user_config.py"
    path.write_text(
        "CONFIG = {\n"
        "    'DESIRED_PERCENT': 50,\n"
        "    'SPAN': 0.95,\n"
        "    'FILE_ID': 'trial',\n"
        "}\n"
    )
    return path


def test_load_user_config_dict(user_config_file):
    config = load_user_config_dict(str(user_config_file))
    assert config["DESIRED_PERCENT"] == 50


def test_load_missing_config(temp_dir):
    with pytest.raises(FileNotFoundError):
        load_user_config_dict(str(temp_dir / "nope.py"))


def test_load_config_without_dict(temp_dir):
    path = temp_dir / "empty.py"
    path.write_text("VALUE = 1\n")
    with pytest.raises(ValueError, match="No CONFIG dict"):
        load_user_config_dict(str(path))


def test_run_writes_cleaned_csv(session_csv, user_config_file, temp_dir, restore_root_logger):
    output = temp_dir / "out" / "clean.csv"
    table = run_tunnel_pipeline(
        str(user_config_file),
        cli_args={"input_path": str(session_csv), "output_path": str(output), "frame_rate": 100},
    )

    assert len(table) == 50
    written = pd.read_csv(output)
    assert len(written) == 50
    assert written["file_sub_traj"].unique().tolist() == ["trial_bird01_1"]


def test_run_requires_input(restore_root_logger):
    with pytest.raises(ConfigError, match="input"):
        run_tunnel_pipeline(cli_args={"frame_rate": 100})


def test_main_with_wide_input(temp_dir, restore_root_logger):
    wide = pd.DataFrame({
        "frame": np.arange(100),
        "bird01_position_x": np.zeros(100),
        "bird01_position_y": np.zeros(100),
        "bird01_position_z": np.linspace(-1.5, 1.5, 100),
    })
    wide_path = temp_dir / "wide.csv"
    wide.to_csv(wide_path, index=False)
    config_path = temp_dir / "wide_config.py"
    config_path.write_text("CONFIG = {'RELABEL_AXES': True, 'SELECT_X_PERCENT': False}\n")
    output = temp_dir / "wide_clean.csv"
    log_file = temp_dir / "run.log"

    code = main([str(wide_path), "-c", str(config_path), "-o", str(output),
                 "--frame-rate", "100", "--file-id", "w1", "--wide", "--log-file", str(log_file)])

    assert code == 0
    written = pd.read_csv(output)
    assert len(written) == 100
    assert written["file_sub_traj"].unique().tolist() == ["w1_bird01_1"]
    assert log_file.exists()
