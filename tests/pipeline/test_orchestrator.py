import logging

import numpy as np
import pytest

from tunnelpath.contracts import ConfigError
from tunnelpath.pipeline.orchestrator import TunnelPipeline, configure_logging
from tunnelpath.schemas import PipelineConfig

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


def test_pipeline_initialization(pipeline_config):
    pipeline = TunnelPipeline(pipeline_config)
    assert pipeline.config is pipeline_config
    assert pipeline.processor.history == []


def test_pipeline_accepts_plain_stage_list(straight_flight):
    pipeline = TunnelPipeline({"stages": [{"stage": "select_x_percent", "desired_percent": 50}]})
    assert isinstance(pipeline.config, PipelineConfig)
    assert len(pipeline.run(straight_flight)) == 50


def test_default_run_keeps_one_full_trajectory(make_config, straight_flight):
    config = make_config(DESIRED_PERCENT=50, SPAN=0.95)
    out = TunnelPipeline(config).run(straight_flight)

    # central 50 % of a 3 m pass: frames 25..74
    assert len(out) == 50
    assert out.data["frame"].min() == 25
    assert out.data["frame"].max() == 74
    assert out.trajectories == ["session_bird01_1"]
    assert "velocity" in out.data.columns
    assert list(out.meta.steps[-4:]) == [
        "get_velocity", "select_x_percent", "separate_trajectories", "get_full_trajectories",
    ]


def test_strict_span_drops_everything(make_config, straight_flight):
    config = make_config(DESIRED_PERCENT=50, SPAN=1.0)
    out = TunnelPipeline(config).run(straight_flight)
    assert len(out) == 0


def test_run_with_treatment(make_config, straight_flight, box_treatment):
    config = make_config(DESIRED_PERCENT=50, TREATMENT=box_treatment)
    out = TunnelPipeline(config).run(straight_flight)

    for col in ("min_dist_pos", "min_dist_end", "closest_wall", "vis_angle_pos_deg", "sf_pos"):
        assert col in out.data.columns
    np.testing.assert_allclose(out.data["min_dist_pos"], 0.5)
    assert (out.data["treatment"] == "lat10").all()
    assert out.meta.tunnel.tunnel_length == 3.0


def test_warnings_are_summarized_once(make_config, make_table, make_rows, caplog):
    table = make_table(
        make_rows(range(100), np.linspace(-1.5, 1.5, 100)),
        make_rows([40], 0.0, subject="ghost"),
    )
    pipeline = TunnelPipeline(make_config(DESIRED_PERCENT=50))

    with caplog.at_level("WARNING"):
        out = pipeline.run(table)

    assert out.subjects == ["bird01"]
    assert any("dropped 1 stream(s)" in w for w in out.meta.warnings)
    summaries = [r for r in caplog.records if "warning(s) during run" in r.getMessage()]
    assert len(summaries) == 1
    mentions = [r for r in caplog.records if "dropped 1 stream(s)" in r.getMessage()]
    assert len(mentions) == 1
    assert mentions[0].name == "tunnelpath.pipeline.orchestrator"


def test_run_dataframe_uses_configured_session(make_config, flight_df):
    config = make_config(FRAME_RATE=200, FILE_ID="day1")
    out = TunnelPipeline(config).run_dataframe(flight_df)

    assert out.frame_rate == 200.0
    assert out.trajectories[0].startswith("day1_")
    np.testing.assert_allclose(out.data["time"], out.data["frame"] / 200.0)


def test_run_dataframe_needs_frame_rate(pipeline_config, flight_df):
    with pytest.raises(ConfigError, match="frame rate"):
        TunnelPipeline(pipeline_config).run_dataframe(flight_df)


def test_run_wide_dataframe_relabels_before_gathering(make_config, wide_flight_df):
    config = make_config(RELABEL_AXES=True, DESIRED_PERCENT=50, SPAN=0.95)
    out = TunnelPipeline(config).run_wide_dataframe(wide_flight_df, frame_rate=100)

    assert out.subjects == ["bird01"]
    assert len(out) == 50
    assert "gather_tunnel_data" in out.meta.steps
    assert out.data["position_length"].abs().max() <= 0.75


def test_configure_logging_writes_file(temp_dir, restore_root_logger):
    log_path = temp_dir / "logs" / "run.log"
    configure_logging("DEBUG", log_path)

    logging.getLogger("tunnelpath.test").debug("hello from the tunnel")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 2
    assert "hello from the tunnel" in log_path.read_text()


def test_configure_logging_is_idempotent(restore_root_logger):
    configure_logging("WARNING")
    configure_logging("WARNING")
    assert len(restore_root_logger.handlers) == 1
    assert restore_root_logger.level == logging.WARNING
