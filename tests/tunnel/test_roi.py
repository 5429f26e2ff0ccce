"""Tests for region-of-interest selection."""

import numpy as np
import pytest

from tunnelpath.contracts import ConfigError
from tunnelpath.tunnel import redefine_tunnel_center, select_x_percent
from tunnelpath.tunnel.roi import roi_length

pytestmark = pytest.mark.unit


def test_half_of_observed_range(straight_flight):
    out = select_x_percent(straight_flight, desired_percent=50)

    assert out.meta.roi.lower == pytest.approx(-0.75)
    assert out.meta.roi.upper == pytest.approx(0.75)
    assert out.meta.roi.full_length == pytest.approx(3.0)
    assert out.meta.roi.selected_length == pytest.approx(1.5)
    assert out.data["frame"].tolist() == list(range(25, 75))


def test_bounds_are_inclusive(make_table, make_rows):
    table = make_table(make_rows(range(5), [-1.0, -0.5, 0.0, 0.5, 1.0]))
    out = select_x_percent(table, desired_percent=50)
    assert out.data["position_length"].tolist() == [-0.5, 0.0, 0.5]


def test_explicit_length_wins_over_treatment(straight_flight, box_tunnel):
    table = box_tunnel(straight_flight, tunnel_length=2.0)
    out = select_x_percent(table, desired_percent=100, tunnel_length=1.0)
    assert out.meta.roi.full_length == 1.0
    assert out.data["position_length"].abs().max() <= 0.5


def test_treatment_length_used(straight_flight, box_tunnel):
    table = box_tunnel(straight_flight, tunnel_length=2.0)
    out = select_x_percent(table, desired_percent=50)
    assert out.meta.roi.upper == pytest.approx(0.5)


def test_full_percent_keeps_everything(straight_flight):
    out = select_x_percent(straight_flight, desired_percent=100)
    assert len(out) == len(straight_flight)


@pytest.mark.parametrize("percent", [0, -5, 100.5])
def test_percent_out_of_range(straight_flight, percent):
    with pytest.raises(ConfigError) as excinfo:
        select_x_percent(straight_flight, desired_percent=percent)
    assert excinfo.value.parameter == "desired_percent"


def test_roi_length_falls_back_to_observed_range(straight_flight):
    assert roi_length(straight_flight) == pytest.approx(3.0)
    selected = select_x_percent(straight_flight, desired_percent=20)
    assert roi_length(selected) == pytest.approx(0.6)
    assert np.all(np.abs(selected.data["position_length"]) <= 0.3)


def test_uncentered_table_is_flagged(straight_flight, caplog):
    with caplog.at_level("WARNING", logger="tunnelpath.tunnel.table"):
        select_x_percent(straight_flight, desired_percent=50)
    assert any("never centered" in r.getMessage() for r in caplog.records)


def test_centered_table_is_not_flagged(straight_flight, caplog):
    centered = redefine_tunnel_center(straight_flight)
    with caplog.at_level("WARNING", logger="tunnelpath.tunnel.table"):
        out = select_x_percent(centered, desired_percent=50)
    assert not any("never centered" in r.getMessage() for r in caplog.records)
    assert len(out) == 50
