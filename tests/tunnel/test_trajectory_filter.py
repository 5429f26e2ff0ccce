"""Tests for the span filter and the velocity filter."""

import numpy as np
import pytest

from tunnelpath.contracts import ConfigError, ValidationError
from tunnelpath.tunnel import (
    exclude_by_velocity,
    get_full_trajectories,
    get_velocity,
    select_x_percent,
    separate_trajectories,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def two_passes(make_table, make_rows):
    """One pass covering the whole tunnel, one turning back halfway."""
    return separate_trajectories(make_table(
        make_rows(range(11), np.linspace(-1.0, 1.0, 11), subject="full"),
        make_rows(range(11), np.linspace(-1.0, 0.0, 11), subject="half"),
    ))


class TestGetFullTrajectories:

    def test_span_boundary_is_inclusive(self, two_passes):
        out = get_full_trajectories(two_passes, span=0.5)
        assert sorted(out.subjects) == ["full", "half"]

        out = get_full_trajectories(two_passes, span=0.51)
        assert out.subjects == ["full"]
        assert out.meta.span == 0.51

    def test_uses_selected_roi_length(self, make_table, make_rows):
        table = make_table(make_rows(range(21), np.linspace(-2.0, 2.0, 21)))
        table = separate_trajectories(select_x_percent(table, desired_percent=55))
        # rows kept span [-1, 1] but the window is [-1.1, 1.1]
        assert len(get_full_trajectories(table, span=0.9).trajectories) == 1
        assert len(get_full_trajectories(table, span=0.95).trajectories) == 0

    def test_empty_result_is_not_an_error(self, two_passes):
        narrow = two_passes.replace(data=two_passes.data[two_passes.data["subject"] == "half"])
        narrow = select_x_percent(narrow, desired_percent=100, tunnel_length=4.0)
        out = get_full_trajectories(narrow, span=0.8)
        assert len(out) == 0
        assert list(out.data.columns) == list(narrow.data.columns)
        assert any("no trajectory spans" in w for w in out.meta.warnings)

    @pytest.mark.parametrize("span", [0, 1.2, -0.1])
    def test_span_out_of_range(self, two_passes, span):
        with pytest.raises(ConfigError):
            get_full_trajectories(two_passes, span=span)

    def test_requires_segmentation(self, straight_flight):
        with pytest.raises(ValidationError, match="separate_trajectories"):
            get_full_trajectories(straight_flight)


class TestExcludeByVelocity:

    @pytest.fixture
    def with_speed(self, make_table, make_rows):
        # 100 Hz: slow moves 0.01/frame (1 m/s), fast 0.05/frame (5 m/s)
        table = make_table(
            make_rows(range(10), np.arange(10) * 0.01, subject="slow"),
            make_rows(range(10), np.arange(10) * 0.05, subject="fast"),
        )
        return get_velocity(separate_trajectories(table))

    def test_upper_bound(self, with_speed):
        out = exclude_by_velocity(with_speed, vel_max=2.0)
        assert out.subjects == ["slow"]

    def test_lower_bound(self, with_speed):
        out = exclude_by_velocity(with_speed, vel_min=2.0)
        assert out.subjects == ["fast"]

    def test_needs_a_bound(self, with_speed):
        with pytest.raises(ConfigError):
            exclude_by_velocity(with_speed)

    def test_needs_velocity_column(self, two_passes):
        with pytest.raises(ValidationError, match="get_velocity"):
            exclude_by_velocity(two_passes, vel_max=1.0)
