"""Tests for pipeline contracts.

These tests verify that contracts are enforced at stage boundaries.
They test contract violations directly, without defensive logic downstream.
"""

import numpy as np
import pandas as pd
import pytest

pytestmark = pytest.mark.unit

from tunnelpath.contracts import (
    ConfigError,
    TunnelPathError,
    ValidationError,
    assert_canonical,
    assert_segmented,
    assert_wall_distances,
    require,
)
from tunnelpath.contracts.invariants import PIPELINE_INVARIANTS, STAGE_REQUIREMENTS
from tunnelpath.tunnel import TrajectoryTable, separate_trajectories


class TestRequire:

    def test_passes_silently(self):
        require(True, "never raised")

    def test_default_error_is_validation(self):
        with pytest.raises(ValidationError, match="broken"):
            require(False, "broken")

    def test_structured_details(self):
        with pytest.raises(ConfigError) as excinfo:
            require(False, "bad percent", ConfigError,
                    parameter="desired_percent", constraint="0 < p <= 100")
        err = excinfo.value
        assert err.parameter == "desired_percent"
        assert err.constraint == "0 < p <= 100"
        assert "parameter='desired_percent'" in str(err)

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)
        assert issubclass(ConfigError, TunnelPathError)


class TestCanonicalContract:

    def test_passes_with_standardized_table(self, straight_flight):
        assert_canonical(straight_flight, "test")

    def test_fails_without_position_column(self, straight_flight):
        table = straight_flight.replace(data=straight_flight.data.drop(columns="position_height"))
        with pytest.raises(ValidationError, match="missing canonical column 'position_height'"):
            assert_canonical(table, "test")

    def test_fails_without_standardization_step(self):
        df = pd.DataFrame({"frame": [0, 1], "subject": ["a", "a"], "x": [0.0, 1.0]})
        raw = TrajectoryTable.from_dataframe(df, frame_rate=100.0)
        assert "axes_standardized" not in raw.meta.steps

        table = raw.replace(data=raw.data.assign(
            position_length=0.0, position_width=0.0, position_height=0.0))
        with pytest.raises(ValidationError, match="axis standardization"):
            assert_canonical(table, "test")


class TestSegmentationContract:

    def test_passes_after_segmentation(self, straight_flight):
        assert_segmented(separate_trajectories(straight_flight))

    def test_fails_without_labels(self, straight_flight):
        with pytest.raises(ValidationError, match="run separate_trajectories first"):
            assert_segmented(straight_flight)

    def test_fails_with_unset_label(self, straight_flight):
        table = separate_trajectories(straight_flight)
        df = table.data.copy()
        df.loc[0, "file_sub_traj"] = None
        with pytest.raises(ValidationError, match="unset labels"):
            assert_segmented(table.replace(data=df))

    def test_fails_when_label_spans_subjects(self, make_table, make_rows):
        table = separate_trajectories(make_table(
            make_rows(range(3), 0.0, subject="a"),
            make_rows(range(3), 0.0, subject="b"),
        ))
        df = table.data.assign(file_sub_traj="shared")
        with pytest.raises(ValidationError, match="more than one subject"):
            assert_segmented(table.replace(data=df))

    def test_fails_when_label_spans_sessions(self, make_table, make_rows):
        table = separate_trajectories(make_table(
            make_rows(range(3), 0.0).assign(file_id="day1"),
            make_rows(range(3), 0.0).assign(file_id="day2"),
        ))
        df = table.data.assign(file_sub_traj="shared")
        with pytest.raises(ValidationError, match="more than one session"):
            assert_segmented(table.replace(data=df))

    def test_empty_table_passes(self, make_table, make_rows):
        out = separate_trajectories(make_table(make_rows([0], 0.0)))
        assert_segmented(out)


class TestGeometryContract:

    @pytest.fixture
    def distances(self, straight_flight):
        n = len(straight_flight)
        return straight_flight.replace(data=straight_flight.data.assign(
            min_dist_pos=np.full(n, 0.5), min_dist_neg=np.full(n, 0.5), min_dist_end=np.ones(n)))

    def test_passes_with_distances(self, distances):
        assert_wall_distances(distances)

    def test_fails_without_column(self, distances):
        table = distances.replace(data=distances.data.drop(columns="min_dist_end"))
        with pytest.raises(ValidationError, match="run calc_min_dist first"):
            assert_wall_distances(table)

    def test_fails_with_negative_distance(self, distances):
        df = distances.data.copy()
        df.loc[3, "min_dist_pos"] = -0.1
        with pytest.raises(ValidationError, match="negative distances"):
            assert_wall_distances(distances.replace(data=df))

    def test_nan_distances_are_ignored(self, distances):
        df = distances.data.copy()
        df.loc[3, "min_dist_neg"] = np.nan
        assert_wall_distances(distances.replace(data=df))


def test_invariant_registry_covers_every_stage():
    assert set(PIPELINE_INVARIANTS) == set(STAGE_REQUIREMENTS)
    assert STAGE_REQUIREMENTS["standardization"] == "REQUIRED"
    assert STAGE_REQUIREMENTS["segmentation"] == "REQUIRED"
