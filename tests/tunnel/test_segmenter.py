"""Tests for frame-gap trajectory segmentation."""

import numpy as np
import pytest

from tunnelpath.contracts import ConfigError, ValidationError
from tunnelpath.tunnel import TrajectorySegmenter, separate_trajectories

pytestmark = pytest.mark.unit


class TestSegmenterInit:

    def test_defaults(self):
        seg = TrajectorySegmenter()
        assert seg.max_frame_gap == 1
        assert not seg.autodetect

    def test_autodetect_spelling(self):
        seg = TrajectorySegmenter(max_frame_gap=" AutoDetect ")
        assert seg.autodetect

    @pytest.mark.parametrize("bad", [0, -3, 2.5, "auto-ish"])
    def test_invalid_gap(self, bad):
        with pytest.raises(ConfigError):
            TrajectorySegmenter(max_frame_gap=bad)


class TestSegmentation:

    def test_contiguous_stream_is_one_trajectory(self, straight_flight):
        out = separate_trajectories(straight_flight, max_frame_gap=1)
        assert out.trajectories == ["session_bird01_1"]
        assert (out.data["traj_id"] == 1).all()
        assert out.meta.max_frame_gap == 1
        assert not out.meta.frame_gap_autodetected

    def test_gap_larger_than_threshold_splits(self, make_table, make_rows):
        frames = [0, 1, 2, 3, 10, 11, 12]
        table = make_table(make_rows(frames, np.linspace(-1, 1, 7)))
        out = separate_trajectories(table, max_frame_gap=5)

        assert out.data["traj_id"].tolist() == [1, 1, 1, 1, 2, 2, 2]
        assert out.data["sub_traj"].tolist()[-1] == "bird01_2"
        assert out.trajectories == ["session_bird01_1", "session_bird01_2"]

    def test_gap_equal_to_threshold_is_bridged(self, make_table, make_rows):
        table = make_table(make_rows([0, 1, 4, 5], 0.0))
        out = separate_trajectories(table, max_frame_gap=3)
        assert out.data["traj_id"].nunique() == 1

    def test_single_dropped_frame_splits_with_zero_tolerance(self, make_table, make_rows):
        table = make_table(make_rows([0, 1, 3, 4], 0.0))
        out = separate_trajectories(table, max_frame_gap=1)
        assert out.data["traj_id"].tolist() == [1, 1, 2, 2]

    def test_unsorted_input_is_ordered_by_frame(self, make_table, make_rows):
        table = make_table(make_rows([5, 1, 2, 6, 0], [0.5, 0.1, 0.2, 0.6, 0.0]))
        out = separate_trajectories(table, max_frame_gap=1)
        assert out.data["frame"].tolist() == [0, 1, 2, 5, 6]
        assert out.data["traj_id"].tolist() == [1, 1, 1, 2, 2]

    def test_subjects_labelled_separately(self, make_table, make_rows):
        table = make_table(
            make_rows(range(4), 0.0, subject="a"),
            make_rows(range(4), 0.0, subject="b"),
        )
        out = separate_trajectories(table)
        assert sorted(out.trajectories) == ["session_a_1", "session_b_1"]
        per_traj = out.data.groupby("file_sub_traj")["subject"].nunique()
        assert (per_traj == 1).all()

    def test_sessions_labelled_separately(self, make_table, make_rows):
        table = make_table(
            make_rows(range(4), 0.0).assign(file_id="day1"),
            make_rows(range(4), 0.0).assign(file_id="day2"),
        )
        out = separate_trajectories(table)
        assert sorted(out.trajectories) == ["day1_bird01_1", "day2_bird01_1"]
        assert out.data["sub_traj"].unique().tolist() == ["bird01_1"]
        assert out.meta.warnings == ()

    @pytest.mark.parametrize("first, second", [
        (("a", "b_c"), ("a_b", "c")),
        (("day", "1_bird"), ("day_1", "bird")),
    ])
    def test_underscore_collisions_get_distinct_labels(self, make_table, make_rows, first, second):
        table = make_table(
            make_rows(range(10), 0.0, subject=first[1]).assign(file_id=first[0]),
            make_rows(range(10), 0.0, subject=second[1]).assign(file_id=second[0]),
        )
        out = separate_trajectories(table)

        prefix = "_".join(first)
        assert sorted(out.trajectories) == [f"{prefix}-1_1", f"{prefix}-2_1"]
        per_traj = out.data.groupby("file_sub_traj")[["file_id", "subject"]].nunique()
        assert (per_traj == 1).all().all()
        assert len(out.meta.warnings) == 1
        assert "relabeled" in out.meta.warnings[0]

    def test_suffixed_prefix_skips_existing_labels(self, make_table, make_rows):
        table = make_table(
            make_rows(range(4), 0.0, subject="b_c").assign(file_id="a"),
            make_rows(range(4), 0.0, subject="c").assign(file_id="a_b"),
            make_rows(range(4), 0.0, subject="c-1").assign(file_id="a_b"),
        )
        out = separate_trajectories(table)
        assert len(set(out.trajectories)) == 3
        assert "a_b_c-1_1" in out.trajectories
        assert out.data.groupby("file_sub_traj")["subject"].nunique().eq(1).all()

    def test_short_streams_dropped_with_one_warning(self, make_table, make_rows, caplog):
        table = make_table(
            make_rows(range(5), 0.0, subject="a"),
            make_rows([3], 0.0, subject="b"),
            make_rows([7], 0.0, subject="c"),
        )
        with caplog.at_level("INFO", logger="tunnelpath.tunnel.segmenter"):
            out = separate_trajectories(table)
        assert out.subjects == ["a"]
        assert len(out.meta.warnings) == 1
        assert "dropped 2 stream(s)" in out.meta.warnings[0]
        # left to the end-of-run summary
        dropped = [r for r in caplog.records if "dropped 2 stream(s)" in r.getMessage()]
        assert [r.levelname for r in dropped] == ["INFO"]

    def test_all_streams_too_short_gives_empty_table(self, make_table, make_rows):
        table = make_table(make_rows([0], 0.0))
        out = separate_trajectories(table)
        assert len(out) == 0
        assert "file_sub_traj" in out.data.columns

    def test_repeated_frame_rejected(self, make_table, make_rows):
        table = make_table(make_rows([0, 1, 1, 2], 0.0))
        with pytest.raises(ValidationError, match="remove_duplicate_frames"):
            separate_trajectories(table)

    def test_no_trajectory_contains_a_large_gap(self, make_table, make_rows):
        rng = np.random.default_rng(3)
        frames = np.cumsum(rng.integers(1, 6, size=200))
        out = separate_trajectories(make_table(make_rows(frames, 0.0)), max_frame_gap=3)
        for _, group in out.data.groupby("file_sub_traj"):
            assert np.diff(group["frame"].to_numpy()).max(initial=1) <= 3

    def test_autodetect_records_choice(self, make_table, make_rows):
        frames = list(range(0, 50)) + list(range(53, 100))
        table = make_table(make_rows(frames, np.linspace(-1.5, 1.5, len(frames))))
        out = separate_trajectories(table, max_frame_gap="autodetect")
        assert out.meta.frame_gap_autodetected
        assert out.meta.max_frame_gap >= 1
