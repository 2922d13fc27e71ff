"""
Tests for checkmate.session.
"""

import logging
from dataclasses import replace

import cv2
import numpy as np
import pytest

from checkmate.calibration import pose as pose_module
from checkmate.calibration.intrinsic import SampleAccumulator
from checkmate.session import annotate_frame, process_frame, run_session
from checkmate.sources import SequenceSource
from checkmate.types import SessionConfig, default_camera_matrix


@pytest.fixture
def config(board_config):
    return SessionConfig(board=board_config)


class TestProcessFrame:
    def test_accepts_clean_board(self, board_image, config):
        acc = SampleAccumulator()
        result = process_frame(board_image, config, acc)

        assert result.status == "accepted"
        assert result.accepted
        assert result.pose is not None
        assert result.pose.valid
        assert result.pose.mean_reprojection_error <= 8.0
        assert len(result.brightness) == 4
        assert len(acc) == 1
        assert acc.samples[0] is result.sample
        assert result.sample.image_points.shape == (49, 2)
        assert result.sample.object_points.shape == (49, 3)

    def test_sample_is_canonical_order(self, board_image, config):
        result = process_frame(board_image, config)
        assert result.accepted
        np.testing.assert_array_equal(result.sample.image_points, result.pose.image_points)

    def test_without_accumulator(self, board_image, config):
        result = process_frame(board_image, config)
        assert result.accepted
        assert result.sample is not None

    def test_blurred(self, config):
        blank = np.full((480, 640, 3), 128, dtype=np.uint8)
        acc = SampleAccumulator()
        result = process_frame(blank, config, acc)

        assert result.status == "blurred"
        assert result.grid is None
        assert len(acc) == 0

    def test_not_found(self, config):
        noise = np.random.default_rng(0).integers(0, 256, (480, 640, 3), dtype=np.uint8)
        acc = SampleAccumulator()
        result = process_frame(noise, config, acc)

        assert result.status == "not_found"
        assert len(acc) == 0

    def test_no_valid_orientation(self, board_image, config, monkeypatch):
        monkeypatch.setattr(pose_module, "mean_reprojection_error", lambda *args: 20.0)
        acc = SampleAccumulator()
        result = process_frame(board_image, config, acc)

        assert result.status == "invalid_pose"
        assert result.grid is not None
        assert result.pose is None
        assert len(acc) == 0

    def test_rejected_by_calibration_gate(self, board_image, config, monkeypatch):
        monkeypatch.setattr(pose_module, "mean_reprojection_error", lambda *args: 10.0)
        acc = SampleAccumulator()
        result = process_frame(board_image, config, acc)

        assert result.status == "rejected"
        assert result.pose is not None
        assert result.pose.mean_reprojection_error == 10.0
        assert len(acc) == 0

    def test_camera_blur_threshold(self, board_image, config):
        gray = cv2.cvtColor(board_image, cv2.COLOR_BGR2GRAY)
        variance = cv2.Laplacian(gray, cv2.CV_64F).var()
        strict = replace(config, blur_threshold=variance + 1.0, blur_threshold_camera=0.0)

        assert process_frame(board_image, strict).status == "blurred"
        assert process_frame(board_image, strict, use_camera=True).status == "accepted"

    def test_accepts_non_square_board(self, make_board_image, wide_board):
        config = SessionConfig(board=wide_board)
        acc = SampleAccumulator()
        result = process_frame(make_board_image(wide_board), config, acc)

        assert result.status == "accepted"
        assert result.grid.rows == 6
        assert result.grid.cols == 9
        assert result.pose.valid
        assert result.sample.image_points.shape == (54, 2)
        np.testing.assert_array_almost_equal(result.sample.object_points[-1], [5.0, 8.0, 0.0])
        assert len(acc) == 1

    def test_brightness_sampled_once(self, board_image, config, monkeypatch, caplog):
        caplog.set_level(logging.DEBUG, logger="checkmate")

        def fail(*args):
            raise AssertionError("outer squares sampled again")

        monkeypatch.setattr(pose_module, "sample_outer_corners", fail)
        result = process_frame(board_image, config)

        assert result.accepted
        assert len(result.brightness) == 4
        assert "A1 candidate" in caplog.text


class TestAnnotateFrame:
    def test_accepted_overlay(self, board_image, config):
        result = process_frame(board_image, config)
        preview = board_image.copy()
        annotate_frame(preview, result, config)
        assert not np.array_equal(preview, board_image)

    def test_accepted_overlay_non_square(self, make_board_image, wide_board):
        config = SessionConfig(board=wide_board)
        image = make_board_image(wide_board)
        result = process_frame(image, config)
        assert result.accepted

        preview = image.copy()
        annotate_frame(preview, result, config)
        assert not np.array_equal(preview, image)

    def test_error_banner(self, config):
        blank = np.full((480, 640, 3), 128, dtype=np.uint8)
        result = process_frame(blank, config)
        preview = blank.copy()
        annotate_frame(preview, result, config)
        assert not np.array_equal(preview, blank)


class TestRunSession:
    def test_requires_open_source(self, temp_dir, config):
        with pytest.raises(RuntimeError):
            run_session(SequenceSource(temp_dir / "missing"), config, show=False)

    def test_no_accepted_frames(self, temp_dir, config):
        frames = temp_dir / "frames"
        frames.mkdir()
        for i in range(3):
            cv2.imwrite(str(frames / f"{i:02d}.png"), np.full((120, 160, 3), 128, dtype=np.uint8))

        acc = SampleAccumulator()
        summary = run_session(SequenceSource(frames), config, acc, show=False, output_dir=temp_dir)

        assert summary.frames_processed == 3
        assert summary.frames_accepted == 0
        assert summary.calibration.success is False
        assert summary.parameters_path is None
        assert acc.camera is None

    def test_skips_unreadable_files(self, temp_dir, config):
        frames = temp_dir / "frames"
        frames.mkdir()
        (frames / ".DS_Store").write_bytes(b"\x00\x01 not an image")
        for i in range(2):
            cv2.imwrite(str(frames / f"{i:02d}.png"), np.full((120, 160, 3), 128, dtype=np.uint8))

        summary = run_session(SequenceSource(frames), config, show=False, output_dir=temp_dir)

        assert summary.frames_processed == 2
        assert summary.aborted is False

    def test_calibrates_from_sequence(self, temp_dir, config, board_config, make_warped_view):
        size = (640, 480)
        K = default_camera_matrix(size, 1000.0)
        poses = [
            ([0.35, 0.0, 0.0], [0.0, 0.0, 28.0]),
            ([0.0, 0.35, 0.05], [0.5, 0.0, 30.0]),
            ([-0.3, 0.25, 0.0], [0.0, 0.5, 29.0]),
            ([0.25, -0.35, 0.1], [-0.5, 0.0, 31.0]),
            ([-0.35, -0.2, -0.05], [0.0, -0.5, 27.0]),
        ]
        frames = temp_dir / "frames"
        frames.mkdir()
        for i, (rvec, tvec) in enumerate(poses):
            view = make_warped_view(board_config, K, rvec, tvec, size)
            cv2.imwrite(str(frames / f"view_{i:02d}.png"), view)

        output = temp_dir / "out"
        summary = run_session(SequenceSource(frames), config, show=False, output_dir=output)

        assert summary.frames_processed == len(poses)
        if summary.frames_accepted < 3:
            pytest.skip("Not enough accepted views for calibration test")

        assert summary.calibration.success
        assert summary.calibration.sample_count == summary.frames_accepted
        assert summary.parameters_path is not None
        assert summary.parameters_path.exists()
        assert summary.parameters_path.suffix == ".yml"
        if summary.final_frame_path is not None:
            assert summary.final_frame_path.exists()
