"""
Calibration session: frame pipeline and the collection loop.

process_frame is the per-frame pipeline (blur gate, detection, pose
selection, acceptance). run_session drives it over a FrameSource, runs the
final calibration and renders the verification frame.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

from . import renderer
from .calibration.chessboard import detect_grid, generate_object_points, to_gray
from .calibration.intrinsic import SampleAccumulator
from .calibration.orientation import candidates_near_minimum, sample_outer_corners
from .calibration.pose import accept_for_calibration, select_best_pose, solve_board_pose
from .config import filename_timestamp, save_camera_parameters
from .quality import is_blurred
from .sources import FrameSource
from .types import (
    CalibrationResult,
    CalibrationSample,
    FrameResult,
    SessionConfig,
    default_camera_matrix,
    zero_distortion,
)

logger = logging.getLogger(__name__)


KEY_ESCAPE = 27

# Banner text and color per rejected status
STATUS_MESSAGES = {
    "blurred": ("Frame is blurred", renderer.RED),
    "not_found": ("Chessboard not found", renderer.YELLOW),
    "invalid_pose": ("Pose not valid", renderer.ORANGE),
    "rejected": ("Reprojection error too high", renderer.ORANGE),
}


@dataclass(frozen=True)
class SessionSummary:
    """Statistics and outputs of a finished session."""

    frames_processed: int
    frames_accepted: int
    calibration: CalibrationResult
    parameters_path: Path | None = None
    final_frame_path: Path | None = None
    aborted: bool = False


# ============================================================================
# Frame Pipeline
# ============================================================================


def process_frame(
    frame: np.ndarray,
    config: SessionConfig,
    accumulator: SampleAccumulator | None = None,
    use_camera: bool = False,
) -> FrameResult:
    """
    Run one frame through the pipeline.

    Args:
        frame: BGR or grayscale image
        config: SessionConfig
        accumulator: Receives the sample if the frame is accepted
        use_camera: Apply the live-camera blur threshold

    Returns:
        FrameResult describing the outcome
    """
    gray = to_gray(frame)
    height, width = gray.shape[:2]

    threshold = config.blur_threshold_camera if use_camera else config.blur_threshold
    if is_blurred(gray, threshold=threshold):
        return FrameResult(status="blurred")

    grid = detect_grid(frame, config.board)
    if grid is None:
        return FrameResult(status="not_found")

    brightness = tuple(sample_outer_corners(grid, gray))
    logger.debug(
        "Outer square brightness %s, darkest candidates %s",
        ["%.1f" % v for v in brightness],
        candidates_near_minimum(list(brightness), config.brightness_margin),
    )

    pose = select_best_pose(
        grid,
        gray,
        (width, height),
        config.board,
        max_error=config.max_candidate_error,
        focal_length=config.default_focal_length,
        brightness=brightness,
    )
    if pose is None:
        return FrameResult(status="invalid_pose", grid=grid, brightness=brightness)

    if not accept_for_calibration(pose.mean_reprojection_error, config.max_calibration_error):
        logger.debug(
            "Rejected for calibration. Reprojection error: %.3f (max %.1f)",
            pose.mean_reprojection_error,
            config.max_calibration_error,
        )
        return FrameResult(status="rejected", grid=grid, pose=pose, brightness=brightness)

    object_points = generate_object_points(config.board)
    if accumulator is not None:
        sample = accumulator.add_sample(pose.image_points, object_points)
    else:
        sample = CalibrationSample(image_points=pose.image_points, object_points=object_points)

    logger.debug(
        "Accepted for calibration. A1 corner %d, reprojection error: %.3f (max %.1f)",
        pose.orientation,
        pose.mean_reprojection_error,
        config.max_calibration_error,
    )
    return FrameResult(
        status="accepted",
        grid=grid,
        pose=pose,
        sample=sample,
        brightness=brightness,
    )


def annotate_frame(
    image: np.ndarray,
    result: FrameResult,
    config: SessionConfig,
) -> None:
    """Draw the preview overlay for a processed frame in place."""
    if result.accepted:
        board = config.board
        cv2.drawChessboardCorners(
            image,
            board.pattern_size,
            result.sample.image_points.reshape(-1, 1, 2),
            True,
        )
        height, width = image.shape[:2]
        renderer.draw_pose_overlay(
            image,
            board,
            default_camera_matrix((width, height), config.default_focal_length),
            zero_distortion(),
            result.pose.rotation,
            result.pose.translation,
        )
        return

    message, color = STATUS_MESSAGES[result.status]
    renderer.draw_message(image, message, (30, 30), color)


# ============================================================================
# Session Loop
# ============================================================================


def _wait_key(show: bool, delay_ms: int) -> int:
    if not show:
        return -1
    return cv2.waitKey(delay_ms) & 0xFF


def run_session(
    source: FrameSource,
    config: SessionConfig,
    accumulator: SampleAccumulator | None = None,
    show: bool = True,
    output_dir: Path = Path("."),
) -> SessionSummary:
    """
    Collect calibration frames from a source and calibrate.

    A live camera runs until config.required_frames frames are accepted;
    a stored sequence is consumed completely. ESC stops early.

    Args:
        source: Opened FrameSource
        config: SessionConfig
        accumulator: Optional accumulator to fill (a new one if None)
        show: Display preview windows and pause between frames
        output_dir: Where parameter and final frame files are written

    Returns:
        SessionSummary

    Raises:
        RuntimeError: If the source is not opened
        CalibrationSolveError: If the final solve fails
    """
    if not source.is_opened():
        raise RuntimeError("Frame source could not be opened")

    if accumulator is None:
        accumulator = SampleAccumulator()

    use_camera = source.is_live
    target = config.required_frames if use_camera else source.frame_count
    window = config.window_name

    if show:
        cv2.namedWindow(window, cv2.WINDOW_AUTOSIZE)

    frame_count = 0
    processed = 0
    accepted = 0
    aborted = False
    last_frame = None
    last_sample = None

    while frame_count < target:
        frame = source.next_frame()
        if frame is None:
            break

        processed += 1
        result = process_frame(frame, config, accumulator, use_camera=use_camera)
        if result.accepted:
            accepted += 1
            last_frame = frame.copy()
            last_sample = result.sample

        if show:
            preview = frame.copy()
            if use_camera:
                renderer.draw_frames_left(preview, config.required_frames - frame_count)
            annotate_frame(preview, result, config)
            cv2.imshow(window, preview)

        if _wait_key(show, 1) == KEY_ESCAPE:
            aborted = True
            break

        # Live input only counts accepted frames
        if not use_camera or result.accepted:
            frame_count += 1
            if _wait_key(show, config.pause_ms) == KEY_ESCAPE:
                aborted = True
                break

    if aborted:
        print("Exiting...")

    calibration = accumulator.run_calibration(source.frame_size)
    summary = SessionSummary(
        frames_processed=processed,
        frames_accepted=accepted,
        calibration=calibration,
        aborted=aborted,
    )
    if not calibration.success:
        logger.warning("Calibration skipped: no accepted frames")
        return summary

    output_dir = Path(output_dir)
    parameters_path = output_dir / filename_timestamp("calibration", "yml")
    save_camera_parameters(calibration.camera, parameters_path)
    print(f"Calibration saved as {parameters_path}")

    final_frame_path = None
    if last_frame is not None:
        final_frame_path = render_final_frame(
            last_frame, last_sample, calibration, config, output_dir, show
        )

    return SessionSummary(
        frames_processed=processed,
        frames_accepted=accepted,
        calibration=calibration,
        parameters_path=parameters_path,
        final_frame_path=final_frame_path,
        aborted=aborted,
    )


def render_final_frame(
    frame: np.ndarray,
    sample: CalibrationSample,
    calibration: CalibrationResult,
    config: SessionConfig,
    output_dir: Path,
    show: bool = True,
) -> Path | None:
    """
    Re-solve the last accepted frame with calibrated intrinsics and save
    the verification render.

    Returns:
        Path of the saved image, or None if the pose solve failed
    """
    camera = calibration.camera
    solution = solve_board_pose(
        sample.object_points, sample.image_points, camera.matrix, camera.distortion
    )
    if solution is None:
        logger.warning("Could not solve the final pose with calibrated intrinsics")
        return None

    rvec, tvec = solution
    out_frame = frame.copy()
    renderer.draw_final_overlay(
        out_frame, config.board, camera.matrix, camera.distortion, rvec, tvec
    )

    path = Path(output_dir) / filename_timestamp("final_frame", "png")
    cv2.imwrite(str(path), out_frame)
    print(f"Final frame saved as {path}")

    if show:
        cv2.imshow(config.window_name, out_frame)
        while True:
            key = cv2.waitKey(0) & 0xFF
            if key in (KEY_ESCAPE, ord("q")):
                break
        cv2.destroyAllWindows()

    return path
