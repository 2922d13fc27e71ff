"""
Pose selection over the four orientation candidates.

Pure functions - no state is carried between frames.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np

from ..types import (
    CORNER_IDS,
    UNAVAILABLE_BRIGHTNESS,
    BoardConfig,
    CornerGrid,
    PoseEstimate,
    default_camera_matrix,
    zero_distortion,
)
from .chessboard import generate_object_points
from .orientation import reorder, sample_outer_corners

logger = logging.getLogger(__name__)


MAX_CANDIDATE_ERROR = 15.0
MAX_CALIBRATION_ERROR = 8.0


# ============================================================================
# Geometry
# ============================================================================


def solve_board_pose(
    object_points: np.ndarray,
    image_points: np.ndarray,
    camera_matrix: np.ndarray,
    dist_coeffs: np.ndarray,
) -> tuple[np.ndarray, np.ndarray] | None:
    """
    Iterative PnP solve.

    Returns:
        (rvec, tvec) as (3,) arrays, or None if the solver fails
    """
    try:
        success, rvec, tvec = cv2.solvePnP(
            object_points,
            image_points,
            camera_matrix,
            dist_coeffs,
            flags=cv2.SOLVEPNP_ITERATIVE,
        )
    except cv2.error as e:
        logger.debug("solvePnP raised: %s", e)
        return None

    if not success:
        return None
    return rvec.reshape(3), tvec.reshape(3)


def faces_camera(rvec: np.ndarray) -> bool:
    """True if the board's local Z axis has a positive component along the view axis."""
    rotation = cv2.Rodrigues(rvec)[0]
    return bool(rotation[2, 2] > 0)


def mean_reprojection_error(
    object_points: np.ndarray,
    image_points: np.ndarray,
    rvec: np.ndarray,
    tvec: np.ndarray,
    camera_matrix: np.ndarray,
    dist_coeffs: np.ndarray,
) -> float:
    """
    Mean Euclidean distance between observed and reprojected points.
    """
    projected, _ = cv2.projectPoints(object_points, rvec, tvec, camera_matrix, dist_coeffs)
    projected = projected.reshape(-1, 2)
    distances = np.linalg.norm(projected - np.asarray(image_points).reshape(-1, 2), axis=1)
    return float(distances.mean())


# ============================================================================
# Candidate Evaluation
# ============================================================================


def evaluate_candidate(
    grid: CornerGrid,
    corner_id: int,
    board: BoardConfig,
    camera_matrix: np.ndarray,
    dist_coeffs: np.ndarray,
    max_error: float = MAX_CANDIDATE_ERROR,
) -> PoseEstimate:
    """
    Solve and validate the pose for one orientation candidate.

    Args:
        grid: CornerGrid as detected
        corner_id: Outer corner treated as A1
        board: BoardConfig for the model points
        camera_matrix: 3x3 intrinsics (placeholder or calibrated)
        dist_coeffs: Distortion coefficients
        max_error: Reprojection error ceiling for a valid candidate

    Returns:
        PoseEstimate, valid only if every check passed
    """
    ordered = reorder(grid, corner_id)
    object_points = generate_object_points(board)

    solution = solve_board_pose(object_points, ordered.points, camera_matrix, dist_coeffs)
    if solution is None:
        return PoseEstimate(
            orientation=corner_id,
            rotation=None,
            translation=None,
            mean_reprojection_error=float("inf"),
            valid=False,
            image_points=ordered.points,
        )

    rvec, tvec = solution
    facing = faces_camera(rvec)
    error = float("inf")
    if facing:
        error = mean_reprojection_error(
            object_points, ordered.points, rvec, tvec, camera_matrix, dist_coeffs
        )

    return PoseEstimate(
        orientation=corner_id,
        rotation=rvec,
        translation=tvec,
        mean_reprojection_error=error,
        valid=facing and error <= max_error,
        image_points=ordered.points,
        solved=True,
        facing_camera=facing,
    )


def evaluate_candidates(
    grid: CornerGrid,
    board: BoardConfig,
    frame_size: tuple[int, int],
    candidates: tuple[int, ...] | list[int] = CORNER_IDS,
    camera_matrix: np.ndarray | None = None,
    dist_coeffs: np.ndarray | None = None,
    max_error: float = MAX_CANDIDATE_ERROR,
    focal_length: float = 1000.0,
) -> list[PoseEstimate]:
    """
    Evaluate each orientation candidate in order.

    Without calibrated intrinsics a placeholder camera is used: orientation
    selection only needs relative consistency between candidates.
    """
    if camera_matrix is None:
        camera_matrix = default_camera_matrix(frame_size, focal_length)
    if dist_coeffs is None:
        dist_coeffs = zero_distortion()

    return [
        evaluate_candidate(grid, corner_id, board, camera_matrix, dist_coeffs, max_error)
        for corner_id in candidates
    ]


def select_best_pose(
    grid: CornerGrid,
    gray: np.ndarray | None,
    frame_size: tuple[int, int],
    board: BoardConfig,
    candidates: tuple[int, ...] | list[int] = CORNER_IDS,
    camera_matrix: np.ndarray | None = None,
    dist_coeffs: np.ndarray | None = None,
    max_error: float = MAX_CANDIDATE_ERROR,
    focal_length: float = 1000.0,
    brightness: list[float] | tuple[float, ...] | None = None,
) -> PoseEstimate | None:
    """
    Pick the valid orientation candidate with the lowest reprojection error.

    All four candidates are tested by default since brightness alone is
    not reliable enough. The first candidate reaching the minimum error
    wins.

    Args:
        grid: CornerGrid as detected
        gray: Grayscale frame, only used for diagnostics (may be None)
        frame_size: (width, height) of the frame
        board: BoardConfig
        candidates: Corner ids to test, in scan order
        brightness: Outer square values already sampled for this frame

    Returns:
        Winning PoseEstimate, or None if no candidate is valid
    """
    if brightness is None:
        brightness = [UNAVAILABLE_BRIGHTNESS] * len(CORNER_IDS)
        if gray is not None and logger.isEnabledFor(logging.DEBUG):
            brightness = sample_outer_corners(grid, gray)

    estimates = evaluate_candidates(
        grid,
        board,
        frame_size,
        candidates=candidates,
        camera_matrix=camera_matrix,
        dist_coeffs=dist_coeffs,
        max_error=max_error,
        focal_length=focal_length,
    )

    best = None
    for estimate in estimates:
        logger.debug(
            "A1 candidate %d: pixel value=%.1f, solvePnP=%s, z_outwards=%s, reprojErr=%.3f (%s)",
            estimate.orientation,
            brightness[estimate.orientation],
            estimate.solved,
            estimate.facing_camera,
            estimate.mean_reprojection_error,
            "OK" if estimate.valid else "FAIL",
        )
        if not estimate.valid:
            continue
        if best is None or estimate.mean_reprojection_error < best.mean_reprojection_error:
            best = estimate

    return best


def accept_for_calibration(
    reprojection_error: float,
    max_error: float = MAX_CALIBRATION_ERROR,
) -> bool:
    """Stricter gate than candidate validity for feeding the accumulator."""
    return reprojection_error <= max_error
