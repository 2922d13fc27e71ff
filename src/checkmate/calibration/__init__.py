"""
Calibration module for checkmate.

Detection, orientation and pose selection are pure functions over one
frame. SampleAccumulator is the only stateful piece.
"""

from .chessboard import (
    detect_grid,
    generate_object_points,
    outer_square_centers,
    to_gray,
)

from .orientation import (
    mean_brightness,
    sample_outer_corners,
    outer_candidates,
    best_candidate,
    candidates_near_minimum,
    reorder,
)

from .pose import (
    MAX_CANDIDATE_ERROR,
    MAX_CALIBRATION_ERROR,
    solve_board_pose,
    mean_reprojection_error,
    evaluate_candidate,
    evaluate_candidates,
    select_best_pose,
    accept_for_calibration,
)

from .intrinsic import (
    CalibrationSolveError,
    SampleAccumulator,
)

__all__ = [
    # Chessboard
    "detect_grid",
    "generate_object_points",
    "outer_square_centers",
    "to_gray",
    # Orientation
    "mean_brightness",
    "sample_outer_corners",
    "outer_candidates",
    "best_candidate",
    "candidates_near_minimum",
    "reorder",
    # Pose
    "MAX_CANDIDATE_ERROR",
    "MAX_CALIBRATION_ERROR",
    "solve_board_pose",
    "mean_reprojection_error",
    "evaluate_candidate",
    "evaluate_candidates",
    "select_best_pose",
    "accept_for_calibration",
    # Intrinsic
    "CalibrationSolveError",
    "SampleAccumulator",
]
