# checkmate - chessboard camera calibration and pose verification

__version__ = "0.1.0"

# Core types
from checkmate.types import (
    BoardConfig,
    CornerGrid,
    OrientationCandidate,
    PoseEstimate,
    CalibrationSample,
    CameraParameters,
    CalibrationResult,
    SessionConfig,
    FrameResult,
    default_camera_matrix,
    opposite_corner,
)

# Orientation and pose selection
from checkmate.calibration import (
    detect_grid,
    generate_object_points,
    sample_outer_corners,
    best_candidate,
    candidates_near_minimum,
    reorder,
    select_best_pose,
    accept_for_calibration,
    SampleAccumulator,
    CalibrationSolveError,
)

# Frame sources
from checkmate.sources import (
    FrameSource,
    CameraSource,
    SequenceSource,
    enumerate_cameras,
)

# Configuration
from checkmate.config import (
    load_session_config,
    save_session_config,
    save_camera_parameters,
    load_camera_parameters,
)

# Session
from checkmate.session import (
    process_frame,
    run_session,
)

__all__ = [
    # Core types
    "BoardConfig",
    "CornerGrid",
    "OrientationCandidate",
    "PoseEstimate",
    "CalibrationSample",
    "CameraParameters",
    "CalibrationResult",
    "SessionConfig",
    "FrameResult",
    "default_camera_matrix",
    "opposite_corner",
    # Orientation and pose selection
    "detect_grid",
    "generate_object_points",
    "sample_outer_corners",
    "best_candidate",
    "candidates_near_minimum",
    "reorder",
    "select_best_pose",
    "accept_for_calibration",
    "SampleAccumulator",
    "CalibrationSolveError",
    # Frame sources
    "FrameSource",
    "CameraSource",
    "SequenceSource",
    "enumerate_cameras",
    # Configuration
    "load_session_config",
    "save_session_config",
    "save_camera_parameters",
    "load_camera_parameters",
    # Session
    "process_frame",
    "run_session",
]
