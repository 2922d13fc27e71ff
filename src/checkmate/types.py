"""
Core data structures for checkmate.

All types are frozen dataclasses for immutability.
Logic is in separate pure functions - these are data containers only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import numpy as np


# Outer corner ids under the grid's current raster labeling
TOP_LEFT = 0
TOP_RIGHT = 1
BOTTOM_LEFT = 2
BOTTOM_RIGHT = 3
CORNER_IDS = (TOP_LEFT, TOP_RIGHT, BOTTOM_LEFT, BOTTOM_RIGHT)

# Brightness value for an outer square that could not be sampled
UNAVAILABLE_BRIGHTNESS = 1e6


# ============================================================================
# Board Configuration
# ============================================================================


@dataclass(frozen=True, slots=True)
class BoardConfig:
    """
    Physical chessboard description.

    Sizes count inner corners, so a regular 8x8 chessboard is 7x7.
    """

    corners_x: int = 7  # Inner corners across (grid columns)
    corners_y: int = 7  # Inner corners down (grid rows)
    square_size: float = 1.0  # Square edge length, arbitrary units

    @property
    def pattern_size(self) -> tuple[int, int]:
        """(columns, rows) as expected by cv2.findChessboardCorners."""
        return (self.corners_x, self.corners_y)

    @property
    def corner_count(self) -> int:
        return self.corners_x * self.corners_y


# ============================================================================
# Detection
# ============================================================================


@dataclass(frozen=True, eq=False)
class CornerGrid:
    """
    rows x cols detected inner corners in row-major raster order.

    Index r * cols + c addresses grid position (r, c) under the current
    labeling. The labeling carries no physical orientation until the grid
    has been reordered.
    """

    rows: int
    cols: int
    points: np.ndarray  # (rows * cols, 2) image coordinates (x, y)

    def __post_init__(self):
        if self.rows < 2 or self.cols < 2:
            raise ValueError(f"Grid must be at least 2x2, got {self.rows}x{self.cols}")
        points = np.asarray(self.points, dtype=np.float32).reshape(-1, 2)
        if len(points) != self.rows * self.cols:
            raise ValueError(
                f"Expected {self.rows * self.cols} points for a "
                f"{self.rows}x{self.cols} grid, got {len(points)}"
            )
        object.__setattr__(self, "points", points)

    def __len__(self) -> int:
        return self.rows * self.cols

    def at(self, row: int, col: int) -> np.ndarray:
        return self.points[row * self.cols + col]

    def as_grid(self) -> np.ndarray:
        """(rows, cols, 2) view of the points."""
        return self.points.reshape(self.rows, self.cols, 2)


@dataclass(frozen=True, slots=True)
class OrientationCandidate:
    """
    One of the four outer corners proposed as the physical A1 origin.
    """

    corner_id: int  # 0=top-left, 1=top-right, 2=bottom-left, 3=bottom-right
    brightness: float  # Mean intensity of the outer square, or UNAVAILABLE_BRIGHTNESS

    @property
    def available(self) -> bool:
        return self.brightness < UNAVAILABLE_BRIGHTNESS


# ============================================================================
# Pose
# ============================================================================


@dataclass(frozen=True, slots=True)
class PoseEstimate:
    """
    Board pose for one orientation candidate.

    valid means the solve succeeded, the board faces the camera and the
    mean reprojection error is within the candidate ceiling.
    """

    orientation: int  # corner_id of the candidate
    rotation: np.ndarray | None  # (3,) Rodrigues vector
    translation: np.ndarray | None  # (3,) translation vector
    mean_reprojection_error: float
    valid: bool
    image_points: np.ndarray | None = None  # (n, 2) grid in candidate order
    solved: bool = False
    facing_camera: bool = False


# ============================================================================
# Calibration Data
# ============================================================================


@dataclass(frozen=True, slots=True)
class CalibrationSample:
    """
    One accepted frame: canonical A1-origin image points and model points.
    """

    image_points: np.ndarray  # (n, 2) float32
    object_points: np.ndarray  # (n, 3) float32, Z = 0

    def __post_init__(self):
        if len(self.image_points) != len(self.object_points):
            raise ValueError(
                f"Sample has {len(self.image_points)} image points but "
                f"{len(self.object_points)} object points"
            )


@dataclass(frozen=True, slots=True)
class CameraParameters:
    """
    Intrinsic parameters. Immutable once calibration succeeds.
    """

    matrix: np.ndarray  # 3x3 camera matrix
    distortion: np.ndarray  # (5,) distortion coefficients
    error: float = 0.0  # RMS reprojection error of the solve


@dataclass(frozen=True, slots=True)
class CalibrationResult:
    """
    Outcome of SampleAccumulator.run_calibration.
    """

    success: bool
    camera: CameraParameters | None
    sample_count: int

    @property
    def mean_error(self) -> float | None:
        return self.camera.error if self.success and self.camera else None


# ============================================================================
# Session
# ============================================================================


FrameStatus = Literal["accepted", "blurred", "not_found", "invalid_pose", "rejected"]


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """
    Complete session configuration.
    Loaded from TOML file, defaults match a 7x7 inner-corner board.
    """

    board: BoardConfig = field(default_factory=BoardConfig)
    required_frames: int = 12  # Accepted frames to collect from a live camera
    max_candidate_error: float = 15.0  # Ceiling to keep a candidate alive
    max_calibration_error: float = 8.0  # Gate for feeding the accumulator
    brightness_margin: float = 10.0
    default_focal_length: float = 1000.0
    blur_threshold: float = 100.0
    blur_threshold_camera: float = 70.0  # Live input is softer
    pause_ms: int = 1000
    window_name: str = "Checkmate"
    frames_dir: str = "res/frames"


@dataclass(frozen=True, slots=True)
class FrameResult:
    """
    Outcome of processing a single frame.
    """

    status: FrameStatus
    grid: CornerGrid | None = None  # Raw detection
    pose: PoseEstimate | None = None  # Winning candidate
    sample: CalibrationSample | None = None  # Set when accepted
    brightness: tuple[float, ...] = ()

    @property
    def accepted(self) -> bool:
        return self.status == "accepted"


# ============================================================================
# Pure functions
# ============================================================================


def opposite_corner(corner_id: int) -> int:
    """
    Diagonally opposite outer corner (0 <-> 3, 1 <-> 2).
    """
    if corner_id not in CORNER_IDS:
        raise ValueError(f"corner_id must be one of {CORNER_IDS}, got {corner_id}")
    return 3 - corner_id


def default_camera_matrix(
    frame_size: tuple[int, int],
    focal_length: float = 1000.0,
) -> np.ndarray:
    """
    Placeholder intrinsics for pose selection before calibration.

    Principal point at the image center, equal focal lengths.
    """
    width, height = frame_size
    matrix = np.eye(3, dtype=np.float64)
    matrix[0, 0] = focal_length
    matrix[1, 1] = focal_length
    matrix[0, 2] = width / 2.0
    matrix[1, 2] = height / 2.0
    return matrix


def zero_distortion() -> np.ndarray:
    return np.zeros(5, dtype=np.float64)
