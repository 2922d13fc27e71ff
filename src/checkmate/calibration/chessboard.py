"""
Chessboard detection and board model.

Pure functions - no classes, no state.
"""

from __future__ import annotations

import cv2
import numpy as np

from ..types import BoardConfig, CornerGrid


# Sub-pixel refinement settings
SUBPIX_WINDOW = (11, 11)
SUBPIX_CRITERIA = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 30, 0.1)


# ============================================================================
# Detection
# ============================================================================


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Return a single-channel view of a BGR or grayscale frame."""
    if frame.ndim == 3 and frame.shape[2] == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    return frame


def detect_grid(frame: np.ndarray, board: BoardConfig) -> CornerGrid | None:
    """
    Find the chessboard inner corners in a frame.

    Corners are refined to sub-pixel accuracy and returned in the
    detector's raster order, which carries no physical orientation.

    Args:
        frame: BGR or grayscale image
        board: BoardConfig describing the inner-corner pattern

    Returns:
        CornerGrid, or None if the pattern was not found
    """
    found, corners = cv2.findChessboardCorners(frame, board.pattern_size)
    if not found or corners is None:
        return None

    gray = to_gray(frame)
    corners = cv2.cornerSubPix(gray, corners, SUBPIX_WINDOW, (-1, -1), SUBPIX_CRITERIA)

    return CornerGrid(
        rows=board.corners_y,
        cols=board.corners_x,
        points=corners.reshape(-1, 2),
    )


# ============================================================================
# Board Model
# ============================================================================


def generate_object_points(board: BoardConfig) -> np.ndarray:
    """
    3D model points of the inner corners, row-major, Z = 0.

    Grid position (y, x) maps to (y * s, x * s, 0): the row index runs
    along model X so that files and ranks come out as on a real board.

    Args:
        board: BoardConfig

    Returns:
        (corners_y * corners_x, 3) float32 array
    """
    ys, xs = np.mgrid[0:board.corners_y, 0:board.corners_x]
    obj = np.zeros((board.corner_count, 3), dtype=np.float32)
    obj[:, 0] = ys.ravel() * board.square_size
    obj[:, 1] = xs.ravel() * board.square_size
    return obj


def grid_spacing(grid: CornerGrid) -> tuple[np.ndarray, np.ndarray]:
    """
    Average cell step along columns (dx) and rows (dy) in image space.
    """
    tl = grid.at(0, 0)
    tr = grid.at(0, grid.cols - 1)
    bl = grid.at(grid.rows - 1, 0)
    dx = (tr - tl) / (grid.cols - 1)
    dy = (bl - tl) / (grid.rows - 1)
    return dx, dy


def outer_square_centers(grid: CornerGrid) -> np.ndarray:
    """
    Centers of the four outer corner squares, half a cell beyond the
    extreme inner corners.

    Returns:
        (4, 2) array ordered top-left, top-right, bottom-left, bottom-right
    """
    dx, dy = grid_spacing(grid)
    tl = grid.at(0, 0)
    tr = grid.at(0, grid.cols - 1)
    bl = grid.at(grid.rows - 1, 0)
    br = grid.at(grid.rows - 1, grid.cols - 1)

    return np.array([
        tl - dx / 2 - dy / 2,
        tr + dx / 2 - dy / 2,
        bl - dx / 2 + dy / 2,
        br + dx / 2 + dy / 2,
    ], dtype=np.float64)
