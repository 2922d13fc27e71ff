"""
Board orientation resolution.

The detector returns corners in raster order but cannot tell which outer
corner is the physical A1 square. These functions measure the four outer
squares and relabel a grid so a chosen corner becomes the origin.
"""

from __future__ import annotations

import numpy as np

from ..types import (
    CORNER_IDS,
    UNAVAILABLE_BRIGHTNESS,
    CornerGrid,
    OrientationCandidate,
)
from .chessboard import outer_square_centers


# Half-width of the square sampling window (5x5 pixels)
SAMPLE_RADIUS = 2


# ============================================================================
# Brightness Sampling
# ============================================================================


def mean_brightness(gray: np.ndarray, center: np.ndarray) -> float:
    """
    Mean intensity of the 5x5 window centered on a point.

    Returns UNAVAILABLE_BRIGHTNESS when the window would come within
    2 pixels of the image border.
    """
    x, y = float(center[0]), float(center[1])
    height, width = gray.shape[:2]

    if not (np.isfinite(x) and np.isfinite(y)):
        return UNAVAILABLE_BRIGHTNESS
    if x < SAMPLE_RADIUS or y < SAMPLE_RADIUS:
        return UNAVAILABLE_BRIGHTNESS
    if x > width - SAMPLE_RADIUS - 1 or y > height - SAMPLE_RADIUS - 1:
        return UNAVAILABLE_BRIGHTNESS

    x0 = int(np.rint(x - SAMPLE_RADIUS))
    y0 = int(np.rint(y - SAMPLE_RADIUS))
    size = 2 * SAMPLE_RADIUS + 1
    window = gray[y0:y0 + size, x0:x0 + size]
    return float(window.mean())


def sample_outer_corners(grid: CornerGrid, gray: np.ndarray) -> list[float]:
    """
    Brightness of the four outer squares.

    Args:
        grid: CornerGrid in its current raster labeling
        gray: Single-channel image in the same coordinate space

    Returns:
        4 values ordered by corner id, UNAVAILABLE_BRIGHTNESS where the
        square lies off-image
    """
    centers = outer_square_centers(grid)
    return [mean_brightness(gray, center) for center in centers]


def outer_candidates(grid: CornerGrid, gray: np.ndarray) -> list[OrientationCandidate]:
    """All four orientation candidates with their sampled brightness."""
    brightness = sample_outer_corners(grid, gray)
    return [
        OrientationCandidate(corner_id=corner_id, brightness=value)
        for corner_id, value in zip(CORNER_IDS, brightness)
    ]


# ============================================================================
# Candidate Selection
# ============================================================================


def best_candidate(brightness: list[float]) -> int | None:
    """
    Corner id of the darkest outer square.

    A1 is conventionally the darkest outer square. Ties go to the lowest
    index. Returns None if no square could be sampled.
    """
    best = None
    min_val = UNAVAILABLE_BRIGHTNESS
    for corner_id, value in enumerate(brightness):
        if value < min_val:
            min_val = value
            best = corner_id
    return best


def candidates_near_minimum(
    brightness: list[float],
    margin: float = 10.0,
) -> list[int]:
    """
    Corner ids whose brightness lies within margin of the darkest square.

    With every square unavailable all four ids are returned.
    """
    min_val = min(brightness) if brightness else UNAVAILABLE_BRIGHTNESS
    return [
        corner_id
        for corner_id, value in enumerate(brightness)
        if value < min_val + margin
    ]


# ============================================================================
# Reordering
# ============================================================================


def reorder(grid: CornerGrid, corner_id: int) -> CornerGrid:
    """
    Relabel a grid so that corner_id becomes row 0, col 0.

    Columns run left-to-right for the left corners (0, 2) and
    right-to-left otherwise; rows run top-to-bottom for the top corners
    (0, 1) and bottom-to-top otherwise. The result is a permutation of
    the input points.

    Args:
        grid: CornerGrid in its current labeling
        corner_id: Outer corner to use as origin, 0=TL 1=TR 2=BL 3=BR

    Returns:
        New CornerGrid, same shape
    """
    if corner_id not in CORNER_IDS:
        raise ValueError(f"corner_id must be one of {CORNER_IDS}, got {corner_id}")

    step_x = 1 if corner_id in (0, 2) else -1
    step_y = 1 if corner_id in (0, 1) else -1

    ordered = grid.as_grid()[::step_y, ::step_x].reshape(-1, 2)
    return CornerGrid(rows=grid.rows, cols=grid.cols, points=ordered.copy())
