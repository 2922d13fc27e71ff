"""
Overlay drawing for pose verification.

All functions draw in place on a BGR image. Points are given in board
model coordinates and projected with the supplied pose and intrinsics.
"""

from __future__ import annotations

import cv2
import numpy as np

from .types import BoardConfig


# Sizes in squares, scaled by the board's square size when drawn
CUBE_SCALE = 1.0
AXIS_LENGTH = 4.0

# BGR colors
RED = (0, 0, 255)
GREEN = (0, 255, 0)
BLUE = (255, 0, 0)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
YELLOW = (0, 255, 255)
ORANGE = (0, 165, 255)
CYAN = (255, 255, 0)

# Cube edges as index pairs into the 8 cube corners
CUBE_EDGES = [
    (0, 1), (1, 4), (4, 2), (2, 0),  # bottom face
    (3, 5), (5, 7), (7, 6), (6, 3),  # top face
    (0, 3), (1, 5), (2, 6), (4, 7),  # verticals
]


def outer_corner_offset(square_size: float) -> np.ndarray:
    """Model position of the board's outer A1 corner."""
    return np.array([-square_size, -square_size, 0.0], dtype=np.float64)


def _project(
    points: np.ndarray,
    camera_matrix: np.ndarray,
    dist_coeffs: np.ndarray,
    rvec: np.ndarray,
    tvec: np.ndarray,
) -> list[tuple[int, int]]:
    projected, _ = cv2.projectPoints(
        np.asarray(points, dtype=np.float64).reshape(-1, 3),
        rvec,
        tvec,
        camera_matrix,
        dist_coeffs,
    )
    return [(int(round(x)), int(round(y))) for x, y in projected.reshape(-1, 2)]


def draw_axes(
    image: np.ndarray,
    camera_matrix: np.ndarray,
    dist_coeffs: np.ndarray,
    rvec: np.ndarray,
    tvec: np.ndarray,
    offset: np.ndarray,
    square_size: float = 1.0,
) -> None:
    """
    Draw the model axes at offset: Y red, X green, Z blue.

    Z is drawn along -Z, which points out of the board towards the camera.
    """
    length = AXIS_LENGTH * square_size
    axes = np.array([
        [0.0, 0.0, 0.0],
        [0.0, length, 0.0],
        [length, 0.0, 0.0],
        [0.0, 0.0, -length],
    ]) + offset
    proj = _project(axes, camera_matrix, dist_coeffs, rvec, tvec)

    cv2.line(image, proj[0], proj[1], RED, 2)
    cv2.line(image, proj[0], proj[2], GREEN, 2)
    cv2.line(image, proj[0], proj[3], BLUE, 2)


def draw_cube(
    image: np.ndarray,
    camera_matrix: np.ndarray,
    dist_coeffs: np.ndarray,
    rvec: np.ndarray,
    tvec: np.ndarray,
    base: np.ndarray,
    color: tuple[int, int, int] = WHITE,
    square_size: float = 1.0,
) -> None:
    """Draw a one-square wireframe cube standing on the board at base."""
    s = CUBE_SCALE * square_size
    corners = np.array([
        [0, 0, 0],
        [0, s, 0],
        [s, 0, 0],
        [0, 0, -s],
        [s, s, 0],
        [0, s, -s],
        [s, 0, -s],
        [s, s, -s],
    ], dtype=np.float64) + np.asarray(base, dtype=np.float64)
    proj = _project(corners, camera_matrix, dist_coeffs, rvec, tvec)

    for i, j in CUBE_EDGES:
        cv2.line(image, proj[i], proj[j], color, 2)


def draw_labels(
    image: np.ndarray,
    board: BoardConfig,
    camera_matrix: np.ndarray,
    dist_coeffs: np.ndarray,
    rvec: np.ndarray,
    tvec: np.ndarray,
    offset: np.ndarray,
) -> None:
    """
    Write rank letters (A, B, ...) and file numbers (1, 2, ...) beside
    the outer squares.

    Grid columns run along model Y and carry the letters, grid rows run
    along model X and carry the numbers.
    """
    s = board.square_size

    # One label per square: inner corners + 1
    for y in range(board.corners_x + 1):
        point = offset + np.array([-0.5 * s, (y + 0.5) * s, 0.0])
        (px, py), = _project(point, camera_matrix, dist_coeffs, rvec, tvec)
        cv2.putText(image, chr(ord("A") + y), (px, py), cv2.FONT_HERSHEY_SIMPLEX,
                    1.0, BLACK, 2, cv2.LINE_AA)

    for x in range(board.corners_y + 1):
        point = offset + np.array([(x + 0.5) * s, -0.5 * s, 0.0])
        (px, py), = _project(point, camera_matrix, dist_coeffs, rvec, tvec)
        cv2.putText(image, str(x + 1), (px, py), cv2.FONT_HERSHEY_SIMPLEX,
                    1.0, BLACK, 2, cv2.LINE_AA)


def draw_pose_overlay(
    image: np.ndarray,
    board: BoardConfig,
    camera_matrix: np.ndarray,
    dist_coeffs: np.ndarray,
    rvec: np.ndarray,
    tvec: np.ndarray,
) -> None:
    """Axes and labels anchored at the outer A1 corner."""
    offset = outer_corner_offset(board.square_size)
    draw_axes(image, camera_matrix, dist_coeffs, rvec, tvec, offset, board.square_size)
    draw_labels(image, board, camera_matrix, dist_coeffs, rvec, tvec, offset)


def draw_message(
    image: np.ndarray,
    message: str,
    position: tuple[int, int] = (30, 30),
    color: tuple[int, int, int] = RED,
    scale: float = 0.8,
) -> None:
    cv2.putText(image, message, position, cv2.FONT_HERSHEY_SIMPLEX, scale, color, 2)


def draw_frames_left(image: np.ndarray, frames_left: int) -> None:
    draw_message(image, f"Frames left: {frames_left}", (30, 60), CYAN)


def draw_final_overlay(
    image: np.ndarray,
    board: BoardConfig,
    camera_matrix: np.ndarray,
    dist_coeffs: np.ndarray,
    rvec: np.ndarray,
    tvec: np.ndarray,
) -> None:
    """
    Verification render with calibrated intrinsics.

    Axes and labels, a white cube at E1, a black cube at E8 and a red dot
    at the outer A1 corner.
    """
    s = board.square_size
    draw_pose_overlay(image, board, camera_matrix, dist_coeffs, rvec, tvec)

    e1 = np.array([-s, 3 * s, 0.0])
    # Last square of the E file
    e8 = e1 + np.array([board.corners_y * s, 0.0, 0.0])
    draw_cube(image, camera_matrix, dist_coeffs, rvec, tvec, e1, WHITE, s)
    draw_cube(image, camera_matrix, dist_coeffs, rvec, tvec, e8, BLACK, s)

    (ox, oy), = _project(outer_corner_offset(s), camera_matrix, dist_coeffs, rvec, tvec)
    cv2.circle(image, (ox, oy), 10, RED, -1)

    draw_message(image, "Chessboard base", (30, 30), WHITE, scale=1.0)
