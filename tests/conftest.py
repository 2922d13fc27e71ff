"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import cv2
import numpy as np
import pytest


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that's cleaned up after test."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


@pytest.fixture
def board_config():
    """Regular chessboard: 7x7 inner corners, unit squares."""
    from checkmate.types import BoardConfig
    return BoardConfig(corners_x=7, corners_y=7, square_size=1.0)


@pytest.fixture
def frame_size():
    return (640, 480)


@pytest.fixture
def default_matrix(frame_size):
    """Placeholder intrinsics used for pose selection."""
    from checkmate.types import default_camera_matrix
    return default_camera_matrix(frame_size, 1000.0)


@pytest.fixture
def make_board_image():
    """
    Factory for a synthetic fronto-parallel chessboard image.

    The top-left square is dark, with a white margin around the board.
    """
    def _make(board, square_px=40, margin=40):
        rows = board.corners_y + 1
        cols = board.corners_x + 1
        height = rows * square_px + 2 * margin
        width = cols * square_px + 2 * margin
        img = np.full((height, width), 255, dtype=np.uint8)
        for r in range(rows):
            for c in range(cols):
                if (r + c) % 2 == 0:
                    y0 = margin + r * square_px
                    x0 = margin + c * square_px
                    img[y0:y0 + square_px, x0:x0 + square_px] = 0
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)

    return _make


@pytest.fixture
def board_image(make_board_image, board_config):
    return make_board_image(board_config)


@pytest.fixture
def make_warped_view(make_board_image):
    """
    Factory for a perspective view of the synthetic board.

    The board plane is centered on the model origin and imaged by a
    camera with matrix K at pose (rvec, tvec).
    """
    def _make(board, K, rvec, tvec, size=(640, 480), square_px=40, margin=40):
        flat = make_board_image(board, square_px, margin)
        h, w = flat.shape[:2]

        # Board pixel -> plane coordinates in square units
        to_plane = np.array([
            [1.0 / square_px, 0.0, -w / 2.0 / square_px],
            [0.0, 1.0 / square_px, -h / 2.0 / square_px],
            [0.0, 0.0, 1.0],
        ])
        R = cv2.Rodrigues(np.asarray(rvec, dtype=np.float64))[0]
        plane_to_image = K @ np.column_stack([R[:, 0], R[:, 1], np.asarray(tvec, dtype=np.float64)])
        H = plane_to_image @ to_plane

        return cv2.warpPerspective(
            flat, H, size, flags=cv2.INTER_LINEAR, borderValue=(255, 255, 255)
        )

    return _make


@pytest.fixture
def projected_grid(board_config, default_matrix):
    """
    CornerGrid obtained by projecting the model through a known pose
    facing the camera. Raster order equals the model order.
    """
    from checkmate.calibration.chessboard import generate_object_points
    from checkmate.types import CornerGrid

    obj = generate_object_points(board_config).astype(np.float64)
    rvec = np.array([0.2, -0.1, 0.05])
    tvec = np.array([-3.0, -3.0, 20.0])
    projected, _ = cv2.projectPoints(obj, rvec, tvec, default_matrix, np.zeros(5))

    return CornerGrid(
        rows=board_config.corners_y,
        cols=board_config.corners_x,
        points=projected.reshape(-1, 2),
    )


@pytest.fixture
def raster_grid():
    """Small 3x4 grid whose points encode their raster index."""
    from checkmate.types import CornerGrid
    points = np.array([[c, 10 * r] for r in range(3) for c in range(4)], dtype=np.float32)
    return CornerGrid(rows=3, cols=4, points=points)


@pytest.fixture
def wide_board():
    """Non-square board: 9 inner corners across, 6 down."""
    from checkmate.types import BoardConfig
    return BoardConfig(corners_x=9, corners_y=6, square_size=1.0)
