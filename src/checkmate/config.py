"""
Configuration loading/saving.

Pure functions operating on dataclasses.
- TOML for session configuration
- OpenCV FileStorage (YAML/XML/JSON) or TOML for calibrated camera parameters
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import cv2
import numpy as np
import rtoml

from .types import BoardConfig, CameraParameters, SessionConfig


# ============================================================================
# TOML Session Configuration
# ============================================================================


def load_session_config(path: Path) -> SessionConfig:
    """
    Load session configuration from TOML file.

    Missing keys fall back to the SessionConfig defaults.

    Args:
        path: Path to config.toml file

    Returns:
        SessionConfig dataclass
    """
    data = rtoml.load(Path(path))
    defaults = SessionConfig()
    default_board = defaults.board

    board_data = data.get("board", {})
    board = BoardConfig(
        corners_x=board_data.get("corners_x", default_board.corners_x),
        corners_y=board_data.get("corners_y", default_board.corners_y),
        square_size=float(board_data.get("square_size", default_board.square_size)),
    )

    thresholds = data.get("thresholds", {})
    session = data.get("session", {})

    return SessionConfig(
        board=board,
        required_frames=session.get("required_frames", defaults.required_frames),
        max_candidate_error=float(
            thresholds.get("max_candidate_error", defaults.max_candidate_error)
        ),
        max_calibration_error=float(
            thresholds.get("max_calibration_error", defaults.max_calibration_error)
        ),
        brightness_margin=float(
            thresholds.get("brightness_margin", defaults.brightness_margin)
        ),
        default_focal_length=float(
            thresholds.get("default_focal_length", defaults.default_focal_length)
        ),
        blur_threshold=float(thresholds.get("blur", defaults.blur_threshold)),
        blur_threshold_camera=float(
            thresholds.get("blur_camera", defaults.blur_threshold_camera)
        ),
        pause_ms=session.get("pause_ms", defaults.pause_ms),
        window_name=session.get("window_name", defaults.window_name),
        frames_dir=session.get("frames_dir", defaults.frames_dir),
    )


def save_session_config(config: SessionConfig, path: Path) -> None:
    """
    Save session configuration to TOML file.

    Args:
        config: SessionConfig dataclass
        path: Path to save config.toml
    """
    data = {
        "board": {
            "corners_x": config.board.corners_x,
            "corners_y": config.board.corners_y,
            "square_size": config.board.square_size,
        },
        "thresholds": {
            "max_candidate_error": config.max_candidate_error,
            "max_calibration_error": config.max_calibration_error,
            "brightness_margin": config.brightness_margin,
            "default_focal_length": config.default_focal_length,
            "blur": config.blur_threshold,
            "blur_camera": config.blur_threshold_camera,
        },
        "session": {
            "required_frames": config.required_frames,
            "pause_ms": config.pause_ms,
            "window_name": config.window_name,
            "frames_dir": config.frames_dir,
        },
    }

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        rtoml.dump(data, f)


def create_default_session_config(board: BoardConfig | None = None) -> SessionConfig:
    """
    Create a default session configuration.

    Args:
        board: Optional board description (7x7 inner corners if None)

    Returns:
        SessionConfig with the defaults of a regular chessboard
    """
    return SessionConfig(board=board or BoardConfig())


# ============================================================================
# Camera Parameters
# ============================================================================


def save_camera_parameters(params: CameraParameters, path: Path) -> None:
    """
    Write cameraMatrix and distCoeffs to a parameter file.

    .toml goes through rtoml, every other suffix through cv2.FileStorage.

    Args:
        params: CameraParameters from a successful calibration
        path: Output path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    matrix = np.asarray(params.matrix, dtype=np.float64).reshape(3, 3)
    distortion = np.asarray(params.distortion, dtype=np.float64).reshape(-1, 1)

    if path.suffix == ".toml":
        data = {
            "cameraMatrix": matrix.tolist(),
            "distCoeffs": distortion.ravel().tolist(),
            "error": params.error,
        }
        with open(path, "w") as f:
            rtoml.dump(data, f)
        return

    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_WRITE)
    try:
        fs.write("cameraMatrix", matrix)
        fs.write("distCoeffs", distortion)
        fs.write("error", float(params.error))
    finally:
        fs.release()


def load_camera_parameters(path: Path) -> CameraParameters | None:
    """
    Read a parameter file written by save_camera_parameters.

    Args:
        path: Parameter file path

    Returns:
        CameraParameters, or None if the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        return None

    if path.suffix == ".toml":
        data = rtoml.load(path)
        return CameraParameters(
            matrix=np.array(data["cameraMatrix"], dtype=np.float64),
            distortion=np.array(data["distCoeffs"], dtype=np.float64),
            error=float(data.get("error", 0.0)),
        )

    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_READ)
    try:
        matrix = fs.getNode("cameraMatrix").mat()
        distortion = fs.getNode("distCoeffs").mat()
        error_node = fs.getNode("error")
        error = 0.0 if error_node.empty() else float(error_node.real())
    finally:
        fs.release()

    if matrix is None or distortion is None:
        raise ValueError(f"{path} does not contain cameraMatrix and distCoeffs")

    return CameraParameters(
        matrix=np.asarray(matrix, dtype=np.float64),
        distortion=np.asarray(distortion, dtype=np.float64).ravel(),
        error=error,
    )


def filename_timestamp(prefix: str, ext: str) -> str:
    """prefix_YYYYMMDD_HHMMSS.ext using local time."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.{ext}"
