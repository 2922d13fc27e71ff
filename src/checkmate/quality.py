"""
Frame quality gate.
"""

from __future__ import annotations

import cv2
import numpy as np


BLUR_THRESHOLD = 100.0
BLUR_THRESHOLD_CAMERA = 70.0


def laplacian_variance(gray: np.ndarray) -> float:
    """Variance of the Laplacian, a sharpness measure."""
    lap = cv2.Laplacian(gray, cv2.CV_64F)
    return float(lap.var())


def is_blurred(
    gray: np.ndarray,
    use_camera: bool = False,
    threshold: float | None = None,
) -> bool:
    """
    True if the image is too blurred to detect corners reliably.

    Live camera input uses a lower threshold unless one is given.
    """
    if threshold is None:
        threshold = BLUR_THRESHOLD_CAMERA if use_camera else BLUR_THRESHOLD
    return laplacian_variance(gray) < threshold
