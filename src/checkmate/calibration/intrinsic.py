"""
Intrinsic camera calibration.

SampleAccumulator collects accepted frames and runs the batch solve.
No threading - callers that add samples from several threads must
serialize add_sample themselves.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np

from ..types import CalibrationResult, CalibrationSample, CameraParameters

logger = logging.getLogger(__name__)


class CalibrationSolveError(RuntimeError):
    """The calibration solver could not produce a solution."""


class SampleAccumulator:
    """
    Ordered collection of calibration samples.

    No deduplication and no cap: the caller decides how many frames to
    collect. The last successful calibration is kept in `camera`.
    """

    def __init__(self):
        self._samples: list[CalibrationSample] = []
        self.camera: CameraParameters | None = None

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def samples(self) -> tuple[CalibrationSample, ...]:
        return tuple(self._samples)

    def add_sample(
        self,
        image_points: np.ndarray,
        object_points: np.ndarray,
    ) -> CalibrationSample:
        """
        Append one frame's correspondences.

        Args:
            image_points: (n, 2) grid in canonical A1-origin order
            object_points: (n, 3) model points in the same order

        Returns:
            The stored CalibrationSample
        """
        sample = CalibrationSample(
            image_points=np.asarray(image_points, dtype=np.float32).reshape(-1, 2).copy(),
            object_points=np.asarray(object_points, dtype=np.float32).reshape(-1, 3).copy(),
        )
        self._samples.append(sample)
        return sample

    def run_calibration(self, image_size: tuple[int, int]) -> CalibrationResult:
        """
        Calibrate from every accumulated sample.

        Args:
            image_size: (width, height) of the calibration frames

        Returns:
            CalibrationResult; unsuccessful when no samples were collected,
            in which case `camera` keeps its previous value

        Raises:
            CalibrationSolveError: If the solver fails
        """
        if not self._samples:
            logger.info("No samples collected, skipping calibration")
            return CalibrationResult(success=False, camera=self.camera, sample_count=0)

        object_points = [s.object_points for s in self._samples]
        image_points = [s.image_points for s in self._samples]
        width, height = image_size

        try:
            error, matrix, dist, rvecs, tvecs = cv2.calibrateCamera(
                object_points,
                image_points,
                (int(width), int(height)),
                None,
                None,
            )
        except cv2.error as e:
            raise CalibrationSolveError(f"Calibration failed: {e}") from e

        self.camera = CameraParameters(
            matrix=np.asarray(matrix, dtype=np.float64),
            distortion=np.asarray(dist, dtype=np.float64).ravel()[:5],
            error=float(error),
        )
        logger.info(
            "Calibrated from %d samples, RMS reprojection error %.4f",
            len(self._samples),
            error,
        )

        return CalibrationResult(
            success=True,
            camera=self.camera,
            sample_count=len(self._samples),
        )
