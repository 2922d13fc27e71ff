"""
Frame sources: live camera or a directory of still images.

Usage:
    with SequenceSource("res/frames") as source:
        while (frame := source.next_frame()) is not None:
            ...
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from pathlib import Path

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """
    Base class for frame sources.
    """

    @abstractmethod
    def is_opened(self) -> bool:
        ...

    @abstractmethod
    def next_frame(self) -> np.ndarray | None:
        """Next BGR frame, or None when the source is exhausted or fails."""

    @property
    @abstractmethod
    def frame_size(self) -> tuple[int, int]:
        """(width, height) of the frames."""

    @property
    @abstractmethod
    def frame_count(self) -> int:
        """Number of frames, -1 for unbounded sources."""

    @property
    def is_live(self) -> bool:
        return False

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def _open_capture(device_id: int) -> cv2.VideoCapture:
    if sys.platform == "win32":
        return cv2.VideoCapture(device_id, cv2.CAP_DSHOW)
    return cv2.VideoCapture(device_id)


class CameraSource(FrameSource):
    """
    Live capture device.
    """

    def __init__(self, device_id: int = 0):
        self.device_id = device_id
        self.cap = _open_capture(device_id)
        self._frame_size = (0, 0)

        if self.cap.isOpened():
            self._frame_size = (
                int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            )

    def is_opened(self) -> bool:
        return self.cap.isOpened()

    def next_frame(self) -> np.ndarray | None:
        if not self.cap.isOpened():
            return None
        ret, frame = self.cap.read()
        if not ret or frame is None or frame.size == 0:
            return None
        return frame

    @property
    def frame_size(self) -> tuple[int, int]:
        return self._frame_size

    @property
    def frame_count(self) -> int:
        return -1

    @property
    def is_live(self) -> bool:
        return True

    def close(self) -> None:
        if self.cap.isOpened():
            self.cap.release()


class SequenceSource(FrameSource):
    """
    Still images from a directory, in sorted filename order.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.filenames: list[Path] = []
        self.current_index = 0
        self._frame_size = (0, 0)

        if self.directory.is_dir():
            self.filenames = sorted(p for p in self.directory.iterdir() if p.is_file())

        for path in self.filenames:
            img = cv2.imread(str(path))
            if img is not None:
                self._frame_size = (img.shape[1], img.shape[0])
                break

    def is_opened(self) -> bool:
        return bool(self.filenames)

    def next_frame(self) -> np.ndarray | None:
        """Next readable image; files that fail to decode are skipped."""
        while self.current_index < len(self.filenames):
            path = self.filenames[self.current_index]
            self.current_index += 1
            img = cv2.imread(str(path))
            if img is not None:
                return img
            logger.warning("Skipping unreadable file %s", path.name)
        return None

    @property
    def frame_size(self) -> tuple[int, int]:
        return self._frame_size

    @property
    def frame_count(self) -> int:
        return len(self.filenames)


def enumerate_cameras(max_devices: int = 10) -> list[tuple[int, str]]:
    """
    Probe capture devices 0..max_devices-1.

    Returns:
        List of (device_id, display_name) for devices that open
    """
    found = []
    for device_id in range(max_devices):
        cap = _open_capture(device_id)
        if cap.isOpened():
            found.append((device_id, f"Device {device_id}"))
        cap.release()
    return found
