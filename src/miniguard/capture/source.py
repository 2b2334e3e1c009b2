"""
Frame Source
============

Camera abstraction producing raw frames on demand.

This module provides:
    - FrameSource: Protocol every source implements
    - CameraSource: OpenCV VideoCapture backed implementation

Design Rules:
    - read() returns None on a failed or empty grab, never raises for it
    - open() fails fast with CameraOpenError when the device is unavailable
    - close() is idempotent; the capture handle is released exactly once
    - Sources are context managers so release happens on every exit path
"""

import logging
import time
from typing import Optional, Protocol, Tuple, Union

import cv2

from miniguard.capture.frame import Frame, is_valid_image


logger = logging.getLogger(__name__)


class CameraOpenError(Exception):
    """Raised when the camera device cannot be opened."""
    pass


class FrameSource(Protocol):
    """
    Protocol for frame sources.

    Implemented by CameraSource (production) and by in-memory fakes
    in the test suite.
    """

    def open(self) -> None:
        """Acquire the underlying device."""
        ...

    def close(self) -> None:
        """Release the underlying device."""
        ...

    def read(self) -> Optional[Frame]:
        """
        Read the next raw frame.

        Returns:
            Frame, or None if acquisition failed (transient)
        """
        ...

    def __enter__(self) -> "FrameSource":
        ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        ...


class CameraSource:
    """
    Live frame source backed by ``cv2.VideoCapture``.

    Attributes:
        device: Device index (0 = default webcam) or a device path / URL
        width: Requested frame width (None = camera default)
        height: Requested frame height (None = camera default)

    Example:
        with CameraSource(device=0) as camera:
            frame = camera.read()
    """

    def __init__(
        self,
        device: Union[int, str] = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> None:
        self.device = device
        self.width = width
        self.height = height

        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_count: int = 0
        self._start_time: float = 0.0

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    @property
    def resolution(self) -> Tuple[int, int]:
        """(width, height) reported by the driver, or the requested size."""
        if self._cap is not None:
            return (
                int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            )
        return (self.width or 0, self.height or 0)

    def open(self) -> None:
        """
        Open the camera.

        Raises:
            CameraOpenError: If the device cannot be opened
        """
        if self._cap is not None:
            return

        cap = cv2.VideoCapture(self.device)
        if not cap.isOpened():
            cap.release()
            raise CameraOpenError(
                f"Could not open webcam (device={self.device}). "
                "Check that the camera is connected and not in use by another process."
            )

        if self.width is not None:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        if self.height is not None:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        self._cap = cap
        self._frame_count = 0
        self._start_time = time.monotonic()

        actual_w, actual_h = self.resolution
        logger.info(f"Camera opened: device={self.device} {actual_w}x{actual_h}")

    def close(self) -> None:
        """Release the camera. Safe to call more than once."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info(f"Camera released (device={self.device})")

    def read(self) -> Optional[Frame]:
        if self._cap is None:
            return None

        ok, image = self._cap.read()
        if not ok or not is_valid_image(image):
            return None

        frame = Frame(
            image=image,
            frame_id=self._frame_count,
            timestamp=time.monotonic() - self._start_time,
        )
        self._frame_count += 1
        return frame

    def __enter__(self) -> "CameraSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
