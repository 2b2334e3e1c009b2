"""
Frame Data Model
=================

Internal frame representation for the capture pipeline.

This module defines the typed Frame class that is passed from the frame
source to the preprocessor and on to the motion detector.

Design Rules:
    - Every Frame owns its own image array (no shared buffers)
    - Raw frames are BGR (H, W, 3); processed frames are grayscale (H, W)
    - A failed acquisition is never wrapped in a Frame
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np


def is_valid_image(image: Optional[np.ndarray]) -> bool:
    """Return True if ``image`` holds at least one pixel."""
    return image is not None and image.size > 0


@dataclass(frozen=True, slots=True)
class Frame:
    """
    Single still image read from the camera.

    Frozen so that a frame handed to the detector cannot be rebound
    behind its back. The array itself is owned by this frame alone.

    Attributes:
        image: Pixel data, uint8. (H, W, 3) when raw, (H, W) when processed
        frame_id: Monotonically increasing counter from the source
        timestamp: Monotonic seconds since the source was opened
    """

    image: np.ndarray
    frame_id: int
    timestamp: float

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def channels(self) -> int:
        return 1 if self.image.ndim == 2 else int(self.image.shape[2])

    @property
    def is_processed(self) -> bool:
        """Processed frames are single-channel."""
        return self.image.ndim == 2

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixels."""
        return (
            f"Frame(frame_id={self.frame_id}, "
            f"timestamp={self.timestamp:.3f}, "
            f"shape={self.image.shape})"
        )
