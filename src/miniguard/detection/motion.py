"""
Motion Detection
================

Frame-differencing motion detector.

The detector compares two processed (grayscale, blurred) frames:

    diff  = |previous - current|            per pixel
    mask  = 255 where diff > cutoff else 0  binary threshold
    score = count_nonzero(mask)             changed pixels

Motion is flagged when ``score > threshold_px``.

Key Design Decisions:
    - detect() is a pure function of its two inputs; the caller owns
      the rolling baseline
    - The threshold is an absolute pixel count, not a percentage. The
      same physical motion lights up proportionally more pixels at a
      higher camera resolution, so the default (5000 px) is tuned for
      roughly 640x480 and must be retuned for other resolutions.
      threshold_fraction() helps with that.
    - The caller validates frames; an empty frame never reaches here
"""

import logging
from dataclasses import dataclass
from typing import Union

import cv2
import numpy as np

from miniguard.capture.frame import Frame


logger = logging.getLogger(__name__)

DEFAULT_SENSITIVITY_CUTOFF = 25
DEFAULT_THRESHOLD_PX = 5000

ImageLike = Union[Frame, np.ndarray]


class MotionDetectionError(Exception):
    """Raised when detector parameters or inputs are invalid."""
    pass


@dataclass(frozen=True, slots=True)
class MotionResult:
    """
    Outcome of one comparison cycle.

    Attributes:
        score: Number of changed pixels in the difference mask
        threshold_px: Threshold the score was compared against
        motion: True if score > threshold_px
    """

    score: int
    threshold_px: int
    motion: bool


def _as_image(value: ImageLike) -> np.ndarray:
    image = value.image if isinstance(value, Frame) else value
    if image.ndim != 2:
        raise MotionDetectionError(
            f"Expected a single-channel processed frame, got shape {image.shape}"
        )
    return image


class MotionDetector:
    """
    Inter-frame difference motion detector.

    Attributes:
        sensitivity_cutoff: Per-pixel intensity difference (0-255 scale)
            a pixel must exceed to count as changed
        threshold_px: Changed-pixel count that must be exceeded to
            flag motion
    """

    def __init__(
        self,
        sensitivity_cutoff: int = DEFAULT_SENSITIVITY_CUTOFF,
        threshold_px: int = DEFAULT_THRESHOLD_PX,
    ) -> None:
        """
        Initialize motion detector.

        Raises:
            MotionDetectionError: If parameters are out of range
        """
        errors = []
        if not 0 <= sensitivity_cutoff < 255:
            errors.append(
                f"sensitivity_cutoff must be in [0, 255), got {sensitivity_cutoff}"
            )
        if threshold_px < 0:
            errors.append(f"threshold_px must be >= 0, got {threshold_px}")
        if errors:
            raise MotionDetectionError(
                "Motion detector validation failed:\n" + "\n".join(errors)
            )

        self.sensitivity_cutoff = sensitivity_cutoff
        self.threshold_px = threshold_px

        logger.info(
            f"MotionDetector initialized: cutoff={sensitivity_cutoff}, "
            f"threshold={threshold_px}px"
        )

    def difference_mask(self, previous: ImageLike, current: ImageLike) -> np.ndarray:
        """
        Compute the binary difference mask of two processed frames.

        Returns:
            uint8 array, same shape as the inputs, values in {0, 255}

        Raises:
            MotionDetectionError: If the frames differ in shape
        """
        prev_img = _as_image(previous)
        curr_img = _as_image(current)
        if prev_img.shape != curr_img.shape:
            raise MotionDetectionError(
                f"Frame shape mismatch: {prev_img.shape} vs {curr_img.shape}"
            )

        diff = cv2.absdiff(prev_img, curr_img)
        _, mask = cv2.threshold(
            diff, self.sensitivity_cutoff, 255, cv2.THRESH_BINARY
        )
        return mask

    def detect(self, previous: ImageLike, current: ImageLike) -> int:
        """
        Count pixels that changed significantly between two frames.

        Args:
            previous: Processed baseline frame
            current: Processed frame just read

        Returns:
            Motion score (number of "on" pixels in the difference mask)
        """
        mask = self.difference_mask(previous, current)
        return int(cv2.countNonZero(mask))

    def is_motion(self, score: int) -> bool:
        """Strictly-greater-than threshold decision."""
        return score > self.threshold_px

    def evaluate(self, previous: ImageLike, current: ImageLike) -> MotionResult:
        """Run detect() and the threshold decision together."""
        score = self.detect(previous, current)
        return MotionResult(
            score=score,
            threshold_px=self.threshold_px,
            motion=self.is_motion(score),
        )

    def threshold_fraction(self, width: int, height: int) -> float:
        """
        Express the pixel threshold as a fraction of the frame area.

        Returns:
            threshold_px / (width * height), or 0.0 for an unknown size
        """
        area = width * height
        if area <= 0:
            return 0.0
        return self.threshold_px / area
