"""
Detection Module
================

Frame-differencing motion detection.
"""

from miniguard.detection.motion import (
    DEFAULT_SENSITIVITY_CUTOFF,
    DEFAULT_THRESHOLD_PX,
    MotionDetectionError,
    MotionDetector,
    MotionResult,
)

__all__ = [
    "DEFAULT_SENSITIVITY_CUTOFF",
    "DEFAULT_THRESHOLD_PX",
    "MotionDetectionError",
    "MotionDetector",
    "MotionResult",
]
