"""
Capture Module
==============

Camera acquisition and frame preprocessing.

This module provides the input side of Mini-Guard:
    - Frame: Typed frame data model
    - FrameSource / CameraSource: Camera abstraction (OpenCV VideoCapture)
    - Preprocessor: Grayscale + Gaussian blur

Example:
    from miniguard.capture import CameraSource, Preprocessor

    preprocessor = Preprocessor(kernel_size=21)
    with CameraSource(device=0) as camera:
        frame = camera.read()
        if frame is not None:
            processed = preprocessor(frame)
"""

from miniguard.capture.frame import Frame, is_valid_image
from miniguard.capture.preprocess import FrameProcessError, Preprocessor, preprocess
from miniguard.capture.source import CameraOpenError, CameraSource, FrameSource


__all__ = [
    "Frame",
    "is_valid_image",
    "FrameProcessError",
    "Preprocessor",
    "preprocess",
    "CameraOpenError",
    "CameraSource",
    "FrameSource",
]
