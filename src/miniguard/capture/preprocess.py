"""
Frame Preprocessor
==================

Converts raw camera frames into comparison-ready form.

Design Rules:
    - This is the ONLY place in the codebase that converts colour space
    - Output is grayscale + Gaussian blur, same width and height as input
    - Never mutates the input array; every output owns a fresh array
    - Fails fast on empty frames or bad kernel sizes
"""

import logging

import cv2
import numpy as np

from miniguard.capture.frame import Frame, is_valid_image


logger = logging.getLogger(__name__)


class FrameProcessError(Exception):
    """Raised when a frame cannot be preprocessed."""
    pass


def preprocess(frame: Frame, kernel_size: int = 21) -> Frame:
    """
    Convert a raw frame to a blurred grayscale frame.

    Blurring suppresses sensor noise so that single flickering pixels
    do not register as motion.

    Args:
        frame: Raw BGR frame (an already grayscale frame is accepted)
        kernel_size: Gaussian kernel side length, odd and positive

    Returns:
        New Frame with a (H, W) uint8 image, same frame_id and timestamp

    Raises:
        FrameProcessError: If the frame is empty or cannot be converted
    """
    if kernel_size <= 0 or kernel_size % 2 == 0:
        raise FrameProcessError(
            f"Blur kernel size must be odd and positive, got {kernel_size}"
        )

    image = frame.image
    if not is_valid_image(image):
        raise FrameProcessError(f"Frame {frame.frame_id} is empty")

    if image.ndim == 2:
        gray = image.copy()
    elif image.ndim == 3 and image.shape[2] == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    elif image.ndim == 3 and image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    else:
        raise FrameProcessError(
            f"Unsupported image shape for frame {frame.frame_id}: {image.shape}"
        )

    if gray.dtype != np.uint8:
        raise FrameProcessError(
            f"Invalid dtype for frame {frame.frame_id}: {gray.dtype}"
        )

    blurred = cv2.GaussianBlur(gray, (kernel_size, kernel_size), 0)

    return Frame(
        image=blurred,
        frame_id=frame.frame_id,
        timestamp=frame.timestamp,
    )


class Preprocessor:
    """
    Preprocessor bound to a fixed blur kernel.

    Attributes:
        kernel_size: Gaussian kernel side length
    """

    def __init__(self, kernel_size: int = 21) -> None:
        if kernel_size <= 0 or kernel_size % 2 == 0:
            raise FrameProcessError(
                f"Blur kernel size must be odd and positive, got {kernel_size}"
            )
        self.kernel_size = kernel_size
        logger.debug(f"Preprocessor initialized: kernel={kernel_size}x{kernel_size}")

    def __call__(self, frame: Frame) -> Frame:
        return preprocess(frame, self.kernel_size)
