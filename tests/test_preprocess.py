"""
Preprocessor Tests
==================
"""

import numpy as np
import pytest

from miniguard.capture.frame import Frame, is_valid_image
from miniguard.capture.preprocess import FrameProcessError, Preprocessor, preprocess


class TestPreprocess:
    """Tests for grayscale + blur conversion."""

    def test_output_is_single_channel_same_size(self, white_rect_image):
        raw = Frame(image=white_rect_image, frame_id=3, timestamp=1.5)

        processed = preprocess(raw)

        assert processed.is_processed
        assert processed.image.shape == (480, 640)
        assert processed.image.dtype == np.uint8
        assert processed.frame_id == 3
        assert processed.timestamp == 1.5

    def test_input_not_mutated(self, white_rect_image):
        original = white_rect_image.copy()
        raw = Frame(image=white_rect_image, frame_id=0, timestamp=0.0)

        preprocess(raw)

        assert np.array_equal(raw.image, original)

    def test_grayscale_input_is_copied(self):
        gray = np.full((100, 100), 77, dtype=np.uint8)
        processed = preprocess(Frame(image=gray, frame_id=0, timestamp=0.0))

        assert processed.image is not gray
        assert not np.shares_memory(processed.image, gray)

    def test_deterministic(self, white_rect_image):
        raw = Frame(image=white_rect_image, frame_id=0, timestamp=0.0)
        assert np.array_equal(preprocess(raw).image, preprocess(raw).image)

    def test_blur_spreads_edges(self, white_rect_image):
        """Pixels just outside the rectangle pick up intensity from the blur."""
        processed = preprocess(Frame(image=white_rect_image, frame_id=0, timestamp=0.0))
        assert processed.image[139, 320] > 0
        assert processed.image[240, 320] >= 254

    @pytest.mark.parametrize("kernel_size", [0, -3, 4, 20])
    def test_bad_kernel_rejected(self, black_image, kernel_size):
        with pytest.raises(FrameProcessError):
            preprocess(Frame(image=black_image, frame_id=0, timestamp=0.0), kernel_size)

    def test_empty_frame_rejected(self):
        empty = np.empty((0, 0, 3), dtype=np.uint8)
        with pytest.raises(FrameProcessError):
            preprocess(Frame(image=empty, frame_id=0, timestamp=0.0))

    def test_preprocessor_binds_kernel(self, black_image):
        preprocessor = Preprocessor(kernel_size=5)
        processed = preprocessor(Frame(image=black_image, frame_id=0, timestamp=0.0))
        assert preprocessor.kernel_size == 5
        assert processed.image.shape == (480, 640)

    def test_preprocessor_rejects_even_kernel(self):
        with pytest.raises(FrameProcessError):
            Preprocessor(kernel_size=8)


class TestFrame:
    """Tests for the Frame model helpers."""

    def test_dimensions(self, black_image):
        frame = Frame(image=black_image, frame_id=0, timestamp=0.0)
        assert (frame.width, frame.height, frame.channels) == (640, 480, 3)
        assert not frame.is_processed

    def test_validity(self):
        assert is_valid_image(np.zeros((2, 2), dtype=np.uint8))
        assert not is_valid_image(None)
        assert not is_valid_image(np.empty((0, 0), dtype=np.uint8))
