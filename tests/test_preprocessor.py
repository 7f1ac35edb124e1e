"""
Tests for the preprocessing module.
"""

import numpy as np
import pytest

from palm_detector.layout import ModelLayout
from palm_detector.preprocessor import preprocess


def test_preprocess_valid_input():
    """A webcam-sized frame becomes a (1, 192, 192, 3) float tensor."""
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    frame[:, :, 1] = 255

    tensor = preprocess(frame)

    assert isinstance(tensor, np.ndarray)
    assert tensor.shape == (1, 192, 192, 3)
    assert tensor.dtype == np.float32


def test_preprocess_normalizes_to_unit_range():
    """Pixel values are divided by 255."""
    frame = np.full((100, 100, 3), 51, dtype=np.uint8)
    tensor = preprocess(frame)
    assert tensor.min() >= 0.0
    assert tensor.max() <= 1.0
    assert tensor[0, 10, 10, 0] == pytest.approx(51 / 255)


def test_preprocess_converts_bgr_to_rgb():
    """Pure blue BGR input lands in the last RGB channel."""
    frame = np.zeros((64, 64, 3), dtype=np.uint8)
    frame[:, :, 0] = 255  # blue in BGR

    tensor = preprocess(frame)

    assert tensor[0, :, :, 2] == pytest.approx(1.0)
    assert tensor[0, :, :, 0].max() == 0.0


def test_preprocess_empty_frame():
    """Test that preprocessing rejects empty frames."""
    with pytest.raises(ValueError):
        preprocess(np.array([]))


def test_preprocess_none_frame():
    """Test that preprocessing rejects None."""
    with pytest.raises(ValueError):
        preprocess(None)


def test_preprocess_respects_layout_size():
    """The layout decides the square input size."""
    frame = np.zeros((200, 300, 3), dtype=np.uint8)
    tensor = preprocess(frame, ModelLayout(input_size=128))
    assert tensor.shape == (1, 128, 128, 3)
