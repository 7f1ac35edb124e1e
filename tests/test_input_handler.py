"""
Tests for the input handling module.
"""

import cv2
import numpy as np
import pytest

from palm_detector.input_handler import InputHandler, classify_source


def test_classify_webcam_index():
    """Digit strings and ints select a webcam."""
    assert classify_source("0") == "webcam"
    assert classify_source(1) == "webcam"


def test_classify_missing_path():
    """Unknown paths fail early."""
    with pytest.raises(FileNotFoundError):
        classify_source("no/such/file.png")


def test_classify_unknown_extension(tmp_path):
    """Files with unsupported extensions are rejected."""
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    with pytest.raises(ValueError, match="extension"):
        classify_source(str(path))


def test_directory_iteration_sorted_and_resized(tmp_path):
    """Images in a directory are read in name order and downscaled."""
    for name in ("b.png", "a.png"):
        cv2.imwrite(str(tmp_path / name), np.zeros((100, 200, 3), dtype=np.uint8))

    handler = InputHandler(str(tmp_path), resize_width=100)
    frames = list(handler)
    handler.release()

    assert handler.mode == "directory"
    assert [fid for fid, _ in frames] == [0, 1]
    assert all(frame.shape == (50, 100, 3) for _, frame in frames)


def test_empty_directory(tmp_path):
    """A directory without images is an error."""
    with pytest.raises(ValueError, match="No image files"):
        InputHandler(str(tmp_path))
