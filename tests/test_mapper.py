"""
Tests for the coordinate mapper module.
"""

import pytest

from palm_detector.detection import BoundingBox, Detection
from palm_detector.mapper import image_scale, scale, shift, to_image_space


def _det():
    return Detection(
        bbox=BoundingBox(-10.0, -20.0, 20.0, 40.0),
        landmarks=tuple((float(i), float(-i)) for i in range(7)),
        score=0.9,
    )


def test_shift_returns_new_instance():
    """Shifting does not touch the original detection."""
    d = _det()
    moved = shift(d, 5.0, 7.0)
    assert moved is not d
    assert d.bbox.x == -10.0
    assert moved.bbox.x == -5.0
    assert moved.bbox.y == -13.0
    assert moved.bbox.w == 20.0
    assert moved.landmarks[3] == (8.0, 4.0)
    assert moved.score == d.score


def test_scale_applies_per_axis():
    """Box position, size, and landmarks scale by axis."""
    scaled = scale(_det(), 2.0, 0.5)
    assert scaled.bbox == BoundingBox(-20.0, -10.0, 40.0, 20.0)
    assert scaled.landmarks[2] == (4.0, -1.0)


def test_image_scale():
    """Scale factors are image size over model input size."""
    assert image_scale(640, 480) == pytest.approx((640 / 192, 480 / 192))


def test_to_image_space_shifts_then_scales():
    """Shift by half the input size happens before scaling."""
    sx, sy = image_scale(640, 480)
    mapped = to_image_space(_det(), sx, sy)
    assert mapped.bbox.x == pytest.approx((-10.0 + 96.0) * sx)
    assert mapped.bbox.y == pytest.approx((-20.0 + 96.0) * sy)
    assert mapped.bbox.w == pytest.approx(20.0 * sx)
    assert mapped.bbox.h == pytest.approx(40.0 * sy)
    assert mapped.landmarks[1] == pytest.approx(((1.0 + 96.0) * sx, (-1.0 + 96.0) * sy))


def test_unit_scale_round_trip():
    """With unit scale, removing the shift recovers centered coordinates."""
    d = _det()
    back = shift(to_image_space(d, 1.0, 1.0), -96.0, -96.0)
    assert back.bbox.x == pytest.approx(d.bbox.x)
    assert back.bbox.y == pytest.approx(d.bbox.y)
    assert back.bbox.w == pytest.approx(d.bbox.w)
    assert back.bbox.h == pytest.approx(d.bbox.h)
    for got, want in zip(back.landmarks, d.landmarks):
        assert got == pytest.approx(want)
