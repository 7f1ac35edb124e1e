"""
Coordinate mapping from model space to image space.

Responsibility:
    Move detections out of the centered 192x192 model space into the
    pixel space of the original frame.

Hard-coded:
    - Order is shift, then scale. The model space origin is the center
      of the network input, so the shift is half the input size.
"""

from dataclasses import replace
from typing import Tuple

from palm_detector.detection import BoundingBox, Detection
from palm_detector.layout import DEFAULT_LAYOUT, ModelLayout


def shift(d: Detection, dx: float, dy: float) -> Detection:
    """Return a copy of d translated by (dx, dy)."""
    return replace(
        d,
        bbox=replace(d.bbox, x=d.bbox.x + dx, y=d.bbox.y + dy),
        landmarks=tuple((px + dx, py + dy) for px, py in d.landmarks),
    )


def scale(d: Detection, sx: float, sy: float) -> Detection:
    """Return a copy of d scaled per axis about the origin."""
    box = d.bbox
    return replace(
        d,
        bbox=BoundingBox(x=box.x * sx, y=box.y * sy, w=box.w * sx, h=box.h * sy),
        landmarks=tuple((px * sx, py * sy) for px, py in d.landmarks),
    )


def image_scale(
    image_width: int,
    image_height: int,
    layout: ModelLayout = DEFAULT_LAYOUT,
) -> Tuple[float, float]:
    """Per-axis factors from model pixels to image pixels."""
    return image_width / layout.input_size, image_height / layout.input_size


def to_image_space(
    d: Detection,
    scale_x: float,
    scale_y: float,
    layout: ModelLayout = DEFAULT_LAYOUT,
) -> Detection:
    """Map a centered model-space detection into image pixel coordinates.

    Args:
        d: Detection in centered model space.
        scale_x: image_width / input_size.
        scale_y: image_height / input_size.
        layout: Model layout providing the input size.

    Returns:
        A new Detection in original image coordinates.
    """
    offset = layout.half_size
    return scale(shift(d, offset, offset), scale_x, scale_y)
