"""
Detection data transfer objects.

This module defines BoundingBox and Detection, the value types returned
by PalmDetector.detect(). Both are frozen: coordinate transformations
(see mapper.py) build new instances instead of mutating.

Non-goals:
    - No rendering logic.
    - No file I/O.
    - No coordinate transformation methods (that belongs in mapper).
"""

from dataclasses import dataclass
from typing import Tuple

Point = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned box given by its top-left corner and size.

    Attributes:
        x: Top-left x coordinate.
        y: Top-left y coordinate.
        w: Width (>= 0).
        h: Height (>= 0).

    Coordinates are either in model space (192x192) or in image space,
    never a mix of the two.
    """

    x: float
    y: float
    w: float
    h: float

    @property
    def x2(self) -> float:
        """Bottom-right x coordinate."""
        return self.x + self.w

    @property
    def y2(self) -> float:
        """Bottom-right y coordinate."""
        return self.y + self.h

    @property
    def area(self) -> float:
        return self.w * self.h

    @property
    def center(self) -> Point:
        return (self.x + self.w / 2.0, self.y + self.h / 2.0)


@dataclass(frozen=True, slots=True)
class Detection:
    """A single detected palm.

    Attributes:
        bbox: Bounding box of the palm.
        landmarks: 7 (x, y) keypoints in the same space as bbox.
        score: Raw detector confidence; an ordering key, not a probability.
    """

    bbox: BoundingBox
    landmarks: Tuple[Point, ...]
    score: float

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {
            "x": round(self.bbox.x, 2),
            "y": round(self.bbox.y, 2),
            "w": round(self.bbox.w, 2),
            "h": round(self.bbox.h, 2),
            "score": round(self.score, 4),
            "landmarks": [[round(px, 2), round(py, 2)] for px, py in self.landmarks],
        }
