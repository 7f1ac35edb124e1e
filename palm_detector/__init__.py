"""
Palm Detection — live palm detection with a fixed anchor-based ONNX model.

Public API:
    - PalmDetector: The single entry point for palm detection.
    - Detection: Data transfer object representing a detected palm.
    - BoundingBox: Axis-aligned box used by Detection.
    - ShapeMismatchError: Raised when model outputs break the tensor layout.

All other modules in this package are internal implementation details
and should not be imported directly by consumers.

Usage:
    from palm_detector import PalmDetector, Detection

    detector = PalmDetector()
    detections = detector.detect(frame)
"""

from palm_detector.decoder import ShapeMismatchError
from palm_detector.detection import BoundingBox, Detection
from palm_detector.detector import PalmDetector

__all__ = ["PalmDetector", "Detection", "BoundingBox", "ShapeMismatchError"]
