"""
Visualization for the palm detection pipeline.

Responsibility:
    Draw bounding boxes, landmark circles, and optional score labels
    onto a frame. This is a pure rendering module — it produces an
    annotated copy of the frame and performs no I/O.

Non-goals:
    - No file writing or detection logic.
    - Window management is limited to show_frame().
"""

from typing import List

import cv2
import numpy as np

from palm_detector.config import VisualizationConfig
from palm_detector.detection import Detection

# Hard-coded rendering constants (cosmetic internals, not user-facing)
_FONT = cv2.FONT_HERSHEY_SIMPLEX
_FONT_SCALE = 0.5
_FONT_THICKNESS = 1
_LABEL_PADDING = 4
_WINDOW_NAME = "Palm Detection"


def draw_detections(
    frame: np.ndarray,
    detections: List[Detection],
    config: VisualizationConfig,
) -> np.ndarray:
    """Draw boxes, landmarks, and score labels onto a frame.

    Args:
        frame: Input BGR image (not modified — a copy is returned).
        detections: List of Detection objects in frame coordinates.
        config: Visualization parameters (colors, thickness, labels).

    Returns:
        A new BGR numpy array with detections drawn. The original
        frame is not modified.
    """
    annotated = frame.copy()

    for det in detections:
        x1, y1 = int(det.bbox.x), int(det.bbox.y)
        # Keep at least a 1px box so degenerate detections stay visible
        x2 = x1 + max(1, int(det.bbox.w))
        y2 = y1 + max(1, int(det.bbox.h))

        # Bounding box
        cv2.rectangle(
            annotated,
            (x1, y1),
            (x2, y2),
            color=config.box_color,
            thickness=config.thickness,
        )

        # Landmarks
        for px, py in det.landmarks:
            cv2.circle(
                annotated,
                (int(px), int(py)),
                config.landmark_radius,
                color=config.landmark_color,
                thickness=config.thickness,
            )

        # Score label
        if config.show_score:
            label = f"Score: {det.score:.2f}"
            (text_w, text_h), baseline = cv2.getTextSize(
                label, _FONT, _FONT_SCALE, _FONT_THICKNESS
            )

            # Label background (above the box, or below if too close to top)
            label_y = y1 - _LABEL_PADDING
            if label_y - text_h - _LABEL_PADDING < 0:
                label_y = y2 + text_h + _LABEL_PADDING

            cv2.rectangle(
                annotated,
                (x1, label_y - text_h - _LABEL_PADDING),
                (x1 + text_w + _LABEL_PADDING, label_y + _LABEL_PADDING),
                color=config.box_color,
                thickness=cv2.FILLED,
            )

            cv2.putText(
                annotated,
                label,
                (x1 + _LABEL_PADDING // 2, label_y),
                _FONT,
                _FONT_SCALE,
                (0, 0, 0),  # Black text on colored background
                _FONT_THICKNESS,
                cv2.LINE_AA,
            )

    return annotated


def show_frame(
    frame: np.ndarray,
    detections: List[Detection],
    config: VisualizationConfig,
) -> int:
    """Show annotated frame in a window and return key press.

    Returns:
        The key code (int) pressed during waitKey, or 255 if no key.
    """
    annotated = draw_detections(frame, detections, config)
    cv2.imshow(_WINDOW_NAME, annotated)
    return cv2.waitKey(1) & 0xFF
