"""
Raw output decoding for the palm detection pipeline.

Responsibility:
    Validate the network's two output tensors against the fixed layout
    and combine them with the anchor grid into one candidate Detection
    per anchor, in model space.

Non-goals:
    - No thresholding, sorting, or suppression.
    - No mapping to image coordinates.

Hard-coded:
    - Regressor row layout: [cx, cy, w, h, lm0_x, lm0_y, ..., lm6_x, lm6_y].
      Centers and landmarks are offsets; w/h are absolute sizes, and
      negative sizes are clamped to 0.
    - Output order: regressors first, scores second.
"""

from typing import List, Sequence, Tuple

import numpy as np

from palm_detector.detection import BoundingBox, Detection
from palm_detector.layout import DEFAULT_LAYOUT, ModelLayout


class ShapeMismatchError(ValueError):
    """Raised when the model outputs break the fixed tensor contract.

    This is an integration error (wrong model file or export), not an
    empty frame, and must not be turned into "no detections".
    """


def validate_outputs(
    regressors: np.ndarray,
    scores: np.ndarray,
    layout: ModelLayout = DEFAULT_LAYOUT,
) -> Tuple[np.ndarray, np.ndarray]:
    """Check output shapes and return them as float32 arrays.

    Raises:
        ShapeMismatchError: If either tensor has an unexpected shape.
    """
    regressors = np.asarray(regressors, dtype=np.float32)
    scores = np.asarray(scores, dtype=np.float32)

    if regressors.shape != layout.regressors_shape:
        raise ShapeMismatchError(
            f"Expected regressors of shape {layout.regressors_shape}, "
            f"got {regressors.shape}."
        )

    if scores.shape != layout.scores_shape:
        raise ShapeMismatchError(
            f"Expected scores of shape {layout.scores_shape}, "
            f"got {scores.shape}."
        )

    return regressors, scores


def split_outputs(
    outputs: Sequence[np.ndarray],
    layout: ModelLayout = DEFAULT_LAYOUT,
) -> Tuple[np.ndarray, np.ndarray]:
    """Unpack the raw model output list into (regressors, scores).

    Raises:
        ShapeMismatchError: If there are not exactly two outputs, or they
                            are out of order or misshapen.
    """
    if len(outputs) != 2:
        raise ShapeMismatchError(
            f"Expected exactly 2 model outputs (regressors, scores), "
            f"got {len(outputs)}."
        )

    return validate_outputs(outputs[0], outputs[1], layout)


def decode(
    regressors: np.ndarray,
    scores: np.ndarray,
    anchors: np.ndarray,
    layout: ModelLayout = DEFAULT_LAYOUT,
) -> List[Detection]:
    """Decode every anchor's regression into a model-space Detection.

    Args:
        regressors: Tensor of shape (1, num_anchors, regressor_width).
        scores: Tensor of shape (1, num_anchors, 1).
        anchors: Anchor grid of shape (num_anchors, 2).
        layout: Model layout the tensors follow.

    Returns:
        num_anchors Detection objects, index-aligned with the anchors.
        Coordinates are centered on the model input (origin in the middle).

    Raises:
        ShapeMismatchError: If the tensors or anchor grid are misshapen.
    """
    regressors, scores = validate_outputs(regressors, scores, layout)

    anchors = np.asarray(anchors, dtype=np.float32)
    if anchors.shape != (layout.num_anchors, 2):
        raise ShapeMismatchError(
            f"Expected anchor grid of shape ({layout.num_anchors}, 2), "
            f"got {anchors.shape}."
        )

    reg = regressors[0]
    centers = anchors + reg[:, 0:2]
    sizes = np.maximum(reg[:, 2:4], 0.0)
    top_left = centers - sizes / 2.0

    n_lm = layout.num_landmarks
    landmarks = reg[:, 4:4 + 2 * n_lm].reshape(-1, n_lm, 2) + centers[:, None, :]

    detections: List[Detection] = []
    for i in range(layout.num_anchors):
        detections.append(Detection(
            bbox=BoundingBox(
                x=float(top_left[i, 0]),
                y=float(top_left[i, 1]),
                w=float(sizes[i, 0]),
                h=float(sizes[i, 1]),
            ),
            landmarks=tuple((float(px), float(py)) for px, py in landmarks[i]),
            score=float(scores[0, i, 0]),
        ))

    return detections
