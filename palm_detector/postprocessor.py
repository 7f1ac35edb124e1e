"""
Postprocessing for the palm detection pipeline.

Responsibility:
    Turn the raw regressor/score tensors of one frame into the final,
    image-space list of Detection objects: validate, decode against the
    anchor grid, suppress duplicates, cap, and map to frame pixels.

Non-goals:
    - No drawing, saving, or display logic.
    - No model loading or inference.
    - No state across frames.

Hard-coded:
    - Stage order: decode -> suppress -> map. IoU is measured in model
      space.
"""

import logging
from typing import List, Optional

import numpy as np

from palm_detector.anchors import build_anchor_grid, default_anchor_grid
from palm_detector.decoder import decode, validate_outputs
from palm_detector.detection import Detection
from palm_detector.layout import DEFAULT_LAYOUT, ModelLayout
from palm_detector.mapper import image_scale, to_image_space
from palm_detector.suppression import suppress

logger = logging.getLogger(__name__)

SCORE_ACTIVATIONS = ("none", "sigmoid")


def activate_scores(scores: np.ndarray, activation: str) -> np.ndarray:
    """Apply the configured activation to raw score values.

    Raises:
        ValueError: If the activation name is unknown.
    """
    if activation == "none":
        return scores
    if activation == "sigmoid":
        # Clip keeps np.exp finite for extreme logits
        return 1.0 / (1.0 + np.exp(-np.clip(scores, -88.0, 88.0)))
    raise ValueError(
        f"Unknown score activation: '{activation}'. "
        f"Must be one of {SCORE_ACTIVATIONS}."
    )


def postprocess(
    regressors: np.ndarray,
    scores: np.ndarray,
    image_width: int,
    image_height: int,
    score_threshold: float,
    iou_threshold: float,
    max_results: Optional[int] = 4,
    anchors: Optional[np.ndarray] = None,
    layout: ModelLayout = DEFAULT_LAYOUT,
    score_activation: str = "none",
) -> List[Detection]:
    """Decode raw palm detector outputs into image-space detections.

    Args:
        regressors: Raw regressor tensor, shape (1, 2016, 18).
        scores: Raw score tensor, shape (1, 2016, 1).
        image_width: Original frame width in pixels.
        image_height: Original frame height in pixels.
        score_threshold: Minimum score to accept a detection.
        iou_threshold: Overlap at or above which duplicates are dropped.
        max_results: Maximum number of detections to return; None for all.
        anchors: Anchor grid to decode against. Defaults to the shared grid
                 for the default layout.
        layout: Model layout the tensors follow.
        score_activation: 'none' to use scores as given, 'sigmoid' for
                          models that emit logits.

    Returns:
        Detections in original image coordinates, sorted by score
        (descending). Empty list if nothing passes the threshold.

    Raises:
        ShapeMismatchError: If the tensors violate the model layout.
        ValueError: If the image dimensions are not positive, or
                    max_results is less than 1.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(
            f"Image dimensions must be positive, got {image_width}x{image_height}."
        )

    regressors, scores = validate_outputs(regressors, scores, layout)
    scores = activate_scores(scores, score_activation)

    if anchors is None:
        anchors = default_anchor_grid() if layout == DEFAULT_LAYOUT else build_anchor_grid(layout)

    candidates = decode(regressors, scores, anchors, layout)
    survivors = suppress(
        candidates,
        score_threshold=score_threshold,
        iou_threshold=iou_threshold,
        max_results=max_results,
    )

    scale_x, scale_y = image_scale(image_width, image_height, layout)
    detections = [to_image_space(d, scale_x, scale_y, layout) for d in survivors]

    logger.debug(
        "Postprocess: %d candidates -> %d detections", len(candidates), len(detections)
    )
    return detections
