"""
Greedy non-maximum suppression over palm candidates.

Responsibility:
    Reduce the per-anchor candidates to a short, score-ordered list of
    detections that do not overlap each other beyond an IoU threshold.

Non-goals:
    - No per-class handling (the model has a single class).
    - No score re-weighting or box merging.
"""

import math
from typing import List, Optional, Sequence

import numpy as np

from palm_detector.detection import BoundingBox, Detection


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """Intersection over union of two boxes.

    Returns 0.0 when the union is empty (two zero-area boxes).
    """
    # Areas come from the same corners as the intersection so iou(a, a) == 1
    area_a = (a.x2 - a.x) * (a.y2 - a.y)
    area_b = (b.x2 - b.x) * (b.y2 - b.y)
    inter_w = max(0.0, min(a.x2, b.x2) - max(a.x, b.x))
    inter_h = max(0.0, min(a.y2, b.y2) - max(a.y, b.y))
    inter = inter_w * inter_h
    union = area_a + area_b - inter
    if union <= 0.0:
        return 0.0
    return min(1.0, inter / union)


def _iou_one_to_many(i: int, corners: np.ndarray, areas: np.ndarray) -> np.ndarray:
    """IoU of box i against every box, with zero-union pairs set to 0."""
    xx1 = np.maximum(corners[i, 0], corners[:, 0])
    yy1 = np.maximum(corners[i, 1], corners[:, 1])
    xx2 = np.minimum(corners[i, 2], corners[:, 2])
    yy2 = np.minimum(corners[i, 3], corners[:, 3])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    union = areas[i] + areas - inter
    out = np.zeros_like(union)
    np.divide(inter, union, out=out, where=union > 0.0)
    return np.minimum(out, 1.0)


def suppress(
    candidates: Sequence[Detection],
    score_threshold: float,
    iou_threshold: float,
    max_results: Optional[int] = None,
) -> List[Detection]:
    """Run greedy NMS over candidate detections.

    Candidates are visited in descending score order (ties keep their
    input order). The first candidate scoring below score_threshold ends
    the walk. Each accepted detection suppresses every remaining
    candidate whose IoU with it is >= iou_threshold.

    Args:
        candidates: Detections in a single coordinate space.
        score_threshold: Minimum score to accept a detection.
        iou_threshold: Overlap at or above which a candidate is suppressed.
        max_results: Stop after this many detections. None means no cap.

    Returns:
        Accepted detections, sorted by score (descending).

    Raises:
        ValueError: If max_results is given and less than 1.
    """
    if max_results is not None and max_results < 1:
        raise ValueError(f"max_results must be positive or None, got {max_results}.")

    if not candidates:
        return []

    scores = np.array([d.score for d in candidates], dtype=np.float64)
    corners = np.array(
        [(d.bbox.x, d.bbox.y, d.bbox.x2, d.bbox.y2) for d in candidates],
        dtype=np.float64,
    )
    areas = (corners[:, 2] - corners[:, 0]) * (corners[:, 3] - corners[:, 1])

    # NaN scores sort last and never pass the threshold
    order = np.argsort(-np.nan_to_num(scores, nan=-math.inf), kind="stable")
    alive = np.ones(len(candidates), dtype=bool)
    kept: List[Detection] = []

    for i in order:
        if not alive[i]:
            continue
        if not scores[i] >= score_threshold:
            break

        kept.append(candidates[i])
        if max_results is not None and len(kept) >= max_results:
            break

        alive &= _iou_one_to_many(i, corners, areas) < iou_threshold
        alive[i] = False

    return kept
