"""
Tests for the suppression module.
"""

import math

import numpy as np
import pytest

from palm_detector.detection import BoundingBox, Detection
from palm_detector.suppression import iou, suppress


def _det(x, y, w, h, score):
    return Detection(bbox=BoundingBox(x, y, w, h), landmarks=((x, y),) * 7, score=score)


def _random_boxes(n, seed=0):
    rng = np.random.default_rng(seed)
    xy = rng.uniform(0, 100, size=(n, 2))
    wh = rng.uniform(0, 40, size=(n, 2))
    return [BoundingBox(*xy[i], *wh[i]) for i in range(n)]


def test_iou_known_value():
    """Half-overlapping equal boxes have IoU 1/3."""
    a = BoundingBox(0, 0, 2, 2)
    b = BoundingBox(1, 0, 2, 2)
    assert iou(a, b) == pytest.approx(1 / 3)


def test_iou_identical_boxes_is_one():
    """A box with non-zero area fully overlaps itself."""
    a = BoundingBox(10, 20, 30, 40)
    assert iou(a, a) == pytest.approx(1.0)


def test_iou_disjoint_is_zero():
    """Separated boxes do not overlap."""
    assert iou(BoundingBox(0, 0, 1, 1), BoundingBox(5, 5, 1, 1)) == 0.0


def test_iou_touching_edges_is_zero():
    """Boxes sharing an edge have zero intersection."""
    assert iou(BoundingBox(0, 0, 1, 1), BoundingBox(1, 0, 1, 1)) == 0.0


def test_iou_zero_area_boxes_is_zero():
    """Zero union yields 0 instead of NaN."""
    a = BoundingBox(5, 5, 0, 0)
    result = iou(a, a)
    assert result == 0.0
    assert not math.isnan(result)


def test_iou_symmetric_and_bounded():
    """iou(a, b) == iou(b, a) and stays within [0, 1]."""
    boxes = _random_boxes(60)
    for a in boxes:
        for b in boxes:
            value = iou(a, b)
            assert value == pytest.approx(iou(b, a))
            assert 0.0 <= value <= 1.0


def test_suppress_empty_input():
    """No candidates, no detections."""
    assert suppress([], score_threshold=0.5, iou_threshold=0.3) == []


def test_suppress_orders_by_score():
    """Survivors come out highest score first."""
    candidates = [
        _det(0, 0, 10, 10, 0.7),
        _det(50, 0, 10, 10, 0.9),
        _det(100, 0, 10, 10, 0.8),
    ]
    kept = suppress(candidates, score_threshold=0.5, iou_threshold=0.3)
    assert [d.score for d in kept] == [0.9, 0.8, 0.7]


def test_suppress_drops_overlapping_lower_score():
    """The weaker of two overlapping boxes is removed."""
    strong = _det(0, 0, 30, 30, 0.9)
    weak = _det(10, 0, 30, 30, 0.85)  # IoU 0.5 with strong
    kept = suppress([weak, strong], score_threshold=0.6, iou_threshold=0.25)
    assert kept == [strong]


def test_suppress_threshold_is_inclusive():
    """IoU exactly at the threshold suppresses."""
    strong = _det(0, 0, 30, 30, 0.9)
    weak = _det(10, 0, 30, 30, 0.85)
    assert suppress([strong, weak], score_threshold=0.0, iou_threshold=0.5) == [strong]


def test_suppress_stops_below_score_threshold():
    """Candidates under the score threshold are never returned."""
    candidates = [_det(0, 0, 10, 10, 0.9), _det(50, 0, 10, 10, 0.4)]
    kept = suppress(candidates, score_threshold=0.5, iou_threshold=0.3)
    assert [d.score for d in kept] == [0.9]


def test_suppress_infinite_threshold_returns_nothing():
    """Nothing passes a +inf score threshold."""
    candidates = [_det(i * 20, 0, 10, 10, 0.99) for i in range(5)]
    assert suppress(candidates, score_threshold=math.inf, iou_threshold=0.3) == []


def test_suppress_zero_iou_threshold_keeps_one_of_cluster():
    """With iou_threshold=0 a fully overlapping cluster collapses to one."""
    candidates = [_det(0, 0, 10, 10, s) for s in (0.7, 0.9, 0.8)]
    kept = suppress(candidates, score_threshold=0.5, iou_threshold=0.0)
    assert len(kept) == 1
    assert kept[0].score == 0.9


def test_suppress_ties_keep_input_order():
    """Equal scores are visited in input order."""
    first = _det(0, 0, 10, 10, 0.8)
    second = _det(0, 0, 10, 10, 0.8)
    kept = suppress([first, second], score_threshold=0.5, iou_threshold=0.3)
    assert len(kept) == 1
    assert kept[0] is first


def test_suppress_max_results_caps_output():
    """At most max_results detections are returned."""
    candidates = [_det(i * 20, 0, 10, 10, 0.9 - i * 0.01) for i in range(6)]
    kept = suppress(candidates, score_threshold=0.5, iou_threshold=0.3, max_results=4)
    assert [d.score for d in kept] == pytest.approx([0.9, 0.89, 0.88, 0.87])


def test_suppress_ignores_nan_scores():
    """A NaN score is never accepted."""
    candidates = [_det(0, 0, 10, 10, float("nan")), _det(50, 0, 10, 10, 0.7)]
    kept = suppress(candidates, score_threshold=0.5, iou_threshold=0.3)
    assert [d.score for d in kept] == [0.7]


def test_suppress_zero_area_boxes_do_not_suppress_each_other():
    """Degenerate boxes have IoU 0 and so both survive."""
    a = _det(5, 5, 0, 0, 0.9)
    b = _det(5, 5, 0, 0, 0.8)
    assert suppress([a, b], score_threshold=0.5, iou_threshold=0.3) == [a, b]


def test_suppress_survivors_never_overlap():
    """No two returned detections reach the IoU threshold."""
    rng = np.random.default_rng(7)
    boxes = _random_boxes(300, seed=3)
    candidates = [Detection(b, ((0.0, 0.0),) * 7, float(s))
                  for b, s in zip(boxes, rng.uniform(0, 1, len(boxes)))]

    kept = suppress(candidates, score_threshold=0.2, iou_threshold=0.3)

    scores = [d.score for d in kept]
    assert scores == sorted(scores, reverse=True)
    assert all(s >= 0.2 for s in scores)
    for i, a in enumerate(kept):
        for b in kept[i + 1:]:
            assert iou(a.bbox, b.bbox) < 0.3


def test_iou_self_overlap_is_exactly_one_for_fractional_boxes():
    """Fractional coordinates still give exactly 1.0 against themselves."""
    boxes = [BoundingBox(0.1, 0.7, 0.3, 0.9)] + _random_boxes(2000, seed=5)
    for box in boxes:
        if box.w > 0 and box.h > 0:
            assert iou(box, box) == 1.0


def test_suppress_rejects_non_positive_cap():
    """A cap below one is an error, not a silent single result."""
    candidates = [_det(0, 0, 10, 10, 0.9)]
    with pytest.raises(ValueError, match="max_results"):
        suppress(candidates, score_threshold=0.5, iou_threshold=0.3, max_results=0)
    with pytest.raises(ValueError, match="max_results"):
        suppress([], score_threshold=0.5, iou_threshold=0.3, max_results=-1)


def test_suppress_cap_of_one():
    """max_results=1 returns only the best detection."""
    candidates = [_det(0, 0, 10, 10, 0.7), _det(50, 0, 10, 10, 0.9)]
    kept = suppress(candidates, score_threshold=0.5, iou_threshold=0.3, max_results=1)
    assert [d.score for d in kept] == [0.9]
