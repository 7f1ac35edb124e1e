"""
Anchor grid generation for the palm detector.

Responsibility:
    Produce the fixed, ordered list of anchor center offsets that pairs
    row i of the network's output tensors with anchor i.

Hard-coded:
    - Anchors carry only a center offset; the network regresses absolute
      box sizes, so anchors have no extent.
    - Within a sub-grid, `repeats` consecutive anchors share a cell and
      cells advance column first (row-major).
"""

from functools import lru_cache

import numpy as np

from palm_detector.layout import DEFAULT_LAYOUT, ModelLayout


def build_anchor_grid(layout: ModelLayout = DEFAULT_LAYOUT) -> np.ndarray:
    """Build the anchor center offsets for a model layout.

    Offsets are centered on the model input, so (0, 0) is the middle of
    the 192x192 image and spacing equals each sub-grid's cell width.

    Args:
        layout: Model layout describing the sub-grids.

    Returns:
        A read-only float32 array of shape (num_anchors, 2) holding
        (dx, dy) per anchor.

    Raises:
        ValueError: If the sub-grids do not add up to layout.num_anchors.
    """
    parts = []
    for rows, repeats, cell_width in layout.grids:
        j = np.arange(repeats * rows * rows)
        cell = j // repeats
        row = cell // rows
        col = cell % rows
        center = (rows - 1) / 2.0
        dx = cell_width * (col - center)
        dy = cell_width * (row - center)
        parts.append(np.stack([dx, dy], axis=1))

    grid = np.concatenate(parts, axis=0).astype(np.float32)

    if grid.shape[0] != layout.num_anchors:
        raise ValueError(
            f"Anchor sub-grids {layout.grids} produce {grid.shape[0]} anchors, "
            f"but the layout expects {layout.num_anchors}."
        )

    grid.setflags(write=False)
    return grid


@lru_cache(maxsize=1)
def default_anchor_grid() -> np.ndarray:
    """Return the shared anchor grid for the default palm model layout."""
    return build_anchor_grid(DEFAULT_LAYOUT)
