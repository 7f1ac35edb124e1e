"""
Fixed tensor layout of the palm detection model.

Responsibility:
    Hold every constant that describes the network's input resolution,
    output tensor shapes, and anchor grid geometry in one place, so the
    anchor-order/tensor-layout contract can be audited and tested.

Non-goals:
    - Not user-configurable. These values are a property of the model
      file, not of the application, and are deliberately kept out of
      config.py.

Hard-coded:
    - Input: (1, 192, 192, 3) float32 RGB in [0, 1].
    - Outputs: regressors (1, 2016, 18), scores (1, 2016, 1).
    - Anchor sub-grids (rows, repeats, cell_width): (24, 2, 8) then (12, 6, 16).
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ModelLayout:
    """Tensor layout of a single-shot anchor-based palm detector.

    Attributes:
        input_size: Side length (pixels) of the square network input.
        num_anchors: Number of anchors, i.e. rows in each output tensor.
        regressor_width: Values per regressor row (4 box + 2 * landmarks).
        num_landmarks: Number of (x, y) landmark points per detection.
        score_width: Values per score row.
        grids: Anchor sub-grids as (rows, repeats, cell_width) tuples,
               in the order the network emits them.
    """

    input_size: int = 192
    num_anchors: int = 2016
    regressor_width: int = 18
    num_landmarks: int = 7
    score_width: int = 1
    grids: Tuple[Tuple[int, int, int], ...] = ((24, 2, 8), (12, 6, 16))

    @property
    def half_size(self) -> float:
        """Offset between center-relative and top-left-relative model space."""
        return self.input_size / 2.0

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return (1, self.input_size, self.input_size, 3)

    @property
    def regressors_shape(self) -> Tuple[int, int, int]:
        return (1, self.num_anchors, self.regressor_width)

    @property
    def scores_shape(self) -> Tuple[int, int, int]:
        return (1, self.num_anchors, self.score_width)


DEFAULT_LAYOUT = ModelLayout()
