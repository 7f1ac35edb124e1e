"""
Preprocessing for the palm detection pipeline.

Responsibility:
    Convert a raw BGR frame (numpy array) into the normalized NHWC input
    tensor expected by the palm detection network.

Non-goals:
    - No frame acquisition or I/O.
    - No inference or coordinate mapping.
    - No letterboxing: the frame is stretched to a square, and the
      postprocessor undoes the stretch with per-axis scale factors.

Hard-coded:
    - Channel order is RGB (mandated by the model); input is BGR from OpenCV.
    - Pixel values are divided by 255 into [0, 1].
"""

import numpy as np
import cv2

from palm_detector.layout import DEFAULT_LAYOUT, ModelLayout


def preprocess(frame: np.ndarray, layout: ModelLayout = DEFAULT_LAYOUT) -> np.ndarray:
    """Convert a raw BGR frame into the network input tensor.

    Args:
        frame: Input image as a BGR numpy array (H, W, 3).
        layout: Model layout providing the input size.

    Returns:
        A 4D numpy array of shape (1, input_size, input_size, 3) with
        dtype float32 and values in [0, 1].

    Raises:
        ValueError: If the frame is empty.
    """
    if frame is None or frame.size == 0:
        raise ValueError(
            "Cannot preprocess an empty frame. "
            "Ensure the input source is providing valid frames."
        )

    size = layout.input_size
    resized = cv2.resize(frame, (size, size), interpolation=cv2.INTER_LINEAR)
    rgb = cv2.cvtColor(resized, cv2.COLOR_BGR2RGB)

    tensor = rgb.astype(np.float32) / 255.0
    return tensor[np.newaxis, ...]
