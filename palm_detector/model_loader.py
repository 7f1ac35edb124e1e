"""
Model loading and inference for the palm detection system.

Responsibility:
    Load the ONNX palm detection model from disk, configure the compute
    backend, and run a forward pass that returns every network output.

Non-goals:
    - No preprocessing, decoding, or frame-level logic.
    - No automatic model downloading.
    - No fallback to alternative models.

Failure behavior:
    - A missing model file raises FileNotFoundError with the exact
      missing path and expected location.
    - Incompatible backend raises RuntimeError.
"""

import logging
from pathlib import Path
from typing import List

import cv2
import numpy as np

from palm_detector.config import ModelConfig, get_project_root

logger = logging.getLogger(__name__)


def resolve_model_path(config: ModelConfig) -> Path:
    """Resolve the configured model path against the project root."""
    model_path = Path(config.model_path)
    if not model_path.is_absolute():
        model_path = get_project_root() / model_path
    return model_path


def load_model(config: ModelConfig) -> cv2.dnn.Net:
    """Load and configure the palm detection model.

    Args:
        config: ModelConfig containing the model path and backend preference.

    Returns:
        A configured cv2.dnn.Net ready for inference.

    Raises:
        FileNotFoundError: If the model file does not exist.
        RuntimeError: If the requested backend is unavailable.
    """
    model_path = resolve_model_path(config)

    if not model_path.is_file():
        raise FileNotFoundError(
            f"Palm detection model not found.\n"
            f"  Expected: {model_path}\n"
            f"  Download palm_detection_lite.onnx and place it at the path above,\n"
            f"  or update 'model.model_path' in your config."
        )

    logger.info("Loading model: %s", model_path)
    net = cv2.dnn.readNetFromONNX(str(model_path))

    # Configure backend and target
    if config.backend == "cuda":
        logger.info("Setting CUDA backend and target.")
        try:
            net.setPreferableBackend(cv2.dnn.DNN_BACKEND_CUDA)
            net.setPreferableTarget(cv2.dnn.DNN_TARGET_CUDA)
        except cv2.error as e:
            raise RuntimeError(
                f"Failed to set CUDA backend. Ensure OpenCV was built with "
                f"CUDA support (custom build).\n"
                f"  OpenCV error: {e}"
            ) from e
    else:
        logger.info("Using CPU backend.")
        net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
        net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)

    logger.info("Model loaded successfully. Outputs: %s", list(net.getUnconnectedOutLayersNames()))
    return net


def run_model(net: cv2.dnn.Net, tensor: np.ndarray) -> List[np.ndarray]:
    """Run one forward pass and return all outputs in network order."""
    net.setInput(tensor)
    outputs = net.forward(net.getUnconnectedOutLayersNames())
    return [np.asarray(o) for o in outputs]
