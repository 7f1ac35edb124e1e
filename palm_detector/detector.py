"""
PalmDetector — the single public API for palm detection.

This module is the ONLY intended programmatic entry point for consumers
of the palm detection library. All other modules are internal.

Public contract:
    PalmDetector.detect(frame: np.ndarray) -> list[Detection]

Constraints:
    - Input must be a BGR numpy array (as returned by OpenCV).
    - The method is stateless per call and deterministic.
    - Thread-safety is not guaranteed (single-threaded design).

Non-goals:
    - No file reading, camera access, or I/O of any kind.
    - No visualization or output writing.
    - No tracking or temporal state.
"""

import logging
from typing import List, Optional

import numpy as np

from palm_detector.anchors import default_anchor_grid
from palm_detector.config import AppConfig, load_config
from palm_detector.decoder import split_outputs
from palm_detector.detection import Detection
from palm_detector.model_loader import load_model, run_model
from palm_detector.preprocessor import preprocess
from palm_detector.postprocessor import postprocess

logger = logging.getLogger(__name__)


class PalmDetector:
    """Palm detector using palm_detection_lite via OpenCV DNN.

    This is the single public API for the palm detection system.
    All internal modules (preprocessor, decoder, suppression, mapper,
    model_loader) are wired together here and should not be used directly.

    Usage:
        detector = PalmDetector()                   # Uses safe defaults
        detector = PalmDetector(config=my_config)   # Custom config
        detections = detector.detect(frame)         # BGR numpy array

    The constructor loads the model and builds the anchor grid once.
    Subsequent detect() calls reuse both.
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        """Initialize the detector and load the model.

        Args:
            config: Application configuration. If None, safe defaults
                    are used (no config file required).

        Raises:
            FileNotFoundError: If the model file is missing.
            RuntimeError: If the requested backend is unavailable.
            ValueError: If configuration values are invalid.
        """
        if config is None:
            config = load_config()

        self._config = config
        self._net = load_model(config.model)
        self._anchors = default_anchor_grid()

        logger.info(
            "PalmDetector initialized (backend=%s, score_threshold=%.2f, iou_threshold=%.2f)",
            config.model.backend,
            config.detection.score_threshold,
            config.detection.iou_threshold,
        )

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Detect palms in a single BGR frame.

        Args:
            frame: A BGR image as a numpy array with shape (H, W, 3)
                   and dtype uint8. This is the standard format returned
                   by cv2.imread() and cv2.VideoCapture.read().

        Returns:
            A list of Detection objects in frame pixel coordinates,
            sorted by score (descending). Empty if no palm is detected.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame has incorrect shape or is empty.
            ShapeMismatchError: If the model outputs break the tensor layout.
        """
        self._validate_frame(frame)

        # Preprocess: frame → tensor
        tensor = preprocess(frame)

        # Inference
        outputs = run_model(self._net, tensor)
        regressors, scores = split_outputs(outputs)

        # Postprocess: raw outputs → Detection list
        h, w = frame.shape[:2]
        detection_cfg = self._config.detection
        return postprocess(
            regressors,
            scores,
            image_width=w,
            image_height=h,
            score_threshold=detection_cfg.score_threshold,
            iou_threshold=detection_cfg.iou_threshold,
            max_results=detection_cfg.max_results,
            anchors=self._anchors,
            score_activation=detection_cfg.score_activation,
        )

    @property
    def config(self) -> AppConfig:
        """Return the active configuration (read-only)."""
        return self._config

    @staticmethod
    def _validate_frame(frame: np.ndarray) -> None:
        """Validate that the input frame meets the API contract.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame is empty or has wrong dimensions.
        """
        if not isinstance(frame, np.ndarray):
            raise TypeError(
                f"Expected frame to be a numpy ndarray, "
                f"got {type(frame).__name__}. "
                f"Use cv2.imread() or VideoCapture.read() to obtain frames."
            )

        if frame.size == 0:
            raise ValueError(
                "Frame is empty (zero size). "
                "Ensure the input source is providing valid frames."
            )

        if frame.ndim != 3:
            raise ValueError(
                f"Expected a 3-dimensional frame (H, W, C), "
                f"got {frame.ndim} dimensions with shape {frame.shape}. "
                f"Grayscale images must be converted to BGR first."
            )

        if frame.shape[2] != 3:
            raise ValueError(
                f"Expected 3 channels (BGR), got {frame.shape[2]} channels. "
                f"Input must be a BGR image as returned by OpenCV."
            )
