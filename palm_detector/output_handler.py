"""
Output routing for the palm detection pipeline.

Responsibility:
    Send each frame's detections to the configured sinks: display
    window, annotated images, annotated video, JSON, and CSV. Several
    sinks can be active at once.

Non-goals:
    - No detection logic.
    - No input acquisition.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import cv2
import numpy as np

from palm_detector.config import AppConfig, get_project_root, parse_output_modes
from palm_detector.detection import Detection
from palm_detector.serializer import save_csv, save_json
from palm_detector.visualizer import draw_detections, show_frame

logger = logging.getLogger(__name__)

_FILE_MODES = {"save_image", "save_video", "save_json", "save_csv"}
_QUIT_KEYS = {ord("q"), 27}  # 'q' or ESC
_VIDEO_FPS = 20.0


class OutputHandler:
    """Routes per-frame detections to the configured output sinks.

    Usage:
        handler = OutputHandler(config)
        handler.process_frame(frame_id, frame, detections)
        ...
        handler.finalize()  # Flush buffered JSON/CSV and release writers
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._modes = parse_output_modes(config.output.mode)
        self._video_writer: Optional[cv2.VideoWriter] = None
        self._detections_buffer: Dict[int, List[Detection]] = {}

        save_path = Path(config.output.save_path)
        if not save_path.is_absolute():
            save_path = get_project_root() / save_path
        self._save_path = save_path

        if self._modes & _FILE_MODES:
            self._save_path.mkdir(parents=True, exist_ok=True)

        logger.info("OutputHandler initialized: modes=%s, save_path=%s",
                    sorted(self._modes), self._save_path)

    @property
    def modes(self) -> set:
        return set(self._modes)

    def process_frame(
        self,
        frame_id: int,
        frame: np.ndarray,
        detections: List[Detection],
    ) -> bool:
        """Route one frame's detections to every active sink.

        Returns:
            False if the user asked to quit from the display window,
            True otherwise.
        """
        vis = self._config.visualization
        should_continue = True

        if "display" in self._modes:
            key = show_frame(frame, detections, vis)
            if key in _QUIT_KEYS:
                logger.info("Quit signal received (key press).")
                should_continue = False

        if self._modes & {"save_image", "save_video"}:
            annotated = draw_detections(frame, detections, vis)

            if "save_image" in self._modes:
                output_file = self._save_path / f"frame_{frame_id:06d}.jpg"
                cv2.imwrite(str(output_file), annotated)
                logger.debug("Saved frame %d to %s", frame_id, output_file)

            if "save_video" in self._modes:
                self._write_video_frame(annotated)

        if self._modes & {"save_json", "save_csv"}:
            self._detections_buffer[frame_id] = list(detections)

        return should_continue

    def _write_video_frame(self, annotated: np.ndarray) -> None:
        if self._video_writer is None:
            output_file = str(self._save_path / "output.avi")
            h, w = annotated.shape[:2]
            fourcc = cv2.VideoWriter_fourcc(*"XVID")
            self._video_writer = cv2.VideoWriter(output_file, fourcc, _VIDEO_FPS, (w, h))
            logger.info("Video writer opened: %s (%dx%d)", output_file, w, h)

        self._video_writer.write(annotated)

    def finalize(self) -> None:
        """Write buffered JSON/CSV and release the video writer and windows."""
        if self._detections_buffer:
            if "save_json" in self._modes:
                save_json(self._detections_buffer, str(self._save_path / "detections.json"))
            if "save_csv" in self._modes:
                save_csv(self._detections_buffer, str(self._save_path / "detections.csv"))

        if self._video_writer is not None:
            self._video_writer.release()
            self._video_writer = None
            logger.info("Video writer released.")

        if "display" in self._modes:
            cv2.destroyAllWindows()

        self._detections_buffer.clear()
        logger.info("OutputHandler finalized.")
