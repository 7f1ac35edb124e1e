"""
Tests for the output handling module.
"""

import json

import numpy as np

from palm_detector.config import AppConfig, OutputConfig
from palm_detector.detection import BoundingBox, Detection
from palm_detector.output_handler import OutputHandler


def _det():
    return Detection(BoundingBox(10.0, 10.0, 20.0, 20.0), ((15.0, 15.0),) * 7, 0.9)


def test_file_sinks(tmp_path):
    """Image, JSON, and CSV sinks write their files."""
    config = AppConfig(output=OutputConfig(
        mode="save_image,save_json,save_csv",
        save_path=str(tmp_path / "out"),
    ))
    handler = OutputHandler(config)
    frame = np.zeros((64, 64, 3), dtype=np.uint8)

    assert handler.process_frame(0, frame, [_det()]) is True
    assert handler.process_frame(1, frame, []) is True
    handler.finalize()

    out = tmp_path / "out"
    assert (out / "frame_000000.jpg").is_file()
    assert (out / "frame_000001.jpg").is_file()
    assert (out / "detections.csv").is_file()
    payload = json.loads((out / "detections.json").read_text(encoding="utf-8"))
    assert payload["total_frames"] == 2
    assert payload["total_detections"] == 1
