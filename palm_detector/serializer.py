"""
JSON and CSV export of per-frame palm detections.

Both writers take the buffered {frame_id: [Detection, ...]} mapping that
OutputHandler collects and write one complete file. Frames are written
in frame_id order. Detections keep the order the pipeline produced
(highest score first).
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Sequence, Tuple

from palm_detector.detection import Detection
from palm_detector.layout import DEFAULT_LAYOUT

logger = logging.getLogger(__name__)

DetectionsByFrame = Mapping[int, Sequence[Detection]]

_BOX_COLUMNS = ["x", "y", "w", "h", "score"]


def _in_frame_order(
    detections_by_frame: DetectionsByFrame,
) -> Iterator[Tuple[int, Sequence[Detection]]]:
    for frame_id in sorted(detections_by_frame):
        yield frame_id, detections_by_frame[frame_id]


def build_report(detections_by_frame: DetectionsByFrame) -> Dict[str, Any]:
    """JSON-ready report: a "frames" list plus frame and detection totals.

    Each frame entry is {"frame_id": int, "detections": [Detection.to_dict()]}.
    Frames without detections are still listed.
    """
    frames = [
        {"frame_id": frame_id, "detections": [d.to_dict() for d in dets]}
        for frame_id, dets in _in_frame_order(detections_by_frame)
    ]
    return {
        "frames": frames,
        "total_frames": len(frames),
        "total_detections": sum(len(f["detections"]) for f in frames),
    }


def save_json(detections_by_frame: DetectionsByFrame, output_path: str) -> None:
    """Write build_report() to output_path, creating parent directories."""
    report = build_report(detections_by_frame)

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report, indent=2), encoding="utf-8")

    logger.info(
        "JSON output saved: %s (%d frames, %d detections)",
        output_path, report["total_frames"], report["total_detections"],
    )


def csv_fieldnames(num_landmarks: int = DEFAULT_LAYOUT.num_landmarks) -> List[str]:
    """frame_id, the box and score, then lm{i}_x / lm{i}_y per landmark."""
    landmark_columns = [f"lm{i}_{axis}" for i in range(num_landmarks) for axis in "xy"]
    return ["frame_id"] + _BOX_COLUMNS + landmark_columns


def _csv_rows(detections_by_frame: DetectionsByFrame) -> Iterator[List[Any]]:
    """One flat row per detection, matching csv_fieldnames()."""
    for frame_id, dets in _in_frame_order(detections_by_frame):
        for det in dets:
            record = det.to_dict()
            row = [frame_id] + [record[column] for column in _BOX_COLUMNS]
            for px, py in record["landmarks"]:
                row += [px, py]
            yield row


def save_csv(detections_by_frame: DetectionsByFrame, output_path: str) -> None:
    """Write one CSV row per detection, creating parent directories.

    Raises:
        OSError: If the output path is not writable.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(csv_fieldnames())
        for row in _csv_rows(detections_by_frame):
            writer.writerow(row)
            count += 1

    logger.info("CSV output saved: %s (%d rows)", output_path, count)
