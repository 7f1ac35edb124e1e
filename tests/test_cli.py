"""
Tests for the CLI argument handling in main.py.
"""

import pytest

from main import apply_cli_overrides, parse_args
from palm_detector.config import AppConfig


def test_no_arguments_keep_config():
    """Without flags the loaded config is returned unchanged."""
    config = AppConfig()
    assert apply_cli_overrides(config, parse_args([])) == config


def test_cli_overrides():
    """Flags replace the matching config fields."""
    args = parse_args([
        "--source", "clip.mp4",
        "--score", "0.8",
        "--iou", "0.4",
        "--max-results", "2",
        "--backend", "cuda",
        "--output-mode", "save_json,save_csv",
    ])

    config = apply_cli_overrides(AppConfig(), args)

    assert config.input.source == "clip.mp4"
    assert config.detection.score_threshold == 0.8
    assert config.detection.iou_threshold == 0.4
    assert config.detection.max_results == 2
    assert config.model.backend == "cuda"
    assert config.output.mode == "save_json,save_csv"


def test_cli_overrides_are_validated():
    """Invalid flag values fail like invalid config values."""
    with pytest.raises(ValueError, match="iou_threshold"):
        apply_cli_overrides(AppConfig(), parse_args(["--iou", "2.0"]))


def test_main_fails_without_model(tmp_path):
    """A missing model file makes main() return a non-zero code."""
    from main import main

    assert main(["--model", str(tmp_path / "missing.onnx"), "--source", str(tmp_path)]) == 1
