"""
Settings for the palm detector.

Every setting lives in one of five frozen sections (model, detection,
input, output, visualization). Values are resolved in layers, later
layers winning:

    defaults -> YAML file -> PALM_DETECT_* environment -> CLI flags

The CLI layer is applied by main.py through validate_config().

Tensor layout constants are fixed by the model and live in layout.py,
not here.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# palm_detector/config.py -> repository root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

_ENV_PREFIX = "PALM_DETECT_"


def get_project_root() -> Path:
    """Directory that relative model, config and output paths resolve against."""
    return _PROJECT_ROOT


@dataclass(frozen=True)
class ModelConfig:
    """Which ONNX file to load and where to run it ('cpu' or 'cuda')."""

    model_path: str = "models/palm_detection_lite.onnx"
    backend: str = "cpu"


@dataclass(frozen=True)
class DetectionConfig:
    """Thresholds and result policy for the decode pipeline.

    score_threshold is compared against scores after score_activation is
    applied, so it is only a probability when the activation makes it one.
    max_results=None reports every surviving palm.
    """

    score_threshold: float = 0.6
    iou_threshold: float = 0.25
    max_results: Optional[int] = 4
    score_activation: str = "none"


@dataclass(frozen=True)
class InputConfig:
    """Frame source (device index, file or directory) and optional downscale."""

    source: str = "0"
    resize_width: Optional[int] = None


@dataclass(frozen=True)
class OutputConfig:
    """Comma-separated sink list and the directory file sinks write into."""

    mode: str = "display"
    save_path: str = "output/"


@dataclass(frozen=True)
class VisualizationConfig:
    """Drawing style. Colors are BGR."""

    box_color: Tuple[int, int, int] = (0, 255, 255)
    landmark_color: Tuple[int, int, int] = (255, 0, 255)
    landmark_radius: int = 14
    thickness: int = 2
    show_score: bool = True


@dataclass(frozen=True)
class AppConfig:
    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)


# ---------------------------------------------------------------------------
# Value casters shared by the YAML and environment layers
# ---------------------------------------------------------------------------

def _lowered(value: Any) -> str:
    return str(value).strip().lower()


def _parse_optional_int(value: Any) -> Optional[int]:
    """int, or None for null / "none" / empty."""
    if value is None or _lowered(value) in ("", "none", "null"):
        return None
    return int(value)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return _lowered(value) in ("1", "true", "yes", "on")
    return bool(value)


def _parse_color(value: Any) -> Tuple[int, int, int]:
    """Three channel values from a YAML list or a "b,g,r" string."""
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    channels = tuple(int(v) for v in value)
    if len(channels) != 3:
        raise ValueError(f"Expected 3 color channels, got {len(channels)}: {value}")
    return channels


# section name -> (dataclass, {field name -> caster})
_SCHEMA: Dict[str, Tuple[type, Dict[str, Callable[[Any], Any]]]] = {
    "model": (ModelConfig, {
        "model_path": str,
        "backend": _lowered,
    }),
    "detection": (DetectionConfig, {
        "score_threshold": float,
        "iou_threshold": float,
        "max_results": _parse_optional_int,
        "score_activation": _lowered,
    }),
    "input": (InputConfig, {
        "source": str,
        "resize_width": _parse_optional_int,
    }),
    "output": (OutputConfig, {
        "mode": _lowered,
        "save_path": str,
    }),
    "visualization": (VisualizationConfig, {
        "box_color": _parse_color,
        "landmark_color": _parse_color,
        "landmark_radius": int,
        "thickness": int,
        "show_score": _parse_bool,
    }),
}


def _env_name(section: str, key: str) -> str:
    """PALM_DETECT_<SECTION>_<KEY>, without repeating a section-prefixed key.

    detection.iou_threshold -> PALM_DETECT_DETECTION_IOU_THRESHOLD
    model.model_path        -> PALM_DETECT_MODEL_PATH
    """
    if key.startswith(section + "_"):
        return f"{_ENV_PREFIX}{key.upper()}"
    return f"{_ENV_PREFIX}{section.upper()}_{key.upper()}"


def _build_section(section: str, values: Mapping[str, Any]) -> Any:
    """Cast known keys of one section and build its dataclass.

    Unknown keys are logged and ignored.
    """
    cls, casters = _SCHEMA[section]
    kwargs = {}
    for key, value in values.items():
        caster = casters.get(key)
        if caster is None:
            logger.warning("Ignoring unknown config key: %s.%s", section, key)
            continue
        try:
            kwargs[key] = caster(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid value for {section}.{key}: {value!r} ({e})") from e
    return cls(**kwargs)


def _read_yaml(config_path: str) -> Dict[str, Any]:
    path = Path(config_path)
    if not path.is_absolute():
        path = _PROJECT_ROOT / path
    if not path.is_file():
        raise FileNotFoundError(
            f"Configuration file not found: {path}. "
            f"Pass an existing file or no path at all to run on defaults."
        )

    logger.info("Loading config from: %s", path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top level of {path} must be a mapping, got {type(data).__name__}.")
    return data


def _env_layer() -> Dict[str, Dict[str, str]]:
    layer: Dict[str, Dict[str, str]] = {}
    for section, (_, casters) in _SCHEMA.items():
        for key in casters:
            name = _env_name(section, key)
            if name in os.environ:
                layer.setdefault(section, {})[key] = os.environ[name]
                logger.debug("Config override from env: %s=%s", name, os.environ[name])
    return layer


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_CHOICES = {
    ("model", "backend"): {"cpu", "cuda"},
    ("detection", "score_activation"): {"none", "sigmoid"},
}
_OUTPUT_MODES = {"display", "save_image", "save_video", "save_json", "save_csv"}
# None is allowed for the optional ones
_POSITIVE = (
    ("detection", "max_results"),
    ("input", "resize_width"),
    ("visualization", "landmark_radius"),
    ("visualization", "thickness"),
)


def parse_output_modes(mode: str) -> set:
    """'display, save_json' -> {'display', 'save_json'}."""
    return {m.strip() for m in mode.split(",") if m.strip()}


def _validate(config: AppConfig) -> None:
    """Raise ValueError naming the first setting that is out of range."""
    for (section, key), allowed in _CHOICES.items():
        value = getattr(getattr(config, section), key)
        if value not in allowed:
            raise ValueError(f"{section}.{key} must be one of {sorted(allowed)}, got {value!r}.")

    for section, key in _POSITIVE:
        value = getattr(getattr(config, section), key)
        if value is not None and value <= 0:
            raise ValueError(f"{section}.{key} must be positive, got {value}.")

    modes = parse_output_modes(config.output.mode)
    unknown = modes - _OUTPUT_MODES
    if not modes or unknown:
        raise ValueError(
            f"output.mode {config.output.mode!r} is not a comma-separated list of "
            f"{sorted(_OUTPUT_MODES)}."
        )

    # Raw scores are not bounded, only NaN is meaningless
    if math.isnan(config.detection.score_threshold):
        raise ValueError("detection.score_threshold must be a number, got NaN.")

    iou_threshold = config.detection.iou_threshold
    if not 0.0 <= iou_threshold <= 1.0:
        raise ValueError(f"detection.iou_threshold must be in [0, 1], got {iou_threshold}.")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Resolve defaults, the optional YAML file and the environment.

    Args:
        config_path: YAML file, absolute or relative to the project root.
                     None runs on defaults plus environment overrides.

    Raises:
        FileNotFoundError: If config_path does not exist.
        ValueError: If the file is not a mapping or a value is invalid.
        yaml.YAMLError: If the file is not valid YAML.
    """
    file_layer = _read_yaml(config_path) if config_path is not None else {}
    env_layer = _env_layer()

    sections = {}
    for section in _SCHEMA:
        values = dict(file_layer.get(section) or {})
        values.update(env_layer.get(section, {}))
        sections[section] = _build_section(section, values)

    config = AppConfig(**sections)
    _validate(config)
    logger.debug("Configuration loaded: %s", config)
    return config


def validate_config(config: AppConfig) -> AppConfig:
    """Validate a config built in code or patched by the CLI, and return it."""
    _validate(config)
    return config
