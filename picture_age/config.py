"""
Configuration management for the picture age detector.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - The system MUST run with zero configuration (safe defaults only).
    - Missing or invalid values fail early and loudly.
    - No detection, classification, I/O, or model loading belongs here.

Non-goals:
    - No dynamic reloading.
    - No remote configuration.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
# Resolved relative to this file's location: picture_age/config.py → repo root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Return the resolved project root directory."""
    return _PROJECT_ROOT


def resolve_path(path: str) -> Path:
    """Resolve a possibly-relative path against the project root."""
    resolved = Path(path)
    if not resolved.is_absolute():
        resolved = _PROJECT_ROOT / resolved
    return resolved


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

DEFAULT_AGE_LABELS: Tuple[str, ...] = (
    "0-2", "4-6", "8-12", "15-20", "25-32", "38-43", "48-53", "60-100",
)


@dataclass(frozen=True)
class ModelConfig:
    """Face detector model configuration.

    Attributes:
        prototxt_path: Path to the .prototxt network definition (relative to project root).
        weights_path: Path to the .caffemodel weights file (relative to project root).
        backend: Compute backend, 'cpu' or 'cuda'. Shared by both networks.
        input_size: Spatial dimensions (width, height) for the DNN input blob.
        mean_values: Per-channel mean subtraction values (BGR order).
        scale_factor: Pixel value scale factor applied during blob creation.
    """

    prototxt_path: str = "models/deploy.prototxt"
    weights_path: str = "models/res10_300x300_ssd_iter_140000.caffemodel"
    backend: str = "cpu"
    input_size: Tuple[int, int] = (300, 300)
    mean_values: Tuple[float, float, float] = (104.0, 177.0, 123.0)
    scale_factor: float = 1.0


@dataclass(frozen=True)
class AgeModelConfig:
    """Age classifier model configuration.

    Attributes:
        prototxt_path: Path to the age network definition.
        weights_path: Path to the age network weights.
        input_size: Spatial dimensions (width, height) of the face blob.
        mean_values: Per-channel mean the network was trained with (BGR order).
        labels: Age range identifiers in network output order, each "<lo>-<hi>".
    """

    prototxt_path: str = "models/age_deploy.prototxt"
    weights_path: str = "models/age_net.caffemodel"
    input_size: Tuple[int, int] = (227, 227)
    mean_values: Tuple[float, float, float] = (78.4263377603, 87.7689143744, 114.895847746)
    labels: Tuple[str, ...] = DEFAULT_AGE_LABELS


@dataclass(frozen=True)
class DetectionConfig:
    """Face detection thresholds.

    Attributes:
        confidence_threshold: Minimum confidence to accept a face.
        face_margin: Fraction of the box size added on every side of a face
                     before cropping.
    """

    confidence_threshold: float = 0.5
    face_margin: float = 0.2


@dataclass(frozen=True)
class PipelineConfig:
    """Classification fan-out settings.

    Attributes:
        max_workers: Size of the background pool running per-face classification.
    """

    max_workers: int = 4


@dataclass(frozen=True)
class InputConfig:
    """Input source configuration.

    Attributes:
        source: Image file or directory of images. None when capturing.
        camera: Device index to capture a single photo from. None to read files.
        resize_width: Optional width to downscale photos before detection.
                      None means no resizing.
    """

    source: Optional[str] = None
    camera: Optional[int] = None
    resize_width: Optional[int] = None


@dataclass(frozen=True)
class OutputConfig:
    """Output behavior configuration.

    Attributes:
        mode: Output mode(s). Supports multiple comma-separated values:
              'log', 'save_image', 'save_json', 'save_csv'.
              Example: "log,save_json"
        save_path: Directory where output artifacts are written.
    """

    mode: str = "log"
    save_path: str = "output/"


@dataclass(frozen=True)
class VisualizationConfig:
    """Annotation rendering parameters.

    Attributes:
        child_color: BGR color for faces classified as children.
        adult_color: BGR color for faces classified as adults.
        unknown_color: BGR color for faces without a usable classification.
        thickness: Line thickness in pixels.
        show_label: Whether to render the age range label.
    """

    child_color: Tuple[int, int, int] = (0, 200, 255)
    adult_color: Tuple[int, int, int] = (0, 255, 0)
    unknown_color: Tuple[int, int, int] = (160, 160, 160)
    thickness: int = 2
    show_label: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration.

    Aggregates all sub-configurations into a single, frozen object.
    """

    model: ModelConfig = field(default_factory=ModelConfig)
    age_model: AgeModelConfig = field(default_factory=AgeModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_VALID_BACKENDS = {"cpu", "cuda"}
_VALID_OUTPUT_MODES = {"log", "save_image", "save_json", "save_csv"}


def parse_output_modes(mode: str) -> set:
    """Split a comma-separated output mode string into a set of modes."""
    return {m.strip() for m in mode.split(",") if m.strip()}


def _validate_size(name: str, size: Tuple[int, ...]) -> None:
    if len(size) != 2:
        raise ValueError(f"{name} must be a (width, height) tuple, got {size}.")
    if any(d <= 0 for d in size):
        raise ValueError(f"{name} dimensions must be positive, got {size}.")


def validate_config(config: AppConfig) -> None:
    """Validate configuration values. Raises ValueError on invalid state."""

    if config.model.backend not in _VALID_BACKENDS:
        raise ValueError(
            f"Invalid model.backend: '{config.model.backend}'. "
            f"Must be one of {_VALID_BACKENDS}."
        )

    invalid_modes = parse_output_modes(config.output.mode) - _VALID_OUTPUT_MODES
    if invalid_modes:
        raise ValueError(
            f"Invalid output.mode(s): {invalid_modes}. "
            f"Valid modes: {_VALID_OUTPUT_MODES}. "
            f"Use comma-separated values for multiple outputs."
        )

    if not (0.0 <= config.detection.confidence_threshold <= 1.0):
        raise ValueError(
            f"detection.confidence_threshold must be in [0.0, 1.0], "
            f"got {config.detection.confidence_threshold}."
        )

    if config.detection.face_margin < 0.0:
        raise ValueError(
            f"detection.face_margin must be non-negative, "
            f"got {config.detection.face_margin}."
        )

    _validate_size("model.input_size", config.model.input_size)
    _validate_size("age_model.input_size", config.age_model.input_size)

    if config.model.scale_factor <= 0:
        raise ValueError(
            f"model.scale_factor must be positive, "
            f"got {config.model.scale_factor}."
        )

    if not config.age_model.labels:
        raise ValueError("age_model.labels must contain at least one label.")

    if config.pipeline.max_workers < 1:
        raise ValueError(
            f"pipeline.max_workers must be at least 1, "
            f"got {config.pipeline.max_workers}."
        )

    if config.input.resize_width is not None and config.input.resize_width <= 0:
        raise ValueError(
            f"input.resize_width must be positive or None, "
            f"got {config.input.resize_width}."
        )

    if config.input.camera is not None and config.input.camera < 0:
        raise ValueError(
            f"input.camera must be a device index >= 0 or None, "
            f"got {config.input.camera}."
        )


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_tuple(value, expected_len: int, cast_type=float):
    """Convert a list from YAML into a tuple of the expected type and length."""
    if isinstance(value, (list, tuple)):
        if len(value) != expected_len:
            raise ValueError(
                f"Expected {expected_len} values, got {len(value)}: {value}"
            )
        return tuple(cast_type(v) for v in value)
    return value


def _optional_int(value) -> Optional[int]:
    if value is None or (isinstance(value, str) and value.strip().lower() in ("", "none")):
        return None
    return int(value)


def _build_model_config(raw: dict) -> ModelConfig:
    """Build ModelConfig from a raw YAML dict."""
    kwargs = {}
    if "prototxt_path" in raw:
        kwargs["prototxt_path"] = str(raw["prototxt_path"])
    if "weights_path" in raw:
        kwargs["weights_path"] = str(raw["weights_path"])
    if "backend" in raw:
        kwargs["backend"] = str(raw["backend"]).lower()
    if "input_size" in raw:
        kwargs["input_size"] = _parse_tuple(raw["input_size"], 2, int)
    if "mean_values" in raw:
        kwargs["mean_values"] = _parse_tuple(raw["mean_values"], 3, float)
    if "scale_factor" in raw:
        kwargs["scale_factor"] = float(raw["scale_factor"])
    return ModelConfig(**kwargs)


def _build_age_model_config(raw: dict) -> AgeModelConfig:
    """Build AgeModelConfig from a raw YAML dict."""
    kwargs = {}
    if "prototxt_path" in raw:
        kwargs["prototxt_path"] = str(raw["prototxt_path"])
    if "weights_path" in raw:
        kwargs["weights_path"] = str(raw["weights_path"])
    if "input_size" in raw:
        kwargs["input_size"] = _parse_tuple(raw["input_size"], 2, int)
    if "mean_values" in raw:
        kwargs["mean_values"] = _parse_tuple(raw["mean_values"], 3, float)
    if "labels" in raw:
        labels = raw["labels"]
        if isinstance(labels, str):
            labels = labels.split(",")
        kwargs["labels"] = tuple(str(label).strip() for label in labels)
    return AgeModelConfig(**kwargs)


def _build_detection_config(raw: dict) -> DetectionConfig:
    """Build DetectionConfig from a raw YAML dict."""
    kwargs = {}
    if "confidence_threshold" in raw:
        kwargs["confidence_threshold"] = float(raw["confidence_threshold"])
    if "face_margin" in raw:
        kwargs["face_margin"] = float(raw["face_margin"])
    return DetectionConfig(**kwargs)


def _build_pipeline_config(raw: dict) -> PipelineConfig:
    """Build PipelineConfig from a raw YAML dict."""
    kwargs = {}
    if "max_workers" in raw:
        kwargs["max_workers"] = int(raw["max_workers"])
    return PipelineConfig(**kwargs)


def _build_input_config(raw: dict) -> InputConfig:
    """Build InputConfig from a raw YAML dict."""
    kwargs = {}
    if "source" in raw:
        val = raw["source"]
        kwargs["source"] = str(val) if val is not None else None
    if "camera" in raw:
        kwargs["camera"] = _optional_int(raw["camera"])
    if "resize_width" in raw:
        kwargs["resize_width"] = _optional_int(raw["resize_width"])
    return InputConfig(**kwargs)


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    kwargs = {}
    if "mode" in raw:
        kwargs["mode"] = str(raw["mode"]).lower()
    if "save_path" in raw:
        kwargs["save_path"] = str(raw["save_path"])
    return OutputConfig(**kwargs)


def _build_visualization_config(raw: dict) -> VisualizationConfig:
    """Build VisualizationConfig from a raw YAML dict."""
    kwargs = {}
    for key in ("child_color", "adult_color", "unknown_color"):
        if key in raw:
            kwargs[key] = _parse_tuple(raw[key], 3, int)
    if "thickness" in raw:
        kwargs["thickness"] = int(raw["thickness"])
    if "show_label" in raw:
        kwargs["show_label"] = bool(raw["show_label"])
    return VisualizationConfig(**kwargs)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "AGE_DETECT_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        AGE_DETECT_MODEL_BACKEND=cuda
        AGE_DETECT_DETECTION_CONFIDENCE_THRESHOLD=0.7
        AGE_DETECT_PIPELINE_MAX_WORKERS=8
    """
    env_map = {
        f"{_ENV_PREFIX}MODEL_BACKEND": ("model", "backend"),
        f"{_ENV_PREFIX}MODEL_WEIGHTS_PATH": ("model", "weights_path"),
        f"{_ENV_PREFIX}AGE_MODEL_WEIGHTS_PATH": ("age_model", "weights_path"),
        f"{_ENV_PREFIX}AGE_MODEL_LABELS": ("age_model", "labels"),
        f"{_ENV_PREFIX}DETECTION_CONFIDENCE_THRESHOLD": ("detection", "confidence_threshold"),
        f"{_ENV_PREFIX}DETECTION_FACE_MARGIN": ("detection", "face_margin"),
        f"{_ENV_PREFIX}PIPELINE_MAX_WORKERS": ("pipeline", "max_workers"),
        f"{_ENV_PREFIX}INPUT_SOURCE": ("input", "source"),
        f"{_ENV_PREFIX}INPUT_CAMERA": ("input", "camera"),
        f"{_ENV_PREFIX}INPUT_RESIZE_WIDTH": ("input", "resize_width"),
        f"{_ENV_PREFIX}OUTPUT_MODE": ("output", "mode"),
        f"{_ENV_PREFIX}OUTPUT_SAVE_PATH": ("output", "save_path"),
    }

    for env_var, (section, key) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            raw.setdefault(section, {})[key] = value
            logger.debug("Config override from env: %s=%s", env_var, value)

    return raw


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and validate application configuration.

    Precedence (highest → lowest):
        Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file. If None,
                     the system runs entirely on defaults.

    Returns:
        A validated, frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If any configuration value is invalid.
        yaml.YAMLError: If the YAML file is malformed.
    """
    raw: dict = {}

    # --- Layer 1: YAML file ---
    if config_path is not None:
        resolved = resolve_path(config_path)

        if not resolved.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {resolved}. "
                f"Provide a valid path or omit to use defaults."
            )

        logger.info("Loading config from: %s", resolved)
        with open(resolved, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Build typed configs ---
    config = AppConfig(
        model=_build_model_config(raw.get("model", {})),
        age_model=_build_age_model_config(raw.get("age_model", {})),
        detection=_build_detection_config(raw.get("detection", {})),
        pipeline=_build_pipeline_config(raw.get("pipeline", {})),
        input=_build_input_config(raw.get("input", {})),
        output=_build_output_config(raw.get("output", {})),
        visualization=_build_visualization_config(raw.get("visualization", {})),
    )

    validate_config(config)

    logger.debug("Configuration loaded: %s", config)
    return config
