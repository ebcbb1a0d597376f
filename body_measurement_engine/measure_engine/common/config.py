# body_measurement_engine/measure_engine/common/config.py
import logging
import yaml
from pathlib import Path
from pydantic import BaseModel, Field
from typing import Dict, Optional, Tuple, Union
from .enums import LogLevel

# The coefficients below are empirical placeholders. None of them has been
# fitted against anthropometric survey data yet.

REFERENCE_HEIGHT_CM = 175.0


class _Section(BaseModel):
    class Config:
        extra = "forbid"
        frozen = True


class PresenceConfig(_Section):
    """Weights and thresholds of the four presence heuristics."""
    head_weight: float = 0.3
    shoulder_weight: float = 0.2
    torso_weight: float = 0.3
    leg_weight: float = 0.2
    detection_threshold: float = 0.6
    # Frames whose grayscale range is below this carry no structure at all
    min_contrast: int = 30

    head_band: Tuple[float, float] = (0.0, 0.3)
    head_grid_step: int = 10
    head_margin: int = 20
    head_ring_radius: int = 15
    head_ring_points: int = 12
    head_intensity_delta: int = 30
    head_min_ring_hits: int = 6

    shoulder_band: Tuple[float, float] = (0.2, 0.4)
    shoulder_row_step: int = 5
    shoulder_flat_delta: int = 10
    shoulder_min_flat_fraction: float = 0.6

    column_band: Tuple[float, float] = (0.3, 0.7)
    column_step: int = 10
    vertical_flat_delta: int = 15
    torso_band: Tuple[float, float] = (0.3, 0.8)
    torso_min_strength: float = 0.5
    leg_band: Tuple[float, float] = (0.6, 1.0)
    leg_min_strength: float = 0.4

    min_dwell_ms: float = 2000.0


class EdgeConfig(_Section):
    magnitude_threshold: float = 100.0


class ContourConfig(_Section):
    min_contour_points: int = 50
    min_landmark_points: int = 100


class LandmarkConfig(_Section):
    # Reliability falls off with distance from the torso anchors
    joint_confidence: Dict[str, float] = Field(default_factory=lambda: {
        "nose": 0.95,
        "shoulder": 0.9,
        "hip": 0.9,
        "elbow": 0.85,
        "knee": 0.85,
        "wrist": 0.8,
        "ankle": 0.8,
    })


class CalibrationConfig(_Section):
    reference_shoulder_width_cm: float = 40.0
    default_scale_factor: float = 1.0
    default_confidence: float = 0.5
    min_valid_frames: int = 5
    min_scale_factor: float = 0.8
    max_scale_factor: float = 1.2
    valid_confidence: float = 0.6
    standing_tolerance: float = 0.1


class AnthropometryConfig(_Section):
    chest_to_shoulder: float = 2.5
    waist_to_chest: float = 0.85
    hips_to_chest: float = 0.95
    neck_to_shoulder: float = 0.25
    side_depth_factor: float = 1.1
    average_head_height_cm: float = 25.0


class ConfidenceWeights(_Section):
    landmark: float
    calibration: float
    consistency: float = 0.0


class ConfidenceConfig(_Section):
    chest: ConfidenceWeights = ConfidenceWeights(landmark=0.7, calibration=0.3)
    waist: ConfidenceWeights = ConfidenceWeights(landmark=0.6, calibration=0.4)
    hips: ConfidenceWeights = ConfidenceWeights(landmark=0.7, calibration=0.3)
    shoulders: ConfidenceWeights = ConfidenceWeights(landmark=0.8, calibration=0.2)
    inseam: ConfidenceWeights = ConfidenceWeights(landmark=0.6, calibration=0.2, consistency=0.2)
    arm_length: ConfidenceWeights = ConfidenceWeights(landmark=0.6, calibration=0.2, consistency=0.2)
    neck: ConfidenceWeights = ConfidenceWeights(landmark=0.7, calibration=0.3)

    excellent_threshold: float = 0.8
    good_threshold: float = 0.6
    fair_threshold: float = 0.3


class ValidationConfig(_Section):
    ranges: Dict[str, Tuple[float, float]] = Field(default_factory=lambda: {
        "chest": (60.0, 150.0),
        "waist": (50.0, 140.0),
        "hips": (60.0, 150.0),
        "shoulders": (30.0, 60.0),
        "inseam": (60.0, 100.0),
        "arm_length": (50.0, 80.0),
        "neck": (25.0, 50.0),
    })


class SmoothingConfig(_Section):
    # One-Euro filter over landmark positions
    min_cutoff: float = 0.5
    beta: float = 0.05
    d_cutoff: float = 1.0
    # Per-measurement aggregation over a frame history
    window_size: int = 5
    history_size: int = 20
    outlier_rejection: bool = True
    outlier_std_threshold: float = 2.0


class VisualizationConfig(_Section):
    draw_landmarks: bool = True
    draw_hud: bool = True
    min_landmark_confidence: float = 0.1
    landmark_color: Tuple[int, int, int] = (0, 255, 0)
    connection_color: Tuple[int, int, int] = (200, 200, 200)


class PipelineConfig(_Section):
    """Complete configuration of the measurement pipeline."""
    presence: PresenceConfig = PresenceConfig()
    edges: EdgeConfig = EdgeConfig()
    contours: ContourConfig = ContourConfig()
    landmarks: LandmarkConfig = LandmarkConfig()
    calibration: CalibrationConfig = CalibrationConfig()
    anthropometry: AnthropometryConfig = AnthropometryConfig()
    confidence: ConfidenceConfig = ConfidenceConfig()
    validation: ValidationConfig = ValidationConfig()
    smoothing: SmoothingConfig = SmoothingConfig()
    visualization: VisualizationConfig = VisualizationConfig()
    # Height the proportional placement, calibration and validation are scaled against
    reference_height_cm: float = REFERENCE_HEIGHT_CM
    log_level: LogLevel = LogLevel.INFO


def load_config(path: Optional[Union[str, Path]] = None) -> PipelineConfig:
    """
    Loads a PipelineConfig from a YAML file. Without a path the defaults are used.
    I/O, YAML and validation errors propagate to the caller.
    """
    if path is None:
        return PipelineConfig()
    with open(path, 'r') as f:
        raw = yaml.safe_load(f)
    return PipelineConfig.model_validate(raw or {})


def configure_logging(level: LogLevel = LogLevel.INFO) -> logging.Logger:
    """Attaches a stream handler to the package logger at the given level."""
    logger = logging.getLogger("measure_engine")
    logger.setLevel(level.value)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger
