# body_measurement_engine/measure_engine/processing/validation.py
import logging
from typing import Dict, Mapping, Optional
from ..common.config import REFERENCE_HEIGHT_CM, ConfidenceConfig, ValidationConfig
from ..common.enums import MeasurementQuality
from ..common.models import BodyLandmarks, MeasurementReport, PixelDistances
from ..common.units import round_half_up

# measurement: (landmark group, left/right pair used for the consistency score)
CONFIDENCE_SOURCES = {
    "chest": ("shoulder", None),
    "waist": ("shoulder", None),
    "hips": ("hip", None),
    "shoulders": ("shoulder", None),
    "inseam": ("leg", ("left_inseam", "right_inseam")),
    "arm_length": ("arm", ("left_arm_length", "right_arm_length")),
    "neck": ("head", None),
}


def consistency_score(left: float, right: float) -> float:
    """1 for identical left/right values, falling towards 0 as they diverge."""
    largest = max(left, right)
    if largest <= 0:
        return 0.0
    return 1.0 - abs(left - right) / largest


def landmark_group_confidence(landmarks: BodyLandmarks) -> Dict[str, float]:
    lm = landmarks
    return {
        "shoulder": (lm.left_shoulder.confidence + lm.right_shoulder.confidence) / 2,
        "arm": (lm.left_elbow.confidence + lm.right_elbow.confidence
                + lm.left_wrist.confidence + lm.right_wrist.confidence) / 4,
        "hip": (lm.left_hip.confidence + lm.right_hip.confidence) / 2,
        "leg": (lm.left_knee.confidence + lm.right_knee.confidence
                + lm.left_ankle.confidence + lm.right_ankle.confidence) / 4,
        "head": lm.nose.confidence,
    }


def measurement_confidence(landmarks: BodyLandmarks, distances: PixelDistances,
                           calibration_confidence: float,
                           config: Optional[ConfidenceConfig] = None) -> Dict[str, float]:
    """
    Blends landmark-group confidence, calibration confidence and, for limbs,
    left/right consistency into one score per measurement. Height is always 1.0.
    """
    config = config or ConfidenceConfig()
    groups = landmark_group_confidence(landmarks)

    scores = {"height": 1.0}
    for name, (group, pair) in CONFIDENCE_SOURCES.items():
        weights = getattr(config, name)
        score = groups[group] * weights.landmark + calibration_confidence * weights.calibration
        if pair is not None:
            left, right = getattr(distances, pair[0]), getattr(distances, pair[1])
            score += consistency_score(left, right) * weights.consistency
        scores[name] = min(max(score, 0.0), 1.0)
    return scores


def validate_and_correct(values: Mapping[str, float], user_height_cm: float,
                         config: Optional[ValidationConfig] = None,
                         logger: Optional[logging.Logger] = None,
                         reference_height_cm: float = REFERENCE_HEIGHT_CM) -> Dict[str, float]:
    """
    Pulls out-of-range values back into their anthropometric range after scaling
    by the user's height. Nothing is rejected; each correction is logged.
    """
    config = config or ValidationConfig()
    logger = logger or logging.getLogger(__name__)
    height_factor = user_height_cm / reference_height_cm

    corrected = dict(values)
    for name, (low, high) in config.ranges.items():
        if name not in corrected:
            continue
        value = corrected[name]
        if low <= value <= high:
            continue
        fixed = round_half_up(min(max(value * height_factor, low), high))
        logger.warning("%s = %.1f cm outside [%.0f, %.0f], corrected to %.1f cm",
                       name, value, low, high, fixed)
        corrected[name] = fixed
    return corrected


def grade_report(report: MeasurementReport, config: Optional[ConfidenceConfig] = None) -> MeasurementQuality:
    config = config or ConfidenceConfig()
    overall = report.overall_confidence()
    if overall >= config.excellent_threshold:
        return MeasurementQuality.EXCELLENT
    if overall >= config.good_threshold:
        return MeasurementQuality.GOOD
    if overall >= config.fair_threshold:
        return MeasurementQuality.FAIR
    return MeasurementQuality.POOR
