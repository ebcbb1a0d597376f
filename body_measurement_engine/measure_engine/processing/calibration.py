# body_measurement_engine/measure_engine/processing/calibration.py
import logging
from typing import Optional, Sequence, Tuple
from ..common.config import REFERENCE_HEIGHT_CM, CalibrationConfig
from ..common.models import BodyLandmarks, CalibrationContext, CalibrationResult, PresenceResult

STANDING = "standing"
LEANING = "leaning"


def pixel_to_cm_ratio(shoulder_width_px: float, user_height_cm: float,
                      calibration: Optional[CalibrationContext] = None,
                      config: Optional[CalibrationConfig] = None,
                      reference_height_cm: float = REFERENCE_HEIGHT_CM) -> float:
    """
    Centimeters per pixel, anchored on an average shoulder width.
    Returns 0.0 when the shoulder width is not positive.
    """
    config = config or CalibrationConfig()
    calibration = calibration or CalibrationContext(
        scale_factor=config.default_scale_factor, confidence=config.default_confidence)
    if shoulder_width_px <= 0:
        return 0.0
    height_factor = user_height_cm / reference_height_cm
    return (config.reference_shoulder_width_cm / shoulder_width_px) * calibration.scale_factor * height_factor


def classify_pose(landmarks: BodyLandmarks, config: CalibrationConfig) -> str:
    """A pose is standing when the shoulders are level relative to their span."""
    left, right = landmarks.left_shoulder, landmarks.right_shoulder
    height_diff = abs(left.y - right.y)
    width = abs(right.x - left.x)
    return STANDING if height_diff < width * config.standing_tolerance else LEANING


def calibrate_from_observations(observations: Sequence[Tuple[PresenceResult, BodyLandmarks]],
                                config: Optional[CalibrationConfig] = None,
                                logger: Optional[logging.Logger] = None) -> CalibrationResult:
    """
    Derives a scale correction from a short history of (presence, landmarks) pairs.
    Too few usable frames give an invalid result carrying the default context.
    """
    config = config or CalibrationConfig()
    logger = logger or logging.getLogger(__name__)

    valid = [(presence, landmarks) for presence, landmarks in observations if presence.has_human]
    if len(valid) < config.min_valid_frames:
        logger.warning("Calibration needs %d frames with a body, got %d",
                       config.min_valid_frames, len(valid))
        return CalibrationResult(
            is_valid=False,
            scale_factor=config.default_scale_factor,
            confidence=config.default_confidence,
            valid_frames=len(valid),
        )

    n = len(valid)
    avg_confidence = sum(presence.confidence for presence, _ in valid) / n
    poses = {classify_pose(landmarks, config) for _, landmarks in valid}
    stability = 1.0 - (len(poses) - 1) / max(n - 1, 1)
    stability = min(max(stability, 0.0), 1.0)

    scale_factor = min(max(stability, config.min_scale_factor), config.max_scale_factor)
    confidence = (avg_confidence + stability) / 2
    result = CalibrationResult(
        is_valid=confidence > config.valid_confidence,
        scale_factor=scale_factor,
        confidence=confidence,
        pose_stability=stability,
        avg_pose_confidence=avg_confidence,
        valid_frames=n,
    )
    logger.debug("Calibration from %d frames: scale=%.3f confidence=%.3f", n, scale_factor, confidence)
    return result
