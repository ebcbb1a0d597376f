# body_measurement_engine/measure_engine/processing/measurements.py
import logging
import math
from typing import Dict, Optional
from ..common.config import REFERENCE_HEIGHT_CM, AnthropometryConfig
from ..common.enums import ScanStep
from ..common.models import BodyLandmark, BodyLandmarks, PixelDistances
from ..common.units import round_half_up

# (base, torso-ratio gain) of the chest adjustment per step
CHEST_STEP_ADJUSTMENT = {
    ScanStep.FRONT: (0.95, 0.1),
    ScanStep.SIDE: (0.9, 0.2),
}
# (base, height-ratio gain) of the waist and hips adjustment per step
HEIGHT_STEP_ADJUSTMENT = {
    ScanStep.FRONT: (0.95, 0.05),
    ScanStep.SIDE: (0.9, 0.1),
}
NECK_HEAD_ADJUSTMENT = (0.9, 0.2)


def _distance(a: BodyLandmark, b: BodyLandmark) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def pixel_distances(landmarks: BodyLandmarks, frame_width: int, frame_height: int,
                    logger: Optional[logging.Logger] = None) -> PixelDistances:
    """
    Raw pixel distances between landmark pairs. Values that are not positive or
    exceed the larger frame side are flagged and logged, but kept.
    """
    logger = logger or logging.getLogger(__name__)
    lm = landmarks
    values = {
        "shoulder_width": _distance(lm.left_shoulder, lm.right_shoulder),
        "left_arm_length": _distance(lm.left_shoulder, lm.left_wrist),
        "right_arm_length": _distance(lm.right_shoulder, lm.right_wrist),
        "left_inseam": _distance(lm.left_hip, lm.left_ankle),
        "right_inseam": _distance(lm.right_hip, lm.right_ankle),
        "torso_height": abs(lm.left_shoulder.y - lm.left_hip.y),
        "head_height": abs(lm.nose.y - lm.left_shoulder.y),
    }

    limit = max(frame_width, frame_height)
    invalid = []
    for name, value in values.items():
        if value <= 0 or value > limit:
            logger.warning("Invalid %s distance: %.2f px", name, value)
            invalid.append(name)
    return PixelDistances(**values, invalid_fields=tuple(invalid))


def convert_to_measurements(distances: PixelDistances, ratio: float, step: ScanStep,
                            user_height_cm: float,
                            config: Optional[AnthropometryConfig] = None,
                            reference_height_cm: float = REFERENCE_HEIGHT_CM) -> Dict[str, float]:
    """
    Converts pixel distances to centimeters with fixed tailoring ratios.
    Every value except height is rounded to a whole centimeter.
    """
    config = config or AnthropometryConfig()
    step = ScanStep(step)

    shoulders_cm = distances.shoulder_width * ratio
    arm_cm = (distances.left_arm_length + distances.right_arm_length) / 2 * ratio
    inseam_cm = (distances.left_inseam + distances.right_inseam) / 2 * ratio

    torso_ratio = distances.torso_height * ratio / user_height_cm
    base, gain = CHEST_STEP_ADJUSTMENT[step]
    chest = shoulders_cm * config.chest_to_shoulder * (base + torso_ratio * gain)
    if step is ScanStep.SIDE:
        chest *= config.side_depth_factor

    height_ratio = user_height_cm / reference_height_cm
    base, gain = HEIGHT_STEP_ADJUSTMENT[step]
    height_adjustment = base + height_ratio * gain
    waist = chest * config.waist_to_chest * height_adjustment
    hips = chest * config.hips_to_chest * height_adjustment

    head_ratio = distances.head_height * ratio / config.average_head_height_cm
    base, gain = NECK_HEAD_ADJUSTMENT
    neck = shoulders_cm * config.neck_to_shoulder * (base + head_ratio * gain)

    return {
        "height": user_height_cm,
        "chest": round_half_up(chest),
        "waist": round_half_up(waist),
        "hips": round_half_up(hips),
        "shoulders": round_half_up(shoulders_cm),
        "inseam": round_half_up(inseam_cm),
        "arm_length": round_half_up(arm_cm),
        "neck": round_half_up(neck),
    }
