# body_measurement_engine/measure_engine/processing/landmarks.py
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional
from ..common.config import REFERENCE_HEIGHT_CM, LandmarkConfig
from ..common.enums import LandmarkStrategy
from ..common.models import BodyLandmark, BodyLandmarks, Contour

# name: (x fraction, keypoint gain, y fraction, height-factor gain, joint)
PROPORTIONAL_PLACEMENT = {
    "nose":           (0.50, 0.00, 0.15, 0.05, "nose"),
    "left_shoulder":  (0.28, 0.04, 0.25, 0.03, "shoulder"),
    "right_shoulder": (0.68, 0.04, 0.25, 0.03, "shoulder"),
    "left_elbow":     (0.22, 0.06, 0.40, 0.02, "elbow"),
    "right_elbow":    (0.72, 0.06, 0.40, 0.02, "elbow"),
    "left_wrist":     (0.18, 0.04, 0.55, 0.01, "wrist"),
    "right_wrist":    (0.78, 0.04, 0.55, 0.01, "wrist"),
    "left_hip":       (0.38, 0.04, 0.55, 0.02, "hip"),
    "right_hip":      (0.58, 0.04, 0.55, 0.02, "hip"),
    "left_knee":      (0.40, 0.04, 0.75, 0.01, "knee"),
    "right_knee":     (0.56, 0.04, 0.75, 0.01, "knee"),
    "left_ankle":     (0.42, 0.04, 0.92, 0.01, "ankle"),
    "right_ankle":    (0.54, 0.04, 0.92, 0.01, "ankle"),
}

# name: (x offset from center as a fraction of body width, y offset from top as a fraction of body height, joint)
CONTOUR_PLACEMENT = {
    "nose":           (0.00, 0.05, "nose"),
    "left_shoulder":  (-0.20, 0.15, "shoulder"),
    "right_shoulder": (0.20, 0.15, "shoulder"),
    "left_elbow":     (-0.25, 0.35, "elbow"),
    "right_elbow":    (0.25, 0.35, "elbow"),
    "left_wrist":     (-0.30, 0.50, "wrist"),
    "right_wrist":    (0.30, 0.50, "wrist"),
    "left_hip":       (-0.15, 0.55, "hip"),
    "right_hip":      (0.15, 0.55, "hip"),
    "left_knee":      (-0.10, 0.75, "knee"),
    "right_knee":     (0.10, 0.75, "knee"),
    "left_ankle":     (-0.05, 0.95, "ankle"),
    "right_ankle":    (0.05, 0.95, "ankle"),
}


def empty_landmarks() -> BodyLandmarks:
    """All 13 landmarks at the origin with zero confidence."""
    return BodyLandmarks.empty()


class BaseLandmarkStrategy(ABC):
    """Places the 13 landmarks from some view of the frame."""
    kind: LandmarkStrategy

    def __init__(self, config: Optional[LandmarkConfig] = None,
                 reference_height_cm: float = REFERENCE_HEIGHT_CM):
        self.config = config or LandmarkConfig()
        self.reference_height_cm = reference_height_cm

    def _confidence(self, presence_confidence: float, joint: str) -> float:
        value = presence_confidence * self.config.joint_confidence[joint]
        return min(max(value, 0.0), 1.0)

    @abstractmethod
    def estimate(self, *args, **kwargs) -> BodyLandmarks:
        ...


class ProportionalStrategy(BaseLandmarkStrategy):
    """Fixed fractions of the frame, nudged by user height and optional per-joint offsets."""
    kind = LandmarkStrategy.PROPORTIONAL

    def estimate(self, frame_width: int, frame_height: int, presence_confidence: float,
                 user_height_cm: Optional[float] = None,
                 keypoints: Optional[Mapping[str, float]] = None) -> BodyLandmarks:
        height_cm = user_height_cm if user_height_cm is not None else self.reference_height_cm
        height_factor = height_cm / self.reference_height_cm
        keypoints = keypoints or {}

        placed: Dict[str, BodyLandmark] = {}
        for name, (x_frac, x_gain, y_frac, y_gain, joint) in PROPORTIONAL_PLACEMENT.items():
            offset = keypoints.get(name, 0.0)
            placed[name] = BodyLandmark(
                x=frame_width * (x_frac + offset * x_gain),
                y=frame_height * (y_frac + height_factor * y_gain),
                confidence=self._confidence(presence_confidence, joint),
            )
        return BodyLandmarks(**placed)


class ContourStrategy(BaseLandmarkStrategy):
    """Fractions of the silhouette bounding box, symmetric about its center."""
    kind = LandmarkStrategy.CONTOUR

    def estimate(self, contour: Contour, presence_confidence: float) -> BodyLandmarks:
        min_x, max_x, min_y, max_y = contour.bounding_box()
        body_width = max_x - min_x
        body_height = max_y - min_y
        center_x = (min_x + max_x) / 2

        placed: Dict[str, BodyLandmark] = {}
        for name, (x_frac, y_frac, joint) in CONTOUR_PLACEMENT.items():
            placed[name] = BodyLandmark(
                x=center_x + x_frac * body_width,
                y=min_y + y_frac * body_height,
                confidence=self._confidence(presence_confidence, joint),
            )
        return BodyLandmarks(**placed)
