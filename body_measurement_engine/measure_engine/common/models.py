# body_measurement_engine/measure_engine/common/models.py
import numpy as np
from pydantic import BaseModel, Field
from typing import Dict, Iterator, Optional, Tuple
from .enums import LandmarkStrategy, MeasurementQuality, PipelineStatus, ScanStep
from .units import cm_to_inches

LANDMARK_NAMES: Tuple[str, ...] = (
    "nose",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

MEASUREMENT_NAMES: Tuple[str, ...] = (
    "height",
    "chest",
    "waist",
    "hips",
    "shoulders",
    "inseam",
    "arm_length",
    "neck",
)


class Frame(BaseModel):
    """A single captured camera frame. `pixels` is a packed RGBA buffer."""
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    pixels: bytes
    timestamp_ms: float = 0.0

    class Config:
        frozen = True

    @classmethod
    def from_rgba(cls, rgba: np.ndarray, timestamp_ms: float = 0.0) -> "Frame":
        """Builds a frame from an (H, W, 4) uint8 array."""
        height, width = rgba.shape[:2]
        buffer = np.ascontiguousarray(rgba, dtype=np.uint8).tobytes()
        return cls(width=width, height=height, pixels=buffer, timestamp_ms=timestamp_ms)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def to_rgba(self) -> np.ndarray:
        """Returns the buffer as an (H, W, 4) array, zero-padding a truncated buffer."""
        expected = self.pixel_count * 4
        data = np.frombuffer(self.pixels, dtype=np.uint8)[:expected]
        if data.size < expected:
            data = np.concatenate([data, np.zeros(expected - data.size, dtype=np.uint8)])
        return data.reshape(self.height, self.width, 4)


class PresenceResult(BaseModel):
    """Outcome of the human-presence heuristics for one frame."""
    has_human: bool = False
    confidence: float = Field(0.0, ge=0.0, le=1.0)

    class Config:
        frozen = True


class BodyLandmark(BaseModel):
    """A 2-D anatomical point estimate. `z` is always 0 (no depth)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    confidence: float = Field(0.0, ge=0.0, le=1.0)

    class Config:
        frozen = True


class BodyLandmarks(BaseModel):
    """The fixed set of 13 named landmarks. Every key is always present."""
    nose: BodyLandmark
    left_shoulder: BodyLandmark
    right_shoulder: BodyLandmark
    left_elbow: BodyLandmark
    right_elbow: BodyLandmark
    left_wrist: BodyLandmark
    right_wrist: BodyLandmark
    left_hip: BodyLandmark
    right_hip: BodyLandmark
    left_knee: BodyLandmark
    right_knee: BodyLandmark
    left_ankle: BodyLandmark
    right_ankle: BodyLandmark

    class Config:
        frozen = True

    @classmethod
    def empty(cls) -> "BodyLandmarks":
        return cls(**{name: BodyLandmark() for name in LANDMARK_NAMES})

    def items(self) -> Iterator[Tuple[str, BodyLandmark]]:
        for name in LANDMARK_NAMES:
            yield name, getattr(self, name)

    def positions(self) -> np.ndarray:
        """(13, 2) array of x, y in LANDMARK_NAMES order."""
        return np.array([[lm.x, lm.y] for _, lm in self.items()], dtype=np.float64)

    def confidences(self) -> np.ndarray:
        return np.array([lm.confidence for _, lm in self.items()], dtype=np.float64)

    def with_positions(self, positions: np.ndarray) -> "BodyLandmarks":
        """Copy with new x, y values, keeping every confidence."""
        moved = {}
        for (name, lm), (x, y) in zip(self.items(), positions):
            moved[name] = BodyLandmark(x=float(x), y=float(y), z=lm.z, confidence=lm.confidence)
        return BodyLandmarks(**moved)


class Contour(BaseModel):
    """One 8-connected component of edge pixels, as an (N, 2) array of x, y."""
    points: np.ndarray

    class Config:
        arbitrary_types_allowed = True
        frozen = True

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def bounding_box(self) -> Tuple[int, int, int, int]:
        """Returns (min_x, max_x, min_y, max_y)."""
        xs, ys = self.points[:, 0], self.points[:, 1]
        return int(xs.min()), int(xs.max()), int(ys.min()), int(ys.max())


class PixelDistances(BaseModel):
    """Raw pixel measurements between landmark pairs."""
    shoulder_width: float
    left_arm_length: float
    right_arm_length: float
    left_inseam: float
    right_inseam: float
    torso_height: float
    head_height: float
    invalid_fields: Tuple[str, ...] = ()

    class Config:
        frozen = True


class Measurement(BaseModel):
    value: float = 0.0
    confidence: float = Field(0.0, ge=0.0, le=1.0)

    class Config:
        frozen = True


class MeasurementReport(BaseModel):
    """Body measurements in centimeters, each with its confidence."""
    height: Measurement
    chest: Measurement
    waist: Measurement
    hips: Measurement
    shoulders: Measurement
    inseam: Measurement
    arm_length: Measurement
    neck: Measurement

    class Config:
        frozen = True

    @classmethod
    def empty(cls) -> "MeasurementReport":
        return cls(**{name: Measurement() for name in MEASUREMENT_NAMES})

    def items(self) -> Iterator[Tuple[str, Measurement]]:
        for name in MEASUREMENT_NAMES:
            yield name, getattr(self, name)

    def overall_confidence(self) -> float:
        # height is user-supplied and always 1.0, so it says nothing about the scan
        estimated = [m.confidence for name, m in self.items() if name != "height"]
        return float(sum(estimated) / len(estimated))

    def needs_retake(self, threshold: float = 0.3) -> bool:
        return self.overall_confidence() < threshold

    def to_inches(self) -> Dict[str, float]:
        return {name: cm_to_inches(m.value) for name, m in self.items()}


class CalibrationContext(BaseModel):
    """Externally supplied scale correction for the pixel-to-cm ratio."""
    scale_factor: float = 1.0
    confidence: float = Field(0.5, ge=0.0, le=1.0)

    class Config:
        frozen = True


class CalibrationResult(BaseModel):
    """Calibration derived from a short history of frames."""
    is_valid: bool
    scale_factor: float
    confidence: float
    pose_stability: float = 0.0
    avg_pose_confidence: float = 0.0
    valid_frames: int = 0

    @property
    def context(self) -> CalibrationContext:
        return CalibrationContext(
            scale_factor=self.scale_factor,
            confidence=min(max(self.confidence, 0.0), 1.0),
        )


class PipelineResult(BaseModel):
    """Encapsulates the complete result of a single frame's measurement run."""
    timestamp_ms: float
    processing_time_ms: float
    status: PipelineStatus
    step: Optional[ScanStep]
    presence: PresenceResult
    strategy: LandmarkStrategy
    landmarks: BodyLandmarks
    report: MeasurementReport
    quality: MeasurementQuality = MeasurementQuality.POOR
    error: Optional[str] = None
    performance_metrics: Dict[str, float] = Field(default_factory=dict)
