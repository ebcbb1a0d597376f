# body_measurement_engine/measure_engine/visualization/visualizer.py
import cv2
import numpy as np
from typing import Optional
from ..common.config import VisualizationConfig
from ..common.models import Frame, PipelineResult

SKELETON_CONNECTIONS = (
    ("left_shoulder", "right_shoulder"),
    ("left_shoulder", "left_elbow"),
    ("left_elbow", "left_wrist"),
    ("right_shoulder", "right_elbow"),
    ("right_elbow", "right_wrist"),
    ("left_shoulder", "left_hip"),
    ("right_shoulder", "right_hip"),
    ("left_hip", "right_hip"),
    ("left_hip", "left_knee"),
    ("left_knee", "left_ankle"),
    ("right_hip", "right_knee"),
    ("right_knee", "right_ankle"),
)


class Visualizer:
    """Draws the landmark skeleton and a status HUD over a captured frame."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()
        self.font = cv2.FONT_HERSHEY_SIMPLEX

    def render(self, frame: Frame, result: PipelineResult) -> np.ndarray:
        """Returns a new BGR image; the frame itself is left untouched."""
        output_frame = cv2.cvtColor(frame.to_rgba().copy(), cv2.COLOR_RGBA2BGR)

        if self.config.draw_landmarks:
            self._draw_skeleton(output_frame, result)

        if self.config.draw_hud:
            self._draw_hud(output_frame, result)

        return output_frame

    def _draw_skeleton(self, image: np.ndarray, result: PipelineResult):
        threshold = self.config.min_landmark_confidence
        points = {
            name: (int(round(lm.x)), int(round(lm.y)))
            for name, lm in result.landmarks.items()
            if lm.confidence >= threshold
        }
        for start, end in SKELETON_CONNECTIONS:
            if start in points and end in points:
                cv2.line(image, points[start], points[end], self.config.connection_color, 2, cv2.LINE_AA)
        for point in points.values():
            cv2.circle(image, point, 3, self.config.landmark_color, -1, cv2.LINE_AA)

    def _draw_hud(self, image: np.ndarray, result: PipelineResult):
        hud_elements = [
            f"Status: {result.status.value}",
            f"Landmarks: {result.strategy.value}",
            f"Presence: {result.presence.confidence:.2f}",
            f"Processing: {result.processing_time_ms:.1f} ms",
            f"Quality: {result.quality.value}",
        ]
        for i, text in enumerate(hud_elements):
            cv2.putText(image, text, (10, 30 + i * 30), self.font, 0.7, (240, 240, 240), 2, cv2.LINE_AA)
