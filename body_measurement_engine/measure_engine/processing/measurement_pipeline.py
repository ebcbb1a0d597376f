# body_measurement_engine/measure_engine/processing/measurement_pipeline.py
import logging
import time
import numpy as np
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union
from ..common.config import PipelineConfig
from ..common.enums import LandmarkStrategy, PipelineStatus, ScanStep
from ..common.models import (
    BodyLandmarks, CalibrationContext, CalibrationResult, Frame, Measurement,
    MeasurementReport, PipelineResult, PresenceResult,
)
from ..vision.contours import find_contours, largest_contour
from ..vision.edges import sobel_edges
from ..vision.grayscale import to_grayscale
from ..vision.presence import presence_accepted, score_presence
from .calibration import calibrate_from_observations, pixel_to_cm_ratio
from .landmark_filter import LandmarkSmoother
from .landmarks import ContourStrategy, ProportionalStrategy, empty_landmarks
from .measurement_aggregator import MeasurementAggregator
from .measurements import convert_to_measurements, pixel_distances
from .validation import grade_report, measurement_confidence, validate_and_correct

Step = Union[ScanStep, str]


def _has_pixels(frame: Optional[Frame]) -> bool:
    return frame is not None and frame.width > 0 and frame.height > 0


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class MeasurementPipeline:
    """
    Runs a frame through grayscale, presence, edges, contours, landmarks,
    calibration, conversion and validation. Holds configuration only: every
    call is independent of the previous ones.
    """

    def __init__(self, config: Optional[PipelineConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or PipelineConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.proportional = ProportionalStrategy(self.config.landmarks, self.config.reference_height_cm)
        self.contour = ContourStrategy(self.config.landmarks, self.config.reference_height_cm)

    def _user_height(self, user_height_cm: Optional[float]) -> float:
        return user_height_cm if user_height_cm is not None else self.config.reference_height_cm

    def _default_calibration(self) -> CalibrationContext:
        return CalibrationContext(
            scale_factor=self.config.calibration.default_scale_factor,
            confidence=self.config.calibration.default_confidence,
        )

    def detect_presence(self, frame: Optional[Frame]) -> PresenceResult:
        """Scores a frame for a human body. A missing or empty frame has no body."""
        if not _has_pixels(frame):
            return PresenceResult()
        return score_presence(to_grayscale(frame), self.config.presence)

    def _select_landmarks(self, frame: Optional[Frame], gray: Optional[np.ndarray],
                          presence: PresenceResult, accepted: bool,
                          user_height_cm: Optional[float],
                          keypoints: Optional[Mapping[str, float]]) -> Tuple[LandmarkStrategy, BodyLandmarks]:
        if not _has_pixels(frame):
            return LandmarkStrategy.EMPTY, empty_landmarks()

        if accepted:
            if gray is None:
                gray = to_grayscale(frame)
            edges = sobel_edges(gray, self.config.edges.magnitude_threshold)
            contours = find_contours(edges, self.config.contours.min_contour_points)
            body = largest_contour(contours, self.config.contours.min_landmark_points)
            if body is not None:
                self.logger.debug("Contour landmarks from the largest of %d contours (%d points)",
                                  len(contours), len(body))
                return LandmarkStrategy.CONTOUR, self.contour.estimate(body, presence.confidence)
            self.logger.debug("No contour of %d points, using proportional landmarks",
                              self.config.contours.min_landmark_points)

        landmarks = self.proportional.estimate(
            frame.width, frame.height, presence.confidence,
            user_height_cm=self._user_height(user_height_cm), keypoints=keypoints)
        return LandmarkStrategy.PROPORTIONAL, landmarks

    def estimate_landmarks(self, frame: Optional[Frame], presence: PresenceResult,
                           user_height_cm: Optional[float] = None,
                           keypoints: Optional[Mapping[str, float]] = None) -> BodyLandmarks:
        """Always returns all 13 landmarks; zero-filled when there is nothing to look at."""
        _, landmarks = self._select_landmarks(frame, None, presence, presence.has_human, user_height_cm, keypoints)
        return landmarks

    def _measure(self, landmarks: BodyLandmarks, frame_width: int, frame_height: int, step: Step,
                 user_height_cm: Optional[float],
                 calibration: Optional[CalibrationContext]) -> Tuple[MeasurementReport, bool]:
        height_cm = self._user_height(user_height_cm)
        calibration = calibration or self._default_calibration()
        distances = pixel_distances(landmarks, frame_width, frame_height, logger=self.logger)

        ratio = pixel_to_cm_ratio(distances.shoulder_width, height_cm, calibration, self.config.calibration,
                                  reference_height_cm=self.config.reference_height_cm)
        if ratio <= 0 or height_cm <= 0:
            self.logger.warning("Degenerate geometry: shoulder width %.2f px, height %.1f cm",
                                distances.shoulder_width, height_cm)
            return MeasurementReport.empty(), True
        self.logger.debug("Pixel-to-cm ratio %.4f (shoulder %.1f px)", ratio, distances.shoulder_width)

        values = convert_to_measurements(
            distances, ratio, ScanStep(step), height_cm,
            config=self.config.anthropometry,
            reference_height_cm=self.config.reference_height_cm)
        values = validate_and_correct(values, height_cm, self.config.validation, logger=self.logger,
                                      reference_height_cm=self.config.reference_height_cm)
        confidences = measurement_confidence(landmarks, distances, calibration.confidence, self.config.confidence)

        report = MeasurementReport(**{
            name: Measurement(value=values[name], confidence=confidences[name]) for name in values
        })
        return report, False

    def measure_landmarks(self, landmarks: BodyLandmarks, frame_width: int, frame_height: int,
                          step: Step = ScanStep.FRONT, user_height_cm: Optional[float] = None,
                          calibration: Optional[CalibrationContext] = None) -> MeasurementReport:
        """Converts an existing landmark set into a validated measurement report."""
        report, _ = self._measure(landmarks, frame_width, frame_height, step, user_height_cm, calibration)
        return report

    def process_frame(self, frame: Optional[Frame], step: Step = ScanStep.FRONT,
                      user_height_cm: Optional[float] = None,
                      calibration: Optional[CalibrationContext] = None,
                      keypoints: Optional[Mapping[str, float]] = None,
                      time_in_position_ms: Optional[float] = None) -> PipelineResult:
        """
        Processes a single frame end to end. Never raises for frame content:
        failures, an unknown step included, come back as a result with a
        non-TRACKING status. The result of an unknown step carries no step.

        When `time_in_position_ms` is given, presence must also pass the dwell gate
        before the contour path is tried.
        """
        start_time = time.perf_counter()
        timestamp = frame.timestamp_ms if frame is not None else 0.0
        metrics: Dict[str, float] = {}
        scan_step: Optional[ScanStep] = None

        try:
            scan_step = ScanStep(step)
            if not _has_pixels(frame):
                self.logger.debug("No frame to process")
                return PipelineResult(
                    timestamp_ms=timestamp,
                    processing_time_ms=_elapsed_ms(start_time),
                    status=PipelineStatus.NO_FRAME,
                    step=scan_step,
                    presence=PresenceResult(),
                    strategy=LandmarkStrategy.EMPTY,
                    landmarks=empty_landmarks(),
                    report=MeasurementReport.empty(),
                )

            stage = time.perf_counter()
            gray = to_grayscale(frame)
            metrics["grayscale_ms"] = _elapsed_ms(stage)

            stage = time.perf_counter()
            presence = score_presence(gray, self.config.presence)
            accepted = presence.has_human
            if time_in_position_ms is not None:
                accepted = presence_accepted(presence, time_in_position_ms, self.config.presence)
            metrics["presence_ms"] = _elapsed_ms(stage)

            stage = time.perf_counter()
            strategy, landmarks = self._select_landmarks(frame, gray, presence, accepted, user_height_cm, keypoints)
            metrics["landmarks_ms"] = _elapsed_ms(stage)

            stage = time.perf_counter()
            report, degenerate = self._measure(landmarks, frame.width, frame.height, scan_step, user_height_cm, calibration)
            metrics["measurements_ms"] = _elapsed_ms(stage)

            if degenerate:
                status = PipelineStatus.DEGENERATE
            elif accepted:
                status = PipelineStatus.TRACKING
            else:
                status = PipelineStatus.NO_BODY

            result = PipelineResult(
                timestamp_ms=timestamp,
                processing_time_ms=_elapsed_ms(start_time),
                status=status,
                step=scan_step,
                presence=presence,
                strategy=strategy,
                landmarks=landmarks,
                report=report,
                quality=grade_report(report, self.config.confidence),
                performance_metrics=metrics,
            )
            self.logger.debug("Frame %.0f: %s via %s, presence %.2f, %.1f ms",
                              timestamp, status.value, strategy.value, presence.confidence,
                              result.processing_time_ms)
            return result
        except Exception as e:
            self.logger.error("Measurement pipeline failed: %s", e)
            return PipelineResult(
                timestamp_ms=timestamp,
                processing_time_ms=_elapsed_ms(start_time),
                status=PipelineStatus.ERROR,
                step=scan_step,
                presence=PresenceResult(),
                strategy=LandmarkStrategy.EMPTY,
                landmarks=empty_landmarks(),
                report=MeasurementReport.empty(),
                error=str(e),
                performance_metrics=metrics,
            )

    def estimate_measurements(self, frame: Optional[Frame], step: Step = ScanStep.FRONT,
                              user_height_cm: Optional[float] = None,
                              calibration: Optional[CalibrationContext] = None) -> MeasurementReport:
        return self.process_frame(frame, step, user_height_cm, calibration).report

    def calibrate_from_frames(self, frames: Iterable[Optional[Frame]]) -> CalibrationResult:
        """Scale correction from a short history of frames of a subject standing still."""
        try:
            observations = []
            for frame in frames:
                presence = self.detect_presence(frame)
                observations.append((presence, self.estimate_landmarks(frame, presence)))
            return calibrate_from_observations(observations, self.config.calibration, logger=self.logger)
        except Exception as e:
            self.logger.error("Calibration failed: %s", e)
            return CalibrationResult(
                is_valid=False,
                scale_factor=self.config.calibration.default_scale_factor,
                confidence=self.config.calibration.default_confidence,
            )

    def estimate_measurements_from_history(self, frames: Iterable[Optional[Frame]],
                                           step: Step = ScanStep.FRONT,
                                           user_height_cm: Optional[float] = None,
                                           calibration: Optional[CalibrationContext] = None,
                                           keypoints: Optional[Mapping[str, float]] = None,
                                           aggregator: Optional[MeasurementAggregator] = None) -> MeasurementReport:
        """
        Measures every frame of a history and aggregates the reports per
        measurement. Landmark positions are smoothed over time before each frame
        is measured. Frames without pixels or with degenerate geometry are
        skipped; without any usable frame the report is empty.

        Pass an `aggregator` to carry reference calibration or history across calls.
        """
        smoother = LandmarkSmoother(self.config.smoothing)
        if aggregator is None:
            aggregator = MeasurementAggregator(self.config.smoothing, logger=self.logger)
        try:
            for frame in frames:
                if not _has_pixels(frame):
                    continue
                presence = self.detect_presence(frame)
                landmarks = smoother(self.estimate_landmarks(frame, presence, user_height_cm, keypoints),
                                     frame.timestamp_ms)
                report, degenerate = self._measure(landmarks, frame.width, frame.height, step,
                                                   user_height_cm, calibration)
                if not degenerate:
                    aggregator.add(report)
            self.logger.debug("Aggregated %d frames", len(aggregator))
            return aggregator.report()
        except Exception as e:
            self.logger.error("History measurement failed: %s", e)
            return MeasurementReport.empty()


def detect_presence(frame: Optional[Frame], config: Optional[PipelineConfig] = None) -> PresenceResult:
    return MeasurementPipeline(config).detect_presence(frame)


def estimate_landmarks(frame: Optional[Frame], presence: PresenceResult,
                       user_height_cm: Optional[float] = None,
                       keypoints: Optional[Mapping[str, float]] = None,
                       config: Optional[PipelineConfig] = None) -> BodyLandmarks:
    return MeasurementPipeline(config).estimate_landmarks(frame, presence, user_height_cm, keypoints)


def estimate_measurements(frame: Optional[Frame], step: Step = ScanStep.FRONT,
                          user_height_cm: Optional[float] = None,
                          calibration: Optional[CalibrationContext] = None,
                          config: Optional[PipelineConfig] = None,
                          logger: Optional[logging.Logger] = None) -> MeasurementReport:
    return MeasurementPipeline(config, logger).estimate_measurements(frame, step, user_height_cm, calibration)
