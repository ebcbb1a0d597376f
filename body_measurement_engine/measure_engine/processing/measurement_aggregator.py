# body_measurement_engine/measure_engine/processing/measurement_aggregator.py
import logging
import numpy as np
from collections import deque
from typing import Deque, Dict, List, Optional
from ..common.config import SmoothingConfig
from ..common.models import MEASUREMENT_NAMES, Measurement, MeasurementReport
from ..common.units import round_half_up


def moving_average(values: List[float], window: int) -> List[float]:
    """Centered moving average; the window is clipped at both ends of the series."""
    n = len(values)
    smoothed = []
    for i in range(n):
        start = max(0, i - window // 2)
        end = min(n, start + window)
        smoothed.append(float(np.mean(values[start:end])))
    return smoothed


def find_outliers(values: List[float], threshold: float) -> List[float]:
    """Values further than `threshold` population standard deviations from the mean."""
    if len(values) < 3:
        return []
    data = np.asarray(values, dtype=np.float64)
    mean, std = data.mean(), data.std()
    return [float(v) for v in data[np.abs(data - mean) > threshold * std]]


class MeasurementAggregator:
    """
    Combines per-frame measurement reports into one robust estimate.

    Each measurement keeps a bounded history. Once the history fills the
    smoothing window the newest value is replaced by its moving average, and
    when any stored value lies beyond the outlier threshold the median of the
    history is used instead. Optional reference calibration then scales the
    value by reference / measured.
    """

    def __init__(self, config: Optional[SmoothingConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or SmoothingConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.history: Dict[str, Deque[float]] = {
            name: deque(maxlen=self.config.history_size) for name in MEASUREMENT_NAMES
        }
        self.calibration: Dict[str, float] = {}
        self.latest: Optional[MeasurementReport] = None

    def add(self, report: MeasurementReport):
        for name, measurement in report.items():
            self.history[name].append(measurement.value)
        self.latest = report

    def __len__(self) -> int:
        return len(self.history["height"])

    def value(self, name: str) -> float:
        values = list(self.history[name])
        if not values:
            return 0.0

        value = values[-1]
        if len(values) >= self.config.window_size:
            value = moving_average(values, self.config.window_size)[-1]

        if self.config.outlier_rejection:
            outliers = find_outliers(values, self.config.outlier_std_threshold)
            if outliers:
                value = sorted(values)[len(values) // 2]
                self.logger.debug("%s: %d outliers in %d frames, using median %.1f",
                                  name, len(outliers), len(values), value)

        return value * self.calibration.get(name, 1.0)

    def report(self) -> MeasurementReport:
        """
        The aggregated report. Values come from the history, confidences from the
        newest frame. Without any frame the report is empty.
        """
        if self.latest is None:
            return MeasurementReport.empty()
        fields = {}
        for name, measurement in self.latest.items():
            value = self.value(name)
            if name != "height":
                value = round_half_up(value)
            fields[name] = Measurement(value=value, confidence=measurement.confidence)
        return MeasurementReport(**fields)

    def set_calibration(self, name: str, reference_cm: float, measured_cm: float):
        """Scales `name` so that `measured_cm` reads as `reference_cm`, e.g. from a tape measure."""
        if name not in self.history:
            raise ValueError(f"Unknown measurement: {name}")
        if measured_cm <= 0:
            raise ValueError(f"Measured value must be positive, got {measured_cm}")
        self.calibration[name] = reference_cm / measured_cm
        self.logger.info("Calibrated %s: factor %.3f", name, self.calibration[name])

    def clear_calibration(self):
        self.calibration.clear()

    def statistics(self, name: str) -> Dict[str, float]:
        values = np.asarray(self.history[name], dtype=np.float64)
        if values.size == 0:
            return {"count": 0, "mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}
        return {
            "count": int(values.size),
            "mean": float(values.mean()),
            "std": float(values.std()),
            "min": float(values.min()),
            "max": float(values.max()),
        }

    def reset(self):
        for values in self.history.values():
            values.clear()
        self.latest = None
