# body_measurement_engine/measure_engine/processing/landmark_filter.py
import numpy as np
from typing import Optional
from ..common.config import SmoothingConfig
from ..common.models import BodyLandmarks


class OneEuroFilter:
    """
    A vectorized One-Euro filter over an array signal.
    Timestamps are in seconds. A sample that arrives without time advancing
    replaces the filtered value as is.
    """
    def __init__(self, min_cutoff=0.5, beta=0.05, d_cutoff=1.0):
        self.min_cutoff = min_cutoff
        self.beta = beta
        self.d_cutoff = d_cutoff
        self.x_prev = None
        self.dx_prev = None
        self.t_prev = None

    @staticmethod
    def _alpha(te, cutoff):
        r = 2 * np.pi * cutoff * te
        return r / (r + 1)

    def reset(self):
        self.x_prev = None
        self.dx_prev = None
        self.t_prev = None

    def __call__(self, x: np.ndarray, t: float) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        if self.t_prev is None:
            self.t_prev = t
            self.x_prev = x
            self.dx_prev = np.zeros_like(x)
            return x

        te = t - self.t_prev
        # No elapsed time to weigh the sample against: the newest sample wins
        if te < 1e-6:
            self.x_prev = x
            return x

        alpha_d = self._alpha(te, self.d_cutoff)
        dx = (x - self.x_prev) / te
        dx_hat = alpha_d * dx + (1 - alpha_d) * self.dx_prev

        cutoff = self.min_cutoff + self.beta * np.abs(dx_hat)
        alpha = self._alpha(te, cutoff)
        x_hat = alpha * x + (1 - alpha) * self.x_prev

        self.x_prev = x_hat
        self.dx_prev = dx_hat
        self.t_prev = t
        return x_hat


class LandmarkSmoother:
    """Smooths landmark positions across frames. Confidences pass through untouched."""

    def __init__(self, config: Optional[SmoothingConfig] = None):
        config = config or SmoothingConfig()
        self.filter = OneEuroFilter(config.min_cutoff, config.beta, config.d_cutoff)

    def __call__(self, landmarks: BodyLandmarks, timestamp_ms: float) -> BodyLandmarks:
        smoothed = self.filter(landmarks.positions(), timestamp_ms / 1000.0)
        return landmarks.with_positions(smoothed)

    def reset(self):
        self.filter.reset()
