# body_measurement_engine/measure_engine/vision/presence.py
import math
import numpy as np
from typing import Dict, List, Tuple
from ..common.config import PresenceConfig
from ..common.models import PresenceResult


def _band_rows(height: int, band: Tuple[float, float]) -> Tuple[int, int]:
    return int(math.floor(height * band[0])), int(math.floor(height * band[1]))


def detect_circular_regions(gray: np.ndarray, config: PresenceConfig) -> List[Tuple[int, int, float]]:
    """
    Samples a grid in the head band and keeps points whose surrounding ring differs
    strongly from the center. Returns (x, y, score) per head-like point.
    """
    height, width = gray.shape
    y0, y1 = _band_rows(height, config.head_band)
    ys = np.arange(y0, y1, config.head_grid_step)
    xs = np.arange(config.head_margin, width - config.head_margin, config.head_grid_step)
    if ys.size == 0 or xs.size == 0:
        return []

    angles = np.radians(np.arange(config.head_ring_points) * (360.0 / config.head_ring_points))
    ring_dx = config.head_ring_radius * np.cos(angles)
    ring_dy = config.head_ring_radius * np.sin(angles)

    grid_y, grid_x = np.meshgrid(ys, xs, indexing="ij")
    check_x = np.floor(grid_x[..., None] + ring_dx).astype(np.int64)
    check_y = np.floor(grid_y[..., None] + ring_dy).astype(np.int64)
    inside = (check_x >= 0) & (check_x < width) & (check_y >= 0) & (check_y < height)

    values = gray[np.clip(check_y, 0, height - 1), np.clip(check_x, 0, width - 1)].astype(np.int32)
    centers = gray[grid_y, grid_x].astype(np.int32)[..., None]
    hits = ((np.abs(centers - values) > config.head_intensity_delta) & inside).sum(axis=-1)

    regions = []
    for iy, ix in zip(*np.nonzero(hits > config.head_min_ring_hits)):
        score = float(hits[iy, ix]) / config.head_ring_points
        regions.append((int(grid_x[iy, ix]), int(grid_y[iy, ix]), score))
    return regions


def detect_horizontal_lines(gray: np.ndarray, config: PresenceConfig) -> List[Tuple[int, float]]:
    """Rows in the shoulder band where most neighbouring pixels are nearly equal."""
    height, width = gray.shape
    y0, y1 = _band_rows(height, config.shoulder_band)
    rows = np.arange(y0, y1, config.shoulder_row_step)
    if rows.size == 0 or width < 3:
        return []

    band = gray[rows].astype(np.int32)
    flat = np.abs(band[:, :-2] - band[:, 2:]) < config.shoulder_flat_delta
    strength = flat.sum(axis=1)
    return [
        (int(y), float(s) / width)
        for y, s in zip(rows, strength)
        if s > width * config.shoulder_min_flat_fraction
    ]


def vertical_structure_strength(gray: np.ndarray, band: Tuple[float, float], config: PresenceConfig) -> float:
    """Average fraction of vertically adjacent pixel pairs that are nearly equal."""
    height, width = gray.shape
    y0, y1 = _band_rows(height, band)
    span = y1 - y0
    columns = np.arange(int(math.floor(width * config.column_band[0])),
                        int(math.floor(width * config.column_band[1])),
                        config.column_step)
    if span <= 0 or columns.size == 0:
        return 0.0

    stripe = gray[y0:y1, columns].astype(np.int32)
    flat = np.abs(stripe[:-1] - stripe[1:]) < config.vertical_flat_delta
    per_column = flat.sum(axis=0) / span
    return float(per_column.mean())


def presence_features(gray: np.ndarray, config: PresenceConfig) -> Dict[str, bool]:
    """Which of the four body-part heuristics fired."""
    return {
        "head": len(detect_circular_regions(gray, config)) > 0,
        "shoulders": len(detect_horizontal_lines(gray, config)) > 0,
        "torso": vertical_structure_strength(gray, config.torso_band, config) > config.torso_min_strength,
        "legs": vertical_structure_strength(gray, config.leg_band, config) > config.leg_min_strength,
    }


def score_presence(gray: np.ndarray, config: PresenceConfig) -> PresenceResult:
    """Scores a grayscale frame for human-like structure."""
    if gray.size == 0:
        return PresenceResult(has_human=False, confidence=0.0)
    if int(gray.max()) - int(gray.min()) < config.min_contrast:
        return PresenceResult(has_human=False, confidence=0.0)

    features = presence_features(gray, config)
    weights = {
        "head": config.head_weight,
        "shoulders": config.shoulder_weight,
        "torso": config.torso_weight,
        "legs": config.leg_weight,
    }
    score = 0.0
    for name, weight in weights.items():
        if features[name]:
            score += weight
    score = min(score, 1.0)
    return PresenceResult(has_human=score > config.detection_threshold, confidence=score)


def presence_accepted(presence: PresenceResult, time_in_position_ms: float, config: PresenceConfig) -> bool:
    """Presence only counts once the caller has held the subject in frame long enough."""
    return presence.has_human and time_in_position_ms >= config.min_dwell_ms
