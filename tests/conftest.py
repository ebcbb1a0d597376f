# tests/conftest.py
import numpy as np
import pytest
from measure_engine.common.models import BodyLandmark, BodyLandmarks, Frame, LANDMARK_NAMES
from measure_engine.processing.measurement_pipeline import MeasurementPipeline


def rgba_canvas(width, height, value=0):
    canvas = np.full((height, width, 4), value, dtype=np.uint8)
    canvas[..., 3] = 255
    return canvas


def body_rgba(width=200, height=200):
    """Dark background with a bright elliptical head, a torso block and two legs."""
    canvas = rgba_canvas(width, height)
    ys, xs = np.mgrid[0:height, 0:width]
    head = ((xs - 100) / 8.0) ** 2 + ((ys - 20) / 10.0) ** 2 <= 1.0
    canvas[head, :3] = 255
    canvas[45:130, 70:131, :3] = 255
    canvas[130:, 80:90, :3] = 255
    canvas[130:, 110:120, :3] = 255
    return canvas


@pytest.fixture
def uniform_frame():
    return Frame.from_rgba(rgba_canvas(200, 200, value=128), timestamp_ms=0.0)


@pytest.fixture
def body_frame():
    return Frame.from_rgba(body_rgba(), timestamp_ms=1000.0)


@pytest.fixture
def pipeline():
    return MeasurementPipeline()


def make_landmarks(confidence=1.0, **positions):
    """Standing figure on a 400x400 frame; keyword arguments override (x, y) per landmark."""
    defaults = {
        "nose": (200, 60),
        "left_shoulder": (150, 110),
        "right_shoulder": (250, 110),
        "left_elbow": (130, 170),
        "right_elbow": (270, 170),
        "left_wrist": (120, 230),
        "right_wrist": (280, 230),
        "left_hip": (170, 230),
        "right_hip": (230, 230),
        "left_knee": (170, 310),
        "right_knee": (230, 310),
        "left_ankle": (170, 390),
        "right_ankle": (230, 390),
    }
    defaults.update(positions)
    return BodyLandmarks(**{
        name: BodyLandmark(x=defaults[name][0], y=defaults[name][1], confidence=confidence)
        for name in LANDMARK_NAMES
    })


@pytest.fixture
def standing_landmarks():
    return make_landmarks()
