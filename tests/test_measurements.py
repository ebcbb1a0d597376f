# tests/test_measurements.py
import logging
import pytest
from measure_engine.common.enums import ScanStep
from measure_engine.common.models import PixelDistances
from measure_engine.processing.calibration import pixel_to_cm_ratio
from measure_engine.processing.landmarks import empty_landmarks
from measure_engine.processing.measurements import convert_to_measurements, pixel_distances
from conftest import make_landmarks

DISTANCES = PixelDistances(
    shoulder_width=100,
    left_arm_length=150,
    right_arm_length=150,
    left_inseam=200,
    right_inseam=200,
    torso_height=100,
    head_height=50,
)


def test_pixel_distances_from_landmarks(standing_landmarks):
    distances = pixel_distances(standing_landmarks, 400, 400)
    assert distances.shoulder_width == pytest.approx(100)
    assert distances.left_arm_length == pytest.approx((30 ** 2 + 120 ** 2) ** 0.5)
    assert distances.left_inseam == pytest.approx(160)
    assert distances.torso_height == pytest.approx(120)
    assert distances.head_height == pytest.approx(50)
    assert distances.invalid_fields == ()


def test_shoulder_width_is_euclidean():
    tilted = make_landmarks(left_shoulder=(150, 110), right_shoulder=(210, 190))
    assert pixel_distances(tilted, 400, 400).shoulder_width == pytest.approx(100)


def test_invalid_distances_are_flagged_and_kept(caplog):
    with caplog.at_level(logging.WARNING):
        distances = pixel_distances(empty_landmarks(), 100, 100)
    assert distances.shoulder_width == 0.0
    assert set(distances.invalid_fields) == {
        "shoulder_width", "left_arm_length", "right_arm_length",
        "left_inseam", "right_inseam", "torso_height", "head_height",
    }
    assert "Invalid shoulder_width" in caplog.text


def test_distance_longer_than_frame_is_flagged(standing_landmarks):
    distances = pixel_distances(standing_landmarks, 150, 150)
    assert "left_inseam" in distances.invalid_fields
    assert distances.left_inseam == pytest.approx(160)


def test_front_view_conversion():
    values = convert_to_measurements(DISTANCES, 0.4, ScanStep.FRONT, 175)
    assert values == {
        "height": 175,
        "chest": 97,
        "waist": 83,
        "hips": 92,
        "shoulders": 40,
        "inseam": 80,
        "arm_length": 60,
        "neck": 11,
    }


def test_side_view_applies_depth_factor():
    values = convert_to_measurements(DISTANCES, 0.4, "side", 175)
    assert values["chest"] == 104
    assert values["waist"] == 88
    assert values["hips"] == 99
    assert values["shoulders"] == 40
    assert values["neck"] == 11


def test_shoulders_round_trip_through_ratio():
    ratio = pixel_to_cm_ratio(100, 180)
    values = convert_to_measurements(DISTANCES, ratio, ScanStep.FRONT, 180)
    assert values["shoulders"] == 41
    assert abs(values["shoulders"] - 100 * ratio) <= 0.5


def test_limb_lengths_average_left_and_right():
    uneven = DISTANCES.model_copy(update={"left_arm_length": 100, "right_arm_length": 200})
    values = convert_to_measurements(uneven, 0.4, ScanStep.FRONT, 175)
    assert values["arm_length"] == 60
