# tests/test_calibration.py
import pytest
from measure_engine.common.config import CalibrationConfig
from measure_engine.common.models import CalibrationContext, PresenceResult
from measure_engine.processing.calibration import (
    LEANING, STANDING, calibrate_from_observations, classify_pose, pixel_to_cm_ratio,
)
from conftest import make_landmarks

PRESENT = PresenceResult(has_human=True, confidence=0.8)


def test_ratio_scales_with_user_height():
    ratio = pixel_to_cm_ratio(100, 180, CalibrationContext(scale_factor=1.0))
    assert ratio == pytest.approx(40 / 100 * 180 / 175)
    assert ratio == pytest.approx(0.41142857)


def test_ratio_applies_scale_factor():
    assert pixel_to_cm_ratio(80, 175, CalibrationContext(scale_factor=1.2)) == pytest.approx(0.6)


def test_ratio_defaults_without_calibration():
    assert pixel_to_cm_ratio(100, 175) == pytest.approx(0.4)


def test_ratio_guards_zero_width():
    assert pixel_to_cm_ratio(0, 175) == 0.0
    assert pixel_to_cm_ratio(-3, 175) == 0.0


def test_pose_classification():
    config = CalibrationConfig()
    assert classify_pose(make_landmarks(), config) == STANDING
    tilted = make_landmarks(right_shoulder=(250, 130))
    assert classify_pose(tilted, config) == LEANING


def test_too_few_frames_gives_default_context():
    observations = [(PRESENT, make_landmarks())] * 4 + [(PresenceResult(), make_landmarks())] * 3
    result = calibrate_from_observations(observations)
    assert result.is_valid is False
    assert result.valid_frames == 4
    assert result.context == CalibrationContext(scale_factor=1.0, confidence=0.5)


def test_stable_standing_sequence():
    result = calibrate_from_observations([(PRESENT, make_landmarks())] * 5)
    assert result.is_valid is True
    assert result.pose_stability == pytest.approx(1.0)
    assert result.scale_factor == pytest.approx(1.0)
    assert result.confidence == pytest.approx(0.9)
    assert result.avg_pose_confidence == pytest.approx(0.8)


def test_mixed_poses_lower_stability():
    observations = [(PRESENT, make_landmarks())] * 4 + [(PRESENT, make_landmarks(right_shoulder=(250, 130)))]
    result = calibrate_from_observations(observations)
    assert result.pose_stability == pytest.approx(0.75)
    assert result.scale_factor == pytest.approx(0.8)
    assert result.confidence == pytest.approx(0.775)
    assert result.is_valid is True


def test_low_presence_confidence_is_not_valid():
    weak = PresenceResult(has_human=True, confidence=0.1)
    result = calibrate_from_observations([(weak, make_landmarks())] * 6)
    assert result.confidence == pytest.approx(0.55)
    assert result.is_valid is False


def test_ratio_against_another_reference_height():
    assert pixel_to_cm_ratio(100, 180, reference_height_cm=180) == pytest.approx(0.4)
