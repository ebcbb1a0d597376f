# tests/test_config.py
import logging
from pathlib import Path
import pytest
import yaml
from pydantic import ValidationError
from measure_engine.common.config import PipelineConfig, configure_logging, load_config
from measure_engine.common.enums import LogLevel

REFERENCE_CONFIG = Path(__file__).resolve().parents[1] / "body_measurement_engine" / "config.yaml"


def test_defaults_without_path():
    config = load_config()
    assert config.presence.detection_threshold == 0.6
    assert config.edges.magnitude_threshold == 100
    assert config.calibration.reference_shoulder_width_cm == 40
    assert config.anthropometry.chest_to_shoulder == 2.5
    assert config.validation.ranges["waist"] == (50, 140)


def test_reference_file_matches_defaults():
    assert load_config(REFERENCE_CONFIG) == PipelineConfig()


def test_partial_override(tmp_path):
    path = tmp_path / "scanner.yaml"
    path.write_text(yaml.safe_dump({
        "presence": {"detection_threshold": 0.5},
        "reference_height_cm": 180,
        "log_level": "DEBUG",
    }))
    config = load_config(path)
    assert config.reference_height_cm == 180
    assert config.presence.detection_threshold == 0.5
    assert config.presence.head_weight == 0.3
    assert config.log_level is LogLevel.DEBUG


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == PipelineConfig()


def test_unknown_keys_are_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"presence": {"head_wieght": 0.4}}))
    with pytest.raises(ValidationError):
        load_config(path)


def test_missing_file_propagates(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_configure_logging_sets_package_level():
    logger = configure_logging(LogLevel.WARNING)
    assert logger.name == "measure_engine"
    assert logger.level == logging.WARNING
    handlers = len(logger.handlers)
    configure_logging(LogLevel.DEBUG)
    assert len(logger.handlers) == handlers


def test_reference_height_lives_at_the_top_level(tmp_path):
    path = tmp_path / "sections.yaml"
    path.write_text(yaml.safe_dump({"validation": {"reference_height_cm": 180}}))
    with pytest.raises(ValidationError):
        load_config(path)
