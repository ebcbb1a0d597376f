# tests/test_measurement_aggregator.py
import pytest
from measure_engine.common.config import SmoothingConfig
from measure_engine.common.models import MEASUREMENT_NAMES, Measurement, MeasurementReport
from measure_engine.processing.measurement_aggregator import (
    MeasurementAggregator, find_outliers, moving_average,
)


def report(chest, confidence=0.7, height=175):
    fields = {name: Measurement(value=50, confidence=confidence) for name in MEASUREMENT_NAMES}
    fields["height"] = Measurement(value=height, confidence=1.0)
    fields["chest"] = Measurement(value=chest, confidence=confidence)
    return MeasurementReport(**fields)


def aggregate(values, **config):
    aggregator = MeasurementAggregator(SmoothingConfig(**config))
    for value in values:
        aggregator.add(report(value))
    return aggregator


def test_moving_average_clips_the_window():
    assert moving_average([1, 2, 3, 4, 5], 3) == pytest.approx([2.0, 2.0, 3.0, 4.0, 4.5])
    assert moving_average([10], 5) == [10.0]


def test_outliers_need_three_values():
    assert find_outliers([0, 1000], 2.0) == []
    assert find_outliers([100] * 9 + [160], 2.0) == [160.0]
    assert find_outliers([5, 5, 5], 2.0) == []


def test_short_history_uses_the_newest_value():
    aggregator = aggregate([90, 95])
    assert aggregator.value("chest") == 95


def test_full_window_uses_the_moving_average():
    # no value is beyond two standard deviations, so the trailing average of 94, 96, 98 wins
    assert aggregate([90, 92, 94, 96, 98]).value("chest") == pytest.approx(96)


def test_outlier_switches_to_the_median():
    assert aggregate([100] * 9 + [160]).value("chest") == 100
    assert aggregate([100] * 9 + [160], outlier_rejection=False).value("chest") == pytest.approx(120)


def test_history_is_bounded():
    aggregator = aggregate(range(30), history_size=20)
    stats = aggregator.statistics("chest")
    assert stats["count"] == 20
    assert stats["min"] == 10
    assert stats["max"] == 29
    assert len(aggregator) == 20


def test_report_rounds_values_and_keeps_newest_confidence():
    aggregator = MeasurementAggregator()
    aggregator.add(report(100, confidence=0.2))
    aggregator.add(report(101, confidence=0.2))
    aggregator.add(report(104, confidence=0.9))
    aggregator.add(report(105, confidence=0.9))
    aggregator.add(report(107, confidence=0.9))
    result = aggregator.report()
    # (104 + 105 + 107) / 3 = 105.33
    assert result.chest.value == 105
    assert result.chest.confidence == 0.9
    assert result.height == Measurement(value=175, confidence=1.0)


def test_empty_aggregator_gives_empty_report():
    aggregator = MeasurementAggregator()
    assert aggregator.report() == MeasurementReport.empty()
    assert aggregator.value("chest") == 0.0
    assert aggregator.statistics("chest")["count"] == 0


def test_reference_calibration():
    aggregator = aggregate([80])
    aggregator.set_calibration("chest", reference_cm=100, measured_cm=80)
    assert aggregator.value("chest") == pytest.approx(100)
    assert aggregator.report().chest.value == 100
    aggregator.clear_calibration()
    assert aggregator.value("chest") == 80


def test_calibration_rejects_bad_input():
    aggregator = MeasurementAggregator()
    with pytest.raises(ValueError):
        aggregator.set_calibration("chest", 100, 0)
    with pytest.raises(ValueError):
        aggregator.set_calibration("sleeve", 60, 58)


def test_statistics_and_reset():
    aggregator = aggregate([98, 100, 102])
    stats = aggregator.statistics("chest")
    assert stats["mean"] == pytest.approx(100)
    assert stats["std"] == pytest.approx((8 / 3) ** 0.5)
    aggregator.reset()
    assert len(aggregator) == 0
    assert aggregator.report() == MeasurementReport.empty()
