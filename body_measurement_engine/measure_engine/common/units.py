# body_measurement_engine/measure_engine/common/units.py
import math
from typing import Tuple

CM_PER_INCH = 2.54


def round_half_up(value: float, digits: int = 0) -> float:
    """Rounds .5 away from zero for positive values, unlike the built-in round()."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def cm_to_inches(value_cm: float) -> float:
    return round_half_up(value_cm / CM_PER_INCH, 1)


def cm_to_feet_inches(value_cm: float) -> Tuple[int, float]:
    total_inches = value_cm / CM_PER_INCH
    feet = int(total_inches // 12)
    return feet, round_half_up(total_inches % 12, 1)


def inches_to_cm(value_in: float) -> float:
    return round_half_up(value_in * CM_PER_INCH)
