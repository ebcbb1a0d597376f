# body_measurement_engine/measure_engine/common/enums.py
from enum import Enum

class PipelineStatus(str, Enum):
    """Outcome of a single pipeline invocation."""
    NO_FRAME = "NO_FRAME"
    NO_BODY = "NO_BODY"
    TRACKING = "TRACKING"
    DEGENERATE = "DEGENERATE"
    ERROR = "ERROR"

class LandmarkStrategy(str, Enum):
    """Which landmark generator produced a BodyLandmarks record."""
    PROPORTIONAL = "PROPORTIONAL"
    CONTOUR = "CONTOUR"
    EMPTY = "EMPTY"

class ScanStep(str, Enum):
    """Acquisition phase; the side view applies its own adjustment factors."""
    FRONT = "front"
    SIDE = "side"

class MeasurementQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

class LogLevel(str, Enum):
    """Defines logging levels accepted by the configuration file."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
