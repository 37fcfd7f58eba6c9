"""Curve Digitizer - Extract an X,Y data series from a plot image."""

__version__ = "1.0.0"

from .core.axis_detector import AxisDetectionResult, detect_axes
from .core.blacklist import BlacklistMask, build_blacklist
from .core.calibration import (
    CalibrationInput,
    DegenerateCalibrationError,
    PixelToDataMapper,
    build_mapper,
)
from .core.curve_tracer import map_and_sort, seed_color, trace_curve
from .core.geometry import Color, DataPoint, Line, Point, Rect
from .core.pixel_buffer import PixelBuffer
from .core.session import DigitizerSession, TraceSettings

__all__ = [
    "__version__",
    # Data model
    "Point",
    "Rect",
    "Line",
    "Color",
    "DataPoint",
    "PixelBuffer",
    # Detection
    "AxisDetectionResult",
    "detect_axes",
    # Calibration
    "CalibrationInput",
    "DegenerateCalibrationError",
    "PixelToDataMapper",
    "build_mapper",
    # Exclusion mask
    "BlacklistMask",
    "build_blacklist",
    # Tracing
    "seed_color",
    "trace_curve",
    "map_and_sort",
    # Orchestration
    "DigitizerSession",
    "TraceSettings",
]
