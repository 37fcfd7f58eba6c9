"""Immutable digitizing session.

A session holds the operator inputs (buffer, axis ROIs, calibration picks,
seeds and trace settings) and derives everything else from them top-down:

    buffer -> detection -> mapper / blacklist -> trace -> result

Every `with_*` method returns a new session; inputs downstream of the one
being replaced are dropped and all derived values are recomputed.
"""

from dataclasses import dataclass, field, replace
from typing import Optional

from ..utils.config import config
from .axis_detector import AxisDetectionResult, detect_axes
from .blacklist import BlacklistMask, build_blacklist
from .calibration import (
    CalibrationInput,
    PixelToDataMapper,
    build_mapper_from_input,
)
from .curve_tracer import TRACE_MODES, map_and_sort, seed_color, trace_curve
from .geometry import Color, DataPoint, Point, Rect
from .pixel_buffer import PixelBuffer


@dataclass(frozen=True)
class TraceSettings:
    """Operator-tunable tracing parameters."""
    threshold: float = config.CURVE_THRESHOLD
    mode: str = config.TRACE_MODE
    max_jump: float = config.MAX_JUMP
    reverse_x: bool = False
    axis_band: float = config.AXIS_BAND
    tick_radius: float = config.TICK_RADIUS

    def __post_init__(self):
        if self.mode not in TRACE_MODES:
            raise ValueError(f"Unknown trace mode: {self.mode!r}")
        if not config.CURVE_THRESHOLD_MIN <= self.threshold <= config.CURVE_THRESHOLD_MAX:
            raise ValueError(
                f"Threshold must be in [{config.CURVE_THRESHOLD_MIN}, "
                f"{config.CURVE_THRESHOLD_MAX}], got {self.threshold}"
            )


@dataclass(frozen=True)
class DigitizerSession:
    buffer: Optional[PixelBuffer] = None
    axis_roi_x: Optional[Rect] = None
    axis_roi_y: Optional[Rect] = None
    calibration: Optional[CalibrationInput] = None
    seeds: tuple = ()
    settings: TraceSettings = field(default_factory=TraceSettings)

    detection: Optional[AxisDetectionResult] = field(init=False, default=None)
    mapper: Optional[PixelToDataMapper] = field(init=False, default=None)
    blacklist: Optional[BlacklistMask] = field(init=False, default=None)
    color: Optional[Color] = field(init=False, default=None)
    trace: tuple = field(init=False, default=())
    result: tuple = field(init=False, default=())

    def __post_init__(self):
        if len(self.seeds) > 3:
            raise ValueError(f"Expected at most 3 seeds, got {len(self.seeds)}")

        detection = None
        if self.buffer is not None and self.axis_roi_x is not None and self.axis_roi_y is not None:
            detection = detect_axes(self.buffer, self.axis_roi_x, self.axis_roi_y)

        mapper = None
        if self.calibration is not None:
            mapper = build_mapper_from_input(self.calibration)

        blacklist = None
        if detection is not None:
            blacklist = build_blacklist(
                detection, self.settings.axis_band, self.settings.tick_radius
            )

        color = None
        trace = ()
        if self.buffer is not None and len(self.seeds) == 3:
            color = seed_color(self.buffer, list(self.seeds))
            trace = tuple(trace_curve(
                self.buffer,
                list(self.seeds),
                color,
                threshold=self.settings.threshold,
                mode=self.settings.mode,
                max_jump=self.settings.max_jump,
                blacklist=blacklist,
            ))

        result = ()
        if mapper is not None and trace:
            result = tuple(map_and_sort(trace, mapper, self.settings.reverse_x))

        object.__setattr__(self, "detection", detection)
        object.__setattr__(self, "mapper", mapper)
        object.__setattr__(self, "blacklist", blacklist)
        object.__setattr__(self, "color", color)
        object.__setattr__(self, "trace", trace)
        object.__setattr__(self, "result", result)

    @property
    def seeds_ready(self) -> bool:
        return len(self.seeds) == 3

    @property
    def data_points(self) -> list[DataPoint]:
        return list(self.result)

    def with_buffer(self, buffer: PixelBuffer) -> "DigitizerSession":
        """New image (or new plot crop); keeps only the trace settings."""
        return DigitizerSession(buffer=buffer, settings=self.settings)

    def with_axis_rois(self, axis_roi_x: Rect, axis_roi_y: Rect) -> "DigitizerSession":
        return replace(
            self, axis_roi_x=axis_roi_x, axis_roi_y=axis_roi_y, calibration=None, seeds=()
        )

    def with_calibration(self, calibration: CalibrationInput) -> "DigitizerSession":
        """Raises DegenerateCalibrationError for a degenerate calibration."""
        return replace(self, calibration=calibration, seeds=())

    def with_seed(self, seed: Point) -> "DigitizerSession":
        """Add one seed; clicks beyond the third are ignored."""
        if len(self.seeds) >= 3:
            return self
        return replace(self, seeds=self.seeds + (seed,))

    def with_seeds(self, seeds) -> "DigitizerSession":
        return replace(self, seeds=tuple(seeds))

    def clear_seeds(self) -> "DigitizerSession":
        return replace(self, seeds=())

    def with_settings(self, **changes) -> "DigitizerSession":
        """Retrace with updated TraceSettings fields."""
        return replace(self, settings=replace(self.settings, **changes))
