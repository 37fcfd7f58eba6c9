"""Exclusion mask for pixels belonging to axis and tick structure."""

from ..utils.config import config
from .axis_detector import AxisDetectionResult
from .geometry import Line, Point, dist2, distance_point_to_line


class BlacklistMask:
    """Predicate marking pixels near either axis line or any tick.

    A pixel is excluded when its perpendicular distance to an axis line is
    below `axis_band`, or its squared distance to a tick is below
    `tick_radius` squared.
    """

    def __init__(
        self,
        x_axis_line: Line,
        y_axis_line: Line,
        tick_points_x: list[Point],
        tick_points_y: list[Point],
        axis_band: float,
        tick_radius: float,
    ):
        self.x_axis_line = x_axis_line
        self.y_axis_line = y_axis_line
        self.ticks = tuple(tick_points_x) + tuple(tick_points_y)
        self.axis_band = axis_band
        self.tick_radius = tick_radius
        self._tick_r2 = tick_radius * tick_radius

    def contains(self, p: Point) -> bool:
        if distance_point_to_line(p, self.x_axis_line) < self.axis_band:
            return True
        if distance_point_to_line(p, self.y_axis_line) < self.axis_band:
            return True

        for tick in self.ticks:
            if dist2(p, tick) < self._tick_r2:
                return True
        return False

    __call__ = contains
    __contains__ = contains


def build_blacklist(
    detection: AxisDetectionResult,
    axis_band: float = None,
    tick_radius: float = None,
) -> BlacklistMask:
    """Blacklist for a detection result (defaults from config)."""
    return BlacklistMask(
        detection.x_axis_line,
        detection.y_axis_line,
        detection.tick_points_x,
        detection.tick_points_y,
        config.AXIS_BAND if axis_band is None else axis_band,
        config.TICK_RADIUS if tick_radius is None else tick_radius,
    )
