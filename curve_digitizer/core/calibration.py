"""Pixel to data calibration from two picked points per axis.

Each axis is an independent 1-D projection: a pixel is projected onto the
unit direction between the axis's two calibration pixels and scaled by
(value2 - value1) over the signed projected span. The axes need not be
grid aligned or perpendicular, and there is no coupling between X and Y.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..utils.config import config
from .geometry import DataPoint, Point, dist2, dot, normalize, sub

logger = logging.getLogger(__name__)


class DegenerateCalibrationError(ValueError):
    """Raised when an axis's two calibration pixels (nearly) coincide."""


@dataclass(frozen=True)
class CalibrationInput:
    """Four calibration pixels and the data values they stand for."""
    px_x1: Point
    px_x2: Point
    px_y1: Point
    px_y2: Point
    x1: float
    x2: float
    y1: float
    y2: float


class PixelToDataMapper:
    """Immutable affine pixel -> data transform.

    Built by `build_mapper`; rebuild it whenever any input changes.
    """

    def __init__(self, origin_x: Point, direction_x: Point, scale_x: float, value_x: float,
                 origin_y: Point, direction_y: Point, scale_y: float, value_y: float):
        self._origin_x = origin_x
        self._direction_x = direction_x
        self._scale_x = scale_x
        self._value_x = value_x
        self._origin_y = origin_y
        self._direction_y = direction_y
        self._scale_y = scale_y
        self._value_y = value_y

    @property
    def scale_x(self) -> float:
        """Data units per pixel along the X calibration direction."""
        return self._scale_x

    @property
    def scale_y(self) -> float:
        """Data units per pixel along the Y calibration direction."""
        return self._scale_y

    def map(self, p: Point) -> DataPoint:
        """Convert a pixel position to data coordinates."""
        rel_x = dot(sub(p, self._origin_x), self._direction_x)
        rel_y = dot(sub(p, self._origin_y), self._direction_y)
        return DataPoint(
            self._value_x + self._scale_x * rel_x,
            self._value_y + self._scale_y * rel_y,
        )

    __call__ = map

    def to_pixel(self, x: float, y: float) -> Point:
        """Convert data coordinates back to a pixel position.

        Args:
            x: X data value
            y: Y data value

        Returns:
            Pixel Point

        Raises:
            DegenerateCalibrationError: If a scale is zero or the two
                calibration directions are parallel
        """
        if self._scale_x == 0 or self._scale_y == 0:
            raise DegenerateCalibrationError("Calibration values do not vary along an axis.")

        a = np.array([
            [self._direction_x.x, self._direction_x.y],
            [self._direction_y.x, self._direction_y.y],
        ])
        if abs(np.linalg.det(a)) < config.DEGENERATE_EPSILON:
            raise DegenerateCalibrationError("Calibration axes are parallel.")

        b = np.array([
            (x - self._value_x) / self._scale_x + dot(self._origin_x, self._direction_x),
            (y - self._value_y) / self._scale_y + dot(self._origin_y, self._direction_y),
        ])
        px, py = np.linalg.solve(a, b)
        return Point(float(px), float(py))

    def __repr__(self) -> str:
        return (
            f"PixelToDataMapper(scale_x={self._scale_x:.6g}, scale_y={self._scale_y:.6g})"
        )


def _axis_projection(pa: Point, pb: Point, va: float, vb: float, name: str):
    direction = normalize(sub(pb, pa))
    span = dot(sub(pb, pa), direction)
    if abs(span) < config.DEGENERATE_EPSILON:
        raise DegenerateCalibrationError(
            f"Calibration points for the {name} axis are degenerate (too close)."
        )
    return direction, (vb - va) / span


def build_mapper(
    px_x1: Point,
    px_x2: Point,
    px_y1: Point,
    px_y2: Point,
    x1: float,
    x2: float,
    y1: float,
    y2: float,
) -> PixelToDataMapper:
    """Build the pixel -> data transform.

    Args:
        px_x1: Pixel of the first X calibration point
        px_x2: Pixel of the second X calibration point
        px_y1: Pixel of the first Y calibration point
        px_y2: Pixel of the second Y calibration point
        x1: Data X value at px_x1
        x2: Data X value at px_x2
        y1: Data Y value at px_y1
        y2: Data Y value at px_y2

    Returns:
        PixelToDataMapper

    Raises:
        DegenerateCalibrationError: If either axis's two pixels project to a
            span below 1e-6 along their own direction
    """
    vx, sx = _axis_projection(px_x1, px_x2, x1, x2, "X")
    vy, sy = _axis_projection(px_y1, px_y2, y1, y2, "Y")

    logger.debug("Calibration scale: %.6g per px along X, %.6g per px along Y", sx, sy)

    return PixelToDataMapper(px_x1, vx, sx, x1, px_y1, vy, sy, y1)


def build_mapper_from_input(calibration: CalibrationInput) -> PixelToDataMapper:
    """`build_mapper` for a bundled CalibrationInput."""
    c = calibration
    return build_mapper(c.px_x1, c.px_x2, c.px_y1, c.px_y2, c.x1, c.x2, c.y1, c.y2)


def snap_to_tick(p: Point, ticks: list[Point], radius: float = None) -> Optional[Point]:
    """Nearest detected tick within `radius` pixels of a click, else None."""
    if radius is None:
        radius = config.SNAP_RADIUS

    best = None
    best_d = float("inf")
    for tick in ticks:
        d = dist2(p, tick)
        if d < best_d:
            best_d = d
            best = tick

    if best is not None and best_d <= radius * radius:
        return best
    return None
