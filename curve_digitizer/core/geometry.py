"""Small 2-D value types and vector helpers shared by the pipeline."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    """A pixel-space coordinate (also used for 2-D vectors)."""
    x: float
    y: float

    def as_tuple(self) -> tuple:
        return (self.x, self.y)


@dataclass(frozen=True)
class DataPoint:
    """A calibrated data-space coordinate."""
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned region (x, y, width, height) in pixel space."""
    x: float
    y: float
    w: float
    h: float

    @property
    def area(self) -> float:
        return self.w * self.h


@dataclass(frozen=True)
class Line:
    """A point on the line plus a direction (not necessarily unit length)."""
    p: Point
    v: Point


@dataclass(frozen=True)
class Color:
    """An RGB color with channels in [0, 255]."""
    r: int
    g: int
    b: int

    def as_tuple(self) -> tuple:
        return (self.r, self.g, self.b)


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


def clamp_rect(rect: Rect, width: int, height: int) -> Rect:
    """Clamp a rect into a width x height buffer.

    The result has integer fields, lies fully inside the buffer and is at
    least 1x1.

    Args:
        rect: Rect to clamp (may be partly or fully outside the buffer)
        width: Buffer width in pixels (>= 1)
        height: Buffer height in pixels (>= 1)

    Returns:
        Clamped Rect
    """
    x = clamp(math.floor(rect.x), 0, width - 1)
    y = clamp(math.floor(rect.y), 0, height - 1)
    w = max(1, min(width - x, math.floor(rect.w)))
    h = max(1, min(height - y, math.floor(rect.h)))
    return Rect(x, y, w, h)


def dot(a: Point, b: Point) -> float:
    return a.x * b.x + a.y * b.y


def sub(a: Point, b: Point) -> Point:
    return Point(a.x - b.x, a.y - b.y)


def norm(a: Point) -> float:
    return math.hypot(a.x, a.y)


def normalize(a: Point) -> Point:
    """Unit vector along `a`; a zero-length vector maps to (1, 0)."""
    n = norm(a)
    if n < 1e-9:
        return Point(1.0, 0.0)
    return Point(a.x / n, a.y / n)


def dist2(a: Point, b: Point) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def distance_point_to_line(p: Point, line: Line) -> float:
    """Perpendicular distance from a point to an infinite line."""
    v = normalize(line.v)
    dx = p.x - line.p.x
    dy = p.y - line.p.y
    # |(p - line.p) x v|, v is unit
    return abs(dx * v.y - dy * v.x)
