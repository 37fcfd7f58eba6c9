"""Seeded, color-matched curve tracing.

The curve color is the mean of three seed pixels. Starting from the
middle seed's column, each direction is followed column by column: the
matching run whose representative row is closest to a linear prediction
is taken, and tracing in that direction stops for good as soon as the
best candidate is farther than `max_jump` from the prediction.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol

import numpy as np

from ..utils.config import config
from .geometry import Color, DataPoint, Point, clamp
from .pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

TRACE_MODES = ("centerline", "median")


class PixelMask(Protocol):
    def contains(self, p: Point) -> bool: ...


class DataMapper(Protocol):
    def map(self, p: Point) -> DataPoint: ...


@dataclass(frozen=True)
class Run:
    """Contiguous matching rows [ymin, ymax] in one column."""
    ymin: int
    ymax: int


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def seed_color(buffer: PixelBuffer, seeds: list[Point]) -> Color:
    """Mean RGB of the seed pixels, each channel rounded.

    Seeds are rounded and clamped into the buffer before sampling.
    """
    totals = [0, 0, 0]
    for s in seeds:
        x = clamp(_round_half_up(s.x), 0, buffer.width - 1)
        y = clamp(_round_half_up(s.y), 0, buffer.height - 1)
        c = buffer.color_at(x, y)
        totals[0] += c.r
        totals[1] += c.g
        totals[2] += c.b

    n = max(1, len(seeds))
    return Color(*(_round_half_up(t / n) for t in totals))


def runs_in_column(
    buffer: PixelBuffer,
    x: int,
    color: Color,
    threshold: float,
    blacklist: Optional[PixelMask] = None,
) -> list[Run]:
    """Find runs of curve-colored, non-blacklisted rows in column `x`.

    Args:
        buffer: Source pixels
        x: Column to scan (top to bottom)
        color: Target curve color
        threshold: A row matches when its RGB distance to `color` is below this
        blacklist: Optional structural mask; excluded rows never match

    Returns:
        Runs ordered top to bottom; a run still open at the last row ends
        at height - 1
    """
    column = buffer.rgb[:, x, :].astype(np.int64)
    target = np.array(color.as_tuple(), dtype=np.int64)
    distance = np.sqrt(((column - target) ** 2).sum(axis=1))
    match = distance < threshold

    if blacklist is not None:
        for y in np.flatnonzero(match):
            if blacklist.contains(Point(x, int(y))):
                match[y] = False

    runs = []
    start = None
    for y, ok in enumerate(match):
        if ok and start is None:
            start = y
        elif not ok and start is not None:
            runs.append(Run(start, y - 1))
            start = None
    if start is not None:
        runs.append(Run(start, buffer.height - 1))
    return runs


def representative_y(run: Run, mode: str) -> float:
    """Row standing for a run.

    "centerline" is the run midpoint; "median" is the floor of that same
    midpoint.
    """
    mid = (run.ymin + run.ymax) / 2
    if mode == "centerline":
        return mid
    if mode == "median":
        return math.floor(mid)
    raise ValueError(f"Unknown trace mode: {mode!r}")


def _closest_run_y(runs: list[Run], target: float, mode: str) -> tuple:
    """(y, |y - target|) of the first run closest to target."""
    best_y = representative_y(runs[0], mode)
    best_d = abs(best_y - target)
    for run in runs[1:]:
        y = representative_y(run, mode)
        d = abs(y - target)
        if d < best_d:
            best_d = d
            best_y = y
    return best_y, best_d


def _trace_direction(buffer, x0, y0, step, color, threshold, mode, max_jump, blacklist):
    points = []
    x = x0
    y_prev = y0
    y_prev2 = None

    while True:
        points.append(Point(x, y_prev))

        xn = x + step
        if xn < 0 or xn >= buffer.width:
            break

        runs = runs_in_column(buffer, xn, color, threshold, blacklist)
        if not runs:
            logger.debug("Trace (%+d) stopped at x=%d: no matching run", step, x)
            break

        y_pred = y_prev if y_prev2 is None else y_prev + (y_prev - y_prev2)
        y_next, d = _closest_run_y(runs, y_pred, mode)
        if d > max_jump:
            logger.debug("Trace (%+d) stopped at x=%d: jump %.1f > %.1f", step, x, d, max_jump)
            break

        y_prev2 = y_prev
        y_prev = y_next
        x = xn

    return points


def trace_curve(
    buffer: Optional[PixelBuffer],
    seeds: list[Point],
    color: Optional[Color] = None,
    threshold: float = None,
    mode: str = None,
    max_jump: float = None,
    blacklist: Optional[PixelMask] = None,
) -> list[Point]:
    """Trace one curve from three seed clicks.

    Args:
        buffer: Source pixels (None yields an empty trace)
        seeds: Three points on the curve, in any order
        color: Target color (default: mean seed color)
        threshold: RGB distance threshold (default: from config)
        mode: "centerline" or "median" (default: from config)
        max_jump: Largest allowed deviation from the predicted row
            (default: from config)
        blacklist: Optional structural mask

    Returns:
        x-monotonic pixel polyline; empty when there are fewer than three
        seeds, no buffer, or no matching run in the seed column
    """
    threshold = config.CURVE_THRESHOLD if threshold is None else threshold
    mode = config.TRACE_MODE if mode is None else mode
    max_jump = config.MAX_JUMP if max_jump is None else max_jump

    if mode not in TRACE_MODES:
        raise ValueError(f"Unknown trace mode: {mode!r}")
    if buffer is None or len(seeds) < 3:
        return []
    if len(seeds) > 3:
        raise ValueError(f"Expected 3 seeds, got {len(seeds)}")

    if color is None:
        color = seed_color(buffer, seeds)

    middle = sorted(seeds, key=lambda s: s.x)[1]
    x0 = clamp(_round_half_up(middle.x), 0, buffer.width - 1)

    runs = runs_in_column(buffer, x0, color, threshold, blacklist)
    if not runs:
        logger.debug("No run of color %s in seed column %d", color, x0)
        return []
    y0, _ = _closest_run_y(runs, middle.y, mode)

    args = (color, threshold, mode, max_jump, blacklist)
    right = _trace_direction(buffer, x0, y0, 1, *args)
    left = _trace_direction(buffer, x0, y0, -1, *args)

    # both halves start at the seed column
    merged = left[::-1] + right[1:]
    logger.debug("Traced %d points from column %d", len(merged), x0)
    return merged


def map_and_sort(points: list[Point], mapper: DataMapper, reverse_x: bool = False) -> list[DataPoint]:
    """Map a pixel polyline to data space, ordered by X.

    Sorting is done on the mapped values since a negative calibration
    scale can flip the pixel order. `reverse_x` reverses the sorted result.
    """
    mapped = sorted((mapper.map(p) for p in points), key=lambda d: d.x)
    if reverse_x:
        mapped.reverse()
    return mapped
