"""Axis line and tick mark detection inside operator-selected ROIs.

An X-axis ROI and a Y-axis ROI are binarized with one shared Otsu
threshold (taken from the larger ROI). Within each ROI the axis is the
row (or column) carrying the most ink, and ticks are ink pixels on that
axis that also have ink a few pixels to either side of it.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from ..utils.config import config
from .geometry import Line, Point, Rect
from .pixel_buffer import PixelBuffer
from .threshold import InkMask

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AxisDetectionResult:
    """Located axes and ticks, ticks ordered by ascending position."""
    x_axis_line: Line
    y_axis_line: Line
    tick_points_x: list[Point] = field(default_factory=list)
    tick_points_y: list[Point] = field(default_factory=list)
    threshold: int = 128

    @property
    def x_axis_row(self) -> float:
        return self.x_axis_line.p.y

    @property
    def y_axis_column(self) -> float:
        return self.y_axis_line.p.x


def locate_row(buffer: PixelBuffer, roi: Rect, ink: InkMask) -> int:
    """Row of `roi` with the most ink.

    Rows are scanned top to bottom and the first maximum wins.
    """
    r = buffer.clamp(roi)
    counts = ink.mask[r.y:r.y + r.h, r.x:r.x + r.w].sum(axis=1)
    return r.y + int(np.argmax(counts))


def locate_column(buffer: PixelBuffer, roi: Rect, ink: InkMask) -> int:
    """Column of `roi` with the most ink (first maximum, left to right)."""
    r = buffer.clamp(roi)
    counts = ink.mask[r.y:r.y + r.h, r.x:r.x + r.w].sum(axis=0)
    return r.x + int(np.argmax(counts))


def cluster_1d(values, merge_distance: float) -> list[float]:
    """Merge sorted values whose consecutive gap is <= merge_distance.

    Args:
        values: Positions in any order
        merge_distance: Largest gap still joining two values

    Returns:
        Mean of each cluster, ascending
    """
    if len(values) == 0:
        return []
    ordered = sorted(values)

    centers = []
    total = ordered[0]
    count = 1
    for prev, value in zip(ordered, ordered[1:]):
        if value - prev <= merge_distance:
            total += value
            count += 1
        else:
            centers.append(total / count)
            total = value
            count = 1
    centers.append(total / count)
    return centers


def _protruding(band: np.ndarray, on_axis: np.ndarray, axis_index: int,
                min_offset: int, max_offset: int) -> np.ndarray:
    """Indices along the axis where ink also sits min..max offset away.

    `band` is the ROI ink mask with the axis running along dimension 1 and
    the offsets along dimension 0; `axis_index` is the axis position in
    dimension 0 (it may fall outside the band).
    """
    up = band[max(0, axis_index - max_offset):max(0, axis_index - min_offset + 1)]
    down = band[max(0, axis_index + min_offset):max(0, axis_index + max_offset + 1)]
    has_up = up.any(axis=0) if up.shape[0] else np.zeros(band.shape[1], dtype=bool)
    has_down = down.any(axis=0) if down.shape[0] else np.zeros(band.shape[1], dtype=bool)
    return np.flatnonzero(on_axis & (has_up | has_down))


def detect_ticks_along_row(
    buffer: PixelBuffer,
    roi: Rect,
    axis_row: int,
    ink: InkMask,
    min_offset: int = None,
    max_offset: int = None,
    merge_distance: float = None,
) -> list[Point]:
    """Find tick marks crossing a horizontal axis.

    A column is a candidate when the axis pixel is ink and ink is found
    `min_offset`..`max_offset` pixels above or below it (inside the ROI).
    Candidates are clustered and each cluster becomes one tick.

    Args:
        buffer: Source pixels
        roi: X-axis region of interest
        axis_row: Row of the located X axis
        ink: Ink predicate
        min_offset: Nearest protrusion distance (default: from config)
        max_offset: Farthest protrusion distance (default: from config)
        merge_distance: Cluster merge gap (default: from config)

    Returns:
        Tick points (mean x, axis_row) ordered left to right
    """
    min_offset = config.TICK_MIN_OFFSET if min_offset is None else min_offset
    max_offset = config.TICK_MAX_OFFSET if max_offset is None else max_offset
    merge_distance = config.TICK_MERGE_DISTANCE if merge_distance is None else merge_distance

    if not 0 <= axis_row < buffer.height:
        return []

    r = buffer.clamp(roi)
    band = ink.mask[r.y:r.y + r.h, r.x:r.x + r.w]
    on_axis = ink.mask[axis_row, r.x:r.x + r.w]
    columns = _protruding(band, on_axis, axis_row - r.y, min_offset, max_offset)

    centers = cluster_1d([r.x + int(j) for j in columns], merge_distance)
    return [Point(cx, axis_row) for cx in centers]


def detect_ticks_along_column(
    buffer: PixelBuffer,
    roi: Rect,
    axis_column: int,
    ink: InkMask,
    min_offset: int = None,
    max_offset: int = None,
    merge_distance: float = None,
) -> list[Point]:
    """Find tick marks crossing a vertical axis (transpose of the row case).

    Returns:
        Tick points (axis_column, mean y) ordered top to bottom
    """
    min_offset = config.TICK_MIN_OFFSET if min_offset is None else min_offset
    max_offset = config.TICK_MAX_OFFSET if max_offset is None else max_offset
    merge_distance = config.TICK_MERGE_DISTANCE if merge_distance is None else merge_distance

    if not 0 <= axis_column < buffer.width:
        return []

    r = buffer.clamp(roi)
    band = ink.mask[r.y:r.y + r.h, r.x:r.x + r.w].T
    on_axis = ink.mask[r.y:r.y + r.h, axis_column]
    rows = _protruding(band, on_axis, axis_column - r.x, min_offset, max_offset)

    centers = cluster_1d([r.y + int(i) for i in rows], merge_distance)
    return [Point(axis_column, cy) for cy in centers]


def detect_axes(
    buffer: PixelBuffer,
    axis_roi_x: Rect,
    axis_roi_y: Rect,
    min_offset: int = None,
    max_offset: int = None,
    merge_distance: float = None,
) -> AxisDetectionResult:
    """Locate both axes and their ticks.

    One Otsu threshold is computed from whichever clamped ROI has the
    larger area (ties go to the X ROI) and is used for both axes.

    Args:
        buffer: Source pixels
        axis_roi_x: Region around the horizontal (X) axis
        axis_roi_y: Region around the vertical (Y) axis
        min_offset: Tick protrusion minimum (default: from config)
        max_offset: Tick protrusion maximum (default: from config)
        merge_distance: Tick cluster merge gap (default: from config)

    Returns:
        AxisDetectionResult
    """
    rx = buffer.clamp(axis_roi_x)
    ry = buffer.clamp(axis_roi_y)

    # TODO: binarize each ROI with its own threshold once differing local
    # contrast between the two axis regions needs to be supported.
    rect_for_threshold = rx if rx.area >= ry.area else ry
    ink = InkMask.from_rect(buffer, rect_for_threshold)

    axis_row = locate_row(buffer, rx, ink)
    axis_column = locate_column(buffer, ry, ink)

    ticks_x = detect_ticks_along_row(
        buffer, rx, axis_row, ink, min_offset, max_offset, merge_distance
    )
    ticks_y = detect_ticks_along_column(
        buffer, ry, axis_column, ink, min_offset, max_offset, merge_distance
    )

    logger.debug(
        "Axes at row %d / column %d (threshold %d): %d x-ticks, %d y-ticks",
        axis_row, axis_column, ink.threshold, len(ticks_x), len(ticks_y),
    )

    return AxisDetectionResult(
        x_axis_line=Line(Point(0, axis_row), Point(1, 0)),
        y_axis_line=Line(Point(axis_column, 0), Point(0, 1)),
        tick_points_x=ticks_x,
        tick_points_y=ticks_y,
        threshold=ink.threshold,
    )
