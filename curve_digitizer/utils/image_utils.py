"""Image loading, cropping and overlay drawing utilities."""

import math
from pathlib import Path
from typing import Optional

import cv2
import numpy as np
from PIL import Image

from ..core.geometry import DataPoint, Point, Rect
from ..core.pixel_buffer import PixelBuffer
from .config import config


class UnsupportedImageError(ValueError):
    """Raised for image files that are not PNG or JPEG."""


def pil_to_buffer(pil_image: Image.Image) -> PixelBuffer:
    """Convert a PIL Image to a PixelBuffer (RGB, or RGBA if it has alpha)."""
    if pil_image.mode not in ("RGB", "RGBA"):
        mode = "RGBA" if "A" in pil_image.getbands() else "RGB"
        pil_image = pil_image.convert(mode)
    return PixelBuffer(np.array(pil_image))


def load_image(path: str | Path) -> PixelBuffer:
    """Load a PNG or JPEG file into a PixelBuffer.

    Args:
        path: Image file path

    Returns:
        PixelBuffer

    Raises:
        UnsupportedImageError: If the file is not a PNG/JPEG image
    """
    path = Path(path)
    if path.suffix.lower() not in config.SUPPORTED_EXTENSIONS:
        raise UnsupportedImageError(f"Only JPG/PNG is supported: {path.name}")

    try:
        with Image.open(path) as img:
            if img.format not in config.SUPPORTED_FORMATS:
                raise UnsupportedImageError(f"Only JPG/PNG is supported: {path.name}")
            img.load()
            return pil_to_buffer(img)
    except OSError as e:
        raise UnsupportedImageError(f"Could not load image: {path}") from e


def crop_buffer(buffer: PixelBuffer, rect: Rect) -> PixelBuffer:
    """Crop a plot region; coordinates are floored and the size is at least 1x1."""
    floored = Rect(
        max(0, math.floor(rect.x)),
        max(0, math.floor(rect.y)),
        max(1, math.floor(rect.w)),
        max(1, math.floor(rect.h)),
    )
    return buffer.crop(floored)


def buffer_to_cv2(buffer: PixelBuffer) -> np.ndarray:
    """Convert a PixelBuffer to OpenCV format (BGR)."""
    return cv2.cvtColor(np.ascontiguousarray(buffer.rgb), cv2.COLOR_RGB2BGR)


def cv2_to_pil(cv_image: np.ndarray) -> Image.Image:
    """Convert OpenCV image (BGR) to PIL Image."""
    if len(cv_image.shape) == 2:
        return Image.fromarray(cv_image)
    return Image.fromarray(cv2.cvtColor(cv_image, cv2.COLOR_BGR2RGB))


def _px(p: Point) -> tuple:
    return (int(round(p.x)), int(round(p.y)))


def series_to_pixels(series: list[DataPoint], mapper) -> list[Point]:
    """Map a data series back to pixel positions, skipping non-finite points."""
    return [
        mapper.to_pixel(d.x, d.y)
        for d in series
        if math.isfinite(d.x) and math.isfinite(d.y)
    ]


def draw_overlay(
    buffer: PixelBuffer,
    detection=None,
    curve: Optional[list[Point]] = None,
    thickness: int = 1,
    series: Optional[list[DataPoint]] = None,
    mapper=None,
) -> np.ndarray:
    """Draw detected axes, ticks and a traced curve over the buffer.

    Args:
        buffer: Source pixels
        detection: Optional AxisDetectionResult
        curve: Optional traced pixel polyline
        thickness: Line thickness
        series: Optional data series drawn instead of `curve`, placed on the
            image through `mapper.to_pixel`
        mapper: PixelToDataMapper used for `series`

    Returns:
        BGR image with detections drawn
    """
    vis = buffer_to_cv2(buffer)
    w, h = buffer.width, buffer.height

    if detection is not None:
        row = int(round(detection.x_axis_row))
        col = int(round(detection.y_axis_column))
        cv2.line(vis, (0, row), (w - 1, row), config.AXIS_COLOR, thickness)
        cv2.line(vis, (col, 0), (col, h - 1), config.AXIS_COLOR, thickness)
        for tick in list(detection.tick_points_x) + list(detection.tick_points_y):
            cv2.circle(vis, _px(tick), 3, config.TICK_COLOR, -1)

    if series and mapper is not None:
        curve = series_to_pixels(series, mapper)

    if curve:
        pts = np.array([_px(p) for p in curve], dtype=np.int32).reshape(-1, 1, 2)
        cv2.polylines(vis, [pts], False, config.CURVE_COLOR, thickness + 1)

    return vis


def save_overlay(path: str | Path, overlay: np.ndarray) -> Path:
    """Write a BGR overlay image to disk."""
    path = Path(path)
    cv2_to_pil(overlay).save(path)
    return path
