"""Otsu binarization of a rectangular region into an ink predicate."""

import logging
import math
from functools import cached_property

import numpy as np

from ..utils.config import config
from .geometry import Rect
from .pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


def gray_histogram(buffer: PixelBuffer, rect: Rect) -> np.ndarray:
    """256-bin histogram of gray values inside `rect`.

    The rect is intersected with the buffer; an empty intersection gives an
    all-zero histogram.
    """
    x0 = max(0, math.floor(rect.x))
    y0 = max(0, math.floor(rect.y))
    x1 = min(buffer.width, math.floor(rect.x + rect.w))
    y1 = min(buffer.height, math.floor(rect.y + rect.h))
    if x1 <= x0 or y1 <= y0:
        return np.zeros(256, dtype=np.int64)

    region = buffer.gray[y0:y1, x0:x1]
    return np.bincount(region.ravel(), minlength=256).astype(np.int64)


def otsu_threshold(hist, default: int = None) -> int:
    """Select the gray level maximizing inter-class variance.

    Args:
        hist: 256 bin counts
        default: Value returned for an empty histogram, or when no split
            separates two non-empty classes (default: from config)

    Returns:
        Threshold in [0, 255]; pixels with gray < threshold are ink
    """
    if default is None:
        default = config.DEFAULT_THRESHOLD

    hist = [int(c) for c in hist]
    total = sum(hist)
    if total <= 0:
        return default

    weighted_sum = float(sum(t * c for t, c in enumerate(hist)))

    sum_b = 0.0
    w_b = 0
    var_max = -1.0
    threshold = default

    for t in range(256):
        w_b += hist[t]
        if w_b == 0:
            continue
        w_f = total - w_b
        if w_f == 0:
            break

        sum_b += t * hist[t]
        m_b = sum_b / w_b
        m_f = (weighted_sum - sum_b) / w_f

        var_between = w_b * w_f * (m_b - m_f) * (m_b - m_f)
        # Ties move the split to the top of an empty gap so the whole darker
        # population stays below the threshold.
        if var_between >= var_max:
            var_max = var_between
            threshold = t

    return threshold


def compute_threshold(buffer: PixelBuffer, rect: Rect) -> int:
    """Otsu threshold of the gray pixels inside `rect`."""
    threshold = otsu_threshold(gray_histogram(buffer, rect))
    logger.debug("Otsu threshold %d for rect %s", threshold, rect)
    return threshold


class InkMask:
    """Foreground predicate: a pixel is ink iff its gray value < threshold."""

    def __init__(self, buffer: PixelBuffer, threshold: int):
        self.buffer = buffer
        self.threshold = int(threshold)

    @classmethod
    def from_rect(cls, buffer: PixelBuffer, rect: Rect) -> "InkMask":
        """Binarize the whole buffer with the Otsu threshold of `rect`."""
        return cls(buffer, compute_threshold(buffer, rect))

    @cached_property
    def mask(self) -> np.ndarray:
        """(H, W) boolean ink image."""
        return self.buffer.gray < self.threshold

    def is_ink(self, x: int, y: int) -> bool:
        return bool(self.buffer.gray[y, x] < self.threshold)

    __call__ = is_ink
