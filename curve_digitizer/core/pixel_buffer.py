"""Read-only RGB(A) raster shared by every pipeline stage."""

from functools import cached_property

import numpy as np

from .geometry import Color, Rect, clamp_rect


def gray_image(rgb: np.ndarray) -> np.ndarray:
    """Luminance of an RGB(A) array, rounded half up to uint8.

    Args:
        rgb: Array of shape (H, W, 3) or (H, W, 4)

    Returns:
        (H, W) uint8 gray image
    """
    channels = rgb[..., :3].astype(np.float64)
    luma = 0.299 * channels[..., 0] + 0.587 * channels[..., 1] + 0.114 * channels[..., 2]
    return np.clip(np.floor(luma + 0.5), 0, 255).astype(np.uint8)


class PixelBuffer:
    """Immutable width x height RGB(A) pixel raster.

    The wrapped array is copied and marked read-only, so a buffer can be
    shared freely between detection, tracing and export.
    """

    def __init__(self, pixels: np.ndarray):
        """Initialize a pixel buffer.

        Args:
            pixels: Row-major uint8 array of shape (H, W, 3) or (H, W, 4)
        """
        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (H, W, 3|4) array, got shape {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError("Pixel buffer must be at least 1x1")

        data = np.array(pixels, dtype=np.uint8, copy=True)
        data.flags.writeable = False
        self._pixels = data

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @cached_property
    def rgb(self) -> np.ndarray:
        """(H, W, 3) view without any alpha channel."""
        return self._pixels[..., :3]

    @cached_property
    def gray(self) -> np.ndarray:
        """(H, W) uint8 luminance image."""
        g = gray_image(self._pixels)
        g.flags.writeable = False
        return g

    def color_at(self, x: int, y: int) -> Color:
        r, g, b = (int(c) for c in self._pixels[y, x, :3])
        return Color(r, g, b)

    def clamp(self, rect: Rect) -> Rect:
        """Clamp a rect into this buffer's bounds."""
        return clamp_rect(rect, self.width, self.height)

    def crop(self, rect: Rect) -> "PixelBuffer":
        """Return a new buffer holding the (clamped) region."""
        r = self.clamp(rect)
        return PixelBuffer(self._pixels[r.y:r.y + r.h, r.x:r.x + r.w])

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height}, channels={self._pixels.shape[2]})"
