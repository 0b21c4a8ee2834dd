"""
Off-screen RGBA drawing surface.

A small raster target with the handful of 2D drawing primitives the media
model, overlay renderer and cutout extractor need. Pixels are stored as a
numpy array of shape (H, W, 4), dtype uint8, row-major.
"""

import numpy as np
import cv2
from typing import Tuple, Optional


Color = Tuple[int, int, int, int]


def to_rgba(image: np.ndarray) -> np.ndarray:
    """Return an (H, W, 4) uint8 copy of a grayscale, RGB or RGBA array."""
    if image.ndim == 2:
        image = np.stack([image] * 3, axis=-1)
    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([image.astype(np.uint8), alpha], axis=-1)
    return image.astype(np.uint8).copy()


def blend_over(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    """Source-over composite of RGBA `src` onto RGBA `dst` (same shape)."""
    src_a = src[..., 3:4].astype(np.float32) / 255.0
    dst_a = dst[..., 3:4].astype(np.float32) / 255.0
    out_a = src_a + dst_a * (1.0 - src_a)

    src_rgb = src[..., :3].astype(np.float32)
    dst_rgb = dst[..., :3].astype(np.float32)
    num = src_rgb * src_a + dst_rgb * dst_a * (1.0 - src_a)
    out_rgb = np.divide(num, out_a, out=np.zeros_like(num), where=out_a > 0)

    out = np.empty_like(dst)
    out[..., :3] = np.clip(np.round(out_rgb), 0, 255).astype(np.uint8)
    out[..., 3:4] = np.clip(np.round(out_a * 255.0), 0, 255).astype(np.uint8)
    return out


class Surface:
    """An RGBA raster that can be drawn into, resized and read back."""

    def __init__(self, width: int, height: int):
        self.pixels = np.zeros((int(height), int(width), 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def resize(self, width: int, height: int):
        """Resize the surface. Like a canvas, resizing discards its content."""
        self.pixels = np.zeros((int(height), int(width), 4), dtype=np.uint8)

    def clear(self):
        self.pixels[...] = 0

    def _clip(self, x: float, y: float, w: float, h: float) -> Optional[Tuple[int, int, int, int]]:
        """Clip a rectangle to the surface. Returns (x1, y1, x2, y2) or None."""
        x1 = int(round(x))
        y1 = int(round(y))
        x2 = x1 + int(round(w))
        y2 = y1 + int(round(h))
        cx1, cy1 = max(0, x1), max(0, y1)
        cx2, cy2 = min(self.width, x2), min(self.height, y2)
        if cx1 >= cx2 or cy1 >= cy2:
            return None
        return cx1, cy1, cx2, cy2

    def draw_image(
        self,
        image: np.ndarray,
        x: float,
        y: float,
        width: float = None,
        height: float = None,
    ):
        """Paint `image` scaled to (width, height) with its top-left at (x, y).

        Args:
            image: Grayscale, RGB or RGBA uint8 array
            x, y: Destination top-left in surface pixels
            width, height: Destination size (default: the image's own size)
        """
        src = to_rgba(image)
        dw = int(round(width if width is not None else src.shape[1]))
        dh = int(round(height if height is not None else src.shape[0]))
        if dw <= 0 or dh <= 0:
            return

        if (dw, dh) != (src.shape[1], src.shape[0]):
            shrinking = dw < src.shape[1] or dh < src.shape[0]
            interp = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
            src = cv2.resize(src, (dw, dh), interpolation=interp)

        x0, y0 = int(round(x)), int(round(y))
        box = self._clip(x0, y0, dw, dh)
        if box is None:
            return
        x1, y1, x2, y2 = box
        patch = src[y1 - y0:y2 - y0, x1 - x0:x2 - x0]
        self.pixels[y1:y2, x1:x2] = blend_over(self.pixels[y1:y2, x1:x2], patch)

    def fill_rect(self, x: float, y: float, w: float, h: float, color: Color):
        box = self._clip(x, y, w, h)
        if box is None:
            return
        x1, y1, x2, y2 = box
        region = self.pixels[y1:y2, x1:x2]
        src = np.empty_like(region)
        src[...] = np.array(color, dtype=np.uint8)
        self.pixels[y1:y2, x1:x2] = blend_over(region, src)

    def stroke_rect(self, x: float, y: float, w: float, h: float, color: Color, line_width: int = 1):
        """Outline a rectangle; the stroke is centred on the rectangle's edge."""
        pt1 = (int(round(x)), int(round(y)))
        pt2 = (int(round(x + w)), int(round(y + h)))
        self.pixels = np.ascontiguousarray(self.pixels)
        cv2.rectangle(self.pixels, pt1, pt2, tuple(int(c) for c in color), int(line_width))

    def get_image_data(self) -> np.ndarray:
        """Read back a copy of the raw RGBA buffer."""
        return self.pixels.copy()
