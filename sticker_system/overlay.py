"""
Mask overlay rendering: turns a category mask into a translucent highlight
layer without touching the source pixels.
"""

import logging
from typing import Tuple

import numpy as np

from . import config
from .errors import NoDrawingSurface, NoMaskAvailable
from .surface import blend_over, to_rgba

logger = logging.getLogger(__name__)


class MaskOverlayRenderer:
    """Draws the selected region of a mask, plus input-location markers."""

    def __init__(
        self,
        color: Tuple[int, int, int, int] = None,
        marker_size: int = None,
        marker_color: Tuple[int, int, int, int] = None,
    ):
        self.color = tuple(color or config.MASK_HIGHLIGHT_RGBA)
        self.marker_size = marker_size or config.INPUT_MARKER_SIZE
        self.marker_color = tuple(marker_color or config.INPUT_MARKER_RGBA)

    def render(self, mask, surface):
        """Resize `surface` to the mask, clear it, and paint every selected pixel.

        Args:
            mask: CategoryMask (selected where round(score * 255) == 0)
            surface: Surface to draw into
        """
        if mask is None:
            raise NoMaskAvailable()
        if surface is None:
            raise NoDrawingSurface("No overlay surface to render the mask into")

        surface.resize(mask.width, mask.height)
        surface.clear()

        index = mask.selected_indices()
        x, y = mask.index_to_xy(index)
        surface.pixels[y, x] = np.array(self.color, dtype=np.uint8)
        logger.debug("[Overlay] Highlighted %d of %d px", len(index), mask.scores.size)

    def render_input_marker(self, surface, point: Tuple[float, float]):
        """Fill a small square centred on raw pixel coords `point`."""
        if surface is None:
            raise NoDrawingSurface("No surface to draw the input marker on")
        half = self.marker_size / 2
        surface.fill_rect(point[0] - half, point[1] - half, self.marker_size, self.marker_size, self.marker_color)

    def clear(self, surface):
        if surface is not None:
            surface.clear()

    def composite(self, image: np.ndarray, mask) -> np.ndarray:
        """Return `image` (RGB/RGBA) with the highlight blended over selected pixels."""
        if mask is None:
            raise NoMaskAvailable()
        base = to_rgba(image)
        h, w = base.shape[:2]
        if (w, h) != mask.size:
            mask = mask.resample(w, h)

        layer = np.zeros_like(base)
        layer[mask.as_selection()] = np.array(self.color, dtype=np.uint8)
        return blend_over(base, layer)
