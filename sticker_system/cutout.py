"""
Cutout extraction: keep the selected pixels of a media object, make every
other pixel fully transparent, and hand back a portable PNG artifact.
"""

import base64
import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from . import config
from .errors import DimensionMismatch, NoMaskAvailable
from .image_utils import DATA_URI_PREFIX, create_temp_surface, decode_data_uri, encode_data_uri
from .media import ImageObject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageArtifact:
    """An encoded, standalone sticker image."""
    data_uri: str
    width: int
    height: int

    def to_bytes(self) -> bytes:
        """Raw PNG bytes."""
        return base64.b64decode(self.data_uri[len(DATA_URI_PREFIX):])

    def to_array(self) -> np.ndarray:
        """Decoded RGBA array (H, W, 4)."""
        return decode_data_uri(self.data_uri)

    def save(self, path: str) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.to_bytes())
        return path

    def to_media(self, x: float = 0, y: float = 0) -> ImageObject:
        """A new ImageObject owning its own copy of the pixels."""
        return ImageObject.from_artifact(self, x, y)


class CutoutExtractor:
    """Turns a source media object plus mask into a transparent-background artifact."""

    def __init__(self, resample: bool = None):
        """
        Args:
            resample: Nearest-neighbour resample a mask whose size differs
                from the object's raster instead of rejecting it
                (default: config.CUTOUT_RESAMPLE)
        """
        self.resample = config.CUTOUT_RESAMPLE if resample is None else resample

    def _cutout_pixels(self, media, mask) -> np.ndarray:
        if mask is None:
            raise NoMaskAvailable()

        surface = create_temp_surface(media)
        pixels = surface.get_image_data()

        if mask.size != surface.size:
            if not self.resample:
                raise DimensionMismatch(surface.size, mask.size)
            logger.info(
                "[Cutout] Resampling mask %dx%d -> %dx%d",
                mask.width, mask.height, surface.width, surface.height,
            )
            mask = mask.resample(surface.width, surface.height)

        flat = pixels.reshape(-1, 4)
        flat[~mask.selected_flags(), 3] = 0
        return flat.reshape(pixels.shape)

    def extract(self, media, mask) -> ImageArtifact:
        """Extract the selected region of `media` at its full geometry.

        Raises:
            NoMaskAvailable: no mask has been computed
            DimensionMismatch: mask size differs and resampling is disabled
        """
        pixels = self._cutout_pixels(media, mask)
        h, w = pixels.shape[:2]
        logger.info("[Cutout] Extracted %dx%d sticker", w, h)
        return ImageArtifact(encode_data_uri(pixels), w, h)

    def extract_trimmed(self, media, mask, padding: int = None) -> ImageArtifact:
        """Like `extract`, but cropped to the selection's bounding box plus padding."""
        if padding is None:
            padding = config.CUTOUT_PADDING
        pixels = self._cutout_pixels(media, mask)

        alpha = pixels[..., 3] > 0
        rows = np.any(alpha, axis=1)
        cols = np.any(alpha, axis=0)
        if not rows.any():
            raise NoMaskAvailable("Selection is empty, nothing to extract")

        h, w = pixels.shape[:2]
        y1, y2 = np.where(rows)[0][[0, -1]]
        x1, x2 = np.where(cols)[0][[0, -1]]
        y1 = max(0, y1 - padding)
        y2 = min(h - 1, y2 + padding)
        x1 = max(0, x1 - padding)
        x2 = min(w - 1, x2 + padding)

        cropped = np.ascontiguousarray(pixels[y1:y2 + 1, x1:x2 + 1])
        ch, cw = cropped.shape[:2]
        logger.info("[Cutout] Extracted %dx%d trimmed sticker", cw, ch)
        return ImageArtifact(encode_data_uri(cropped), cw, ch)
