"""
Image loading, rasterization and encoding utilities.
"""

import base64
import io
import numpy as np
from typing import Tuple
from PIL import Image

from .surface import Surface


DATA_URI_PREFIX = "data:image/png;base64,"


def load_image(path: str, max_size: int = None) -> np.ndarray:
    """Load an image as RGBA numpy array.

    Args:
        path: Path to image file
        max_size: If set, resize longest edge to this value

    Returns:
        RGBA numpy array (H, W, 4), dtype uint8
    """
    img = Image.open(path).convert("RGBA")

    if max_size and max(img.size) > max_size:
        ratio = max_size / max(img.size)
        new_size = (int(img.width * ratio), int(img.height * ratio))
        img = img.resize(new_size, Image.LANCZOS)

    return np.array(img)


def raster_size(media) -> Tuple[int, int]:
    """Pixel size of a media object's off-screen raster (at least 1x1)."""
    return max(1, int(round(media.width))), max(1, int(round(media.height)))


def create_temp_surface(media) -> Surface:
    """Rasterize a media object into a fresh surface sized to its geometry.

    The surface matches the object's own (width, height), not the display
    surface, so segmentation resolution is independent of on-screen zoom.
    """
    width, height = raster_size(media)
    surface = Surface(width, height)
    media.draw(surface, 0, 0)
    return surface


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an RGBA array as PNG bytes."""
    buf = io.BytesIO()
    Image.fromarray(pixels.astype(np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def encode_data_uri(pixels: np.ndarray) -> str:
    """Encode an RGBA array as a base64 PNG data URI."""
    return DATA_URI_PREFIX + base64.b64encode(encode_png(pixels)).decode("ascii")


def decode_data_uri(data_uri: str) -> np.ndarray:
    """Decode a base64 image data URI into an RGBA array."""
    if not data_uri.startswith("data:"):
        raise ValueError("Expected a data URI (data:image/...;base64,...)")
    try:
        _, encoded = data_uri.split(",", 1)
    except ValueError as exc:
        raise ValueError("Invalid data URI format") from exc
    image_bytes = base64.b64decode(encoded, validate=True)
    return np.array(Image.open(io.BytesIO(image_bytes)).convert("RGBA"))
