"""
Positionable, resizable media objects.

A MediaObject carries geometry (x, y, width, height), a draw order `z`, and
four corner resize handles derived from that geometry. Concrete variants
implement `draw`; the border/handle rendering and handle layout are shared.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from . import config
from .errors import NoDrawingSurface
from .image_utils import load_image
from .surface import to_rgba

logger = logging.getLogger(__name__)

CORNERS = ("top-left", "top-right", "bottom-left", "bottom-right")

# Opposite corners share a cursor
CURSORS = {
    "top-left": "nwse-resize",
    "top-right": "nesw-resize",
    "bottom-left": "nesw-resize",
    "bottom-right": "nwse-resize",
}


@dataclass(frozen=True)
class Handle:
    """A square resize marker anchored on one corner of a media object."""
    x: float
    y: float
    size: float
    cursor: str
    corner: str

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.size and self.y <= py <= self.y + self.size


class MediaObject(ABC):
    """Base class for anything that can be placed, moved and resized on a canvas."""

    def __init__(self, x: float, y: float, width: float, height: float, z: int = 0):
        _check_size(width, height)
        self.x = float(x)
        self.y = float(y)
        self.width = float(width)
        self.height = float(height)
        self.z = int(z)
        self.handles: List[Handle] = []
        self.update_handle_positions()

    @abstractmethod
    def draw(self, surface, x: float = None, y: float = None) -> None:
        """Render the object's content at (x, y), defaulting to its own position."""

    # ─── Handles ──────────────────────────────────────────────

    def compute_handles(self) -> List[Handle]:
        """Derive the four corner handles from the current geometry.

        Order is always top-left, top-right, bottom-left, bottom-right.
        """
        half = config.HANDLE_SIZE / 2
        left = self.x - half
        right = self.x + self.width - half
        top = self.y - half
        bottom = self.y + self.height - half
        positions = {
            "top-left": (left, top),
            "top-right": (right, top),
            "bottom-left": (left, bottom),
            "bottom-right": (right, bottom),
        }
        return [
            Handle(
                x=positions[corner][0],
                y=positions[corner][1],
                size=config.HANDLE_SIZE,
                cursor=CURSORS[corner],
                corner=corner,
            )
            for corner in CORNERS
        ]

    def update_handle_positions(self):
        self.handles = self.compute_handles()

    def draw_border_and_handles(self, surface) -> None:
        """Draw the selection border and the resize handles."""
        if surface is None:
            raise NoDrawingSurface("Cannot draw selection border without a surface")
        surface.stroke_rect(
            self.x, self.y, self.width, self.height,
            config.BORDER_COLOR, config.BORDER_WIDTH,
        )
        for handle in self.handles:
            surface.fill_rect(handle.x, handle.y, handle.size, handle.size, config.HANDLE_COLOR)

    # ─── Hit testing ──────────────────────────────────────────

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    def handle_at(self, px: float, py: float) -> Optional[Handle]:
        """Return the handle under (px, py), if any."""
        for handle in self.handles:
            if handle.contains(px, py):
                return handle
        return None

    # ─── Geometry mutators (all re-derive handles) ────────────

    def move_to(self, x: float, y: float):
        self.x = float(x)
        self.y = float(y)
        self.update_handle_positions()

    def move_by(self, dx: float, dy: float):
        self.move_to(self.x + dx, self.y + dy)

    def resize_to(self, width: float, height: float):
        _check_size(width, height)
        self.width = float(width)
        self.height = float(height)
        self.update_handle_positions()

    def drag_handle(self, corner: str, px: float, py: float):
        """Move one corner to (px, py) while the opposite corner stays put.

        The object never shrinks below one handle's size on either axis.
        """
        if corner not in CURSORS:
            raise ValueError(f"Unknown corner: {corner!r}")

        min_size = config.HANDLE_SIZE
        left, top = self.x, self.y
        right, bottom = self.x + self.width, self.y + self.height

        if corner.endswith("left"):
            left = min(px, right - min_size)
        else:
            right = max(px, left + min_size)
        if corner.startswith("top"):
            top = min(py, bottom - min_size)
        else:
            bottom = max(py, top + min_size)

        self.x, self.y = float(left), float(top)
        self.width, self.height = float(right - left), float(bottom - top)
        self.update_handle_positions()

    def __repr__(self):
        return (
            f"{type(self).__name__}(x={self.x:.1f}, y={self.y:.1f}, "
            f"width={self.width:.1f}, height={self.height:.1f}, z={self.z})"
        )


class ImageObject(MediaObject):
    """A media object backed by a decoded RGBA raster."""

    def __init__(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        image: np.ndarray,
        z: int = 0,
    ):
        super().__init__(x, y, width, height, z=z)
        self.image = to_rgba(image)

    @classmethod
    def from_path(cls, path: str, x: float = 0, y: float = 0, max_size: int = None) -> "ImageObject":
        """Load an image file and place it at its natural size."""
        image = load_image(path, max_size=max_size)
        h, w = image.shape[:2]
        return cls(x, y, w, h, image)

    @classmethod
    def from_artifact(cls, artifact, x: float = 0, y: float = 0) -> "ImageObject":
        """Build a new, independent object from an extracted image artifact."""
        return cls(x, y, artifact.width, artifact.height, artifact.to_array())

    def draw(self, surface, x: float = None, y: float = None) -> None:
        if surface is None:
            logger.debug("draw() called without a surface; skipping %r", self)
            return
        x = self.x if x is None else x
        y = self.y if y is None else y
        surface.draw_image(self.image, x, y, self.width, self.height)


def _check_size(width: float, height: float):
    if width <= 0 or height <= 0:
        raise ValueError(f"Media size must be positive, got {width}x{height}")
