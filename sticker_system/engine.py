"""
Segmentation engine contract and the SAM2 adapter.

The session only talks to an engine through `SegmentationEngine`: it must be
initialized before use, and it turns a raster plus a query basis (one click
or an ordered scribble) into a CategoryMask.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from . import config
from .errors import EngineNotReady, InvalidQuery
from .mask import CategoryMask

logger = logging.getLogger(__name__)

POINT_MODE = "point"
SCRIBBLE_MODE = "scribble"


@dataclass(frozen=True)
class NormalizedPoint:
    """A pointer sample relative to the source image, each axis in [0, 1]."""
    x: float
    y: float

    def __post_init__(self):
        if not (0.0 <= self.x <= 1.0 and 0.0 <= self.y <= 1.0):
            raise ValueError(f"Normalized point out of range: ({self.x}, {self.y})")

    def to_pixels(self, width: int, height: int) -> Tuple[float, float]:
        return self.x * width, self.y * height


@dataclass(frozen=True)
class QueryBasis:
    """What the engine is asked to segment: one click or an ordered scribble."""
    mode: str
    points: Tuple[NormalizedPoint, ...]

    def __post_init__(self):
        if self.mode not in (POINT_MODE, SCRIBBLE_MODE):
            raise InvalidQuery(f"Unknown query mode: {self.mode!r}")
        if not self.points:
            raise InvalidQuery("Query basis has no points")
        if self.mode == POINT_MODE and len(self.points) != 1:
            raise InvalidQuery("Point queries carry exactly one point")

    @classmethod
    def click(cls, point: NormalizedPoint) -> "QueryBasis":
        return cls(POINT_MODE, (point,))

    @classmethod
    def scribble(cls, points) -> "QueryBasis":
        return cls(SCRIBBLE_MODE, tuple(points))


class SegmentationEngine(ABC):
    """Opaque interactive segmenter."""

    @property
    @abstractmethod
    def ready(self) -> bool:
        """True once `initialize` has completed."""

    @abstractmethod
    async def initialize(self, model_location: str = None, execution_hint: str = None) -> None:
        """Load the model. Queries before this completes fail with EngineNotReady."""

    @abstractmethod
    async def segment(self, raster, basis: QueryBasis) -> Optional[CategoryMask]:
        """Segment `raster` (a Surface) for `basis`; mask size equals raster size."""


class SAM2Engine(SegmentationEngine):
    """SAM2 image predictor behind the engine contract.

    Every point of the basis is sent as a positive prompt. A single click asks
    SAM2 for several candidates and keeps the best-scoring one; a scribble is
    unambiguous enough for a single mask.
    """

    def __init__(self):
        self._predictor = None
        self._device = None

    @property
    def ready(self) -> bool:
        return self._predictor is not None

    async def initialize(self, model_location: str = None, execution_hint: str = None) -> None:
        from .model_loader import ModelLoader, resolve_device

        self._device = resolve_device(execution_hint or config.DEVICE)
        self._predictor = await asyncio.to_thread(
            ModelLoader.get_sam2_predictor, model_location, execution_hint or config.DEVICE
        )
        logger.info("[SAM2Engine] Ready on %s", self._device)

    async def segment(self, raster, basis: QueryBasis) -> Optional[CategoryMask]:
        if not self.ready:
            raise EngineNotReady()
        if basis is None:
            raise InvalidQuery("No query basis supplied")

        image = np.ascontiguousarray(raster.pixels[..., :3])
        h, w = image.shape[:2]
        point_coords = np.array([p.to_pixels(w, h) for p in basis.points], dtype=np.float32)
        point_labels = np.ones(len(basis.points), dtype=np.int32)
        multimask = basis.mode == POINT_MODE

        masks, scores = await asyncio.to_thread(
            self._predict, image, point_coords, point_labels, multimask
        )
        if masks is None or len(masks) == 0:
            return None

        best_idx = int(np.argmax(scores))
        logger.debug(
            "[SAM2Engine] %d candidate(s), picked %d with score %.3f",
            len(masks), best_idx, float(scores[best_idx]),
        )
        return CategoryMask.from_selection(masks[best_idx] > 0.5)

    def _predict(self, image, point_coords, point_labels, multimask):
        import torch

        with torch.inference_mode(), torch.autocast(
            self._device.type, dtype=config.get_dtype()
        ):
            self._predictor.set_image(image)
            masks, scores, _ = self._predictor.predict(
                point_coords=point_coords,
                point_labels=point_labels,
                multimask_output=multimask,
            )
        return masks, scores
