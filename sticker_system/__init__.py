"""
Sticker Segmentation System

Core package: media objects, interactive segmentation session (SAM2),
mask overlay rendering and transparent-background cutout extraction.
"""

from . import config
from .errors import (
    StickerError,
    EngineNotReady,
    NoMaskAvailable,
    NoDrawingSurface,
    DimensionMismatch,
    InvalidQuery,
)
from .surface import Surface
from .media import Handle, MediaObject, ImageObject
from .mask import CategoryMask
from .engine import NormalizedPoint, QueryBasis, SegmentationEngine, SAM2Engine
from .session import SegmentationSession, normalize_pointer
from .overlay import MaskOverlayRenderer
from .cutout import CutoutExtractor, ImageArtifact

__all__ = [
    "config",
    "StickerError",
    "EngineNotReady",
    "NoMaskAvailable",
    "NoDrawingSurface",
    "DimensionMismatch",
    "InvalidQuery",
    "Surface",
    "Handle",
    "MediaObject",
    "ImageObject",
    "CategoryMask",
    "NormalizedPoint",
    "QueryBasis",
    "SegmentationEngine",
    "SAM2Engine",
    "SegmentationSession",
    "normalize_pointer",
    "MaskOverlayRenderer",
    "CutoutExtractor",
    "ImageArtifact",
]
