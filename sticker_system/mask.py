"""
Category mask: the per-pixel score grid returned by the segmentation engine.

Scores are float32, flattened row-major (index = y * width + x). A score is
*selected* (foreground) when round(score * 255) == 0; every other score is
background. Selected pixels are the score-zero class, not the truthy one.
"""

import numpy as np
import cv2
from dataclasses import dataclass
from typing import Tuple

from .errors import DimensionMismatch


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


@dataclass
class CategoryMask:
    """Row-major float32 score grid of size width x height."""
    width: int
    height: int
    scores: np.ndarray

    def __post_init__(self):
        self.width = int(self.width)
        self.height = int(self.height)
        self.scores = np.asarray(self.scores, dtype=np.float32).reshape(-1)
        if self.scores.size != self.width * self.height:
            raise DimensionMismatch((self.width * self.height,), (self.scores.size,))

    @classmethod
    def from_array(cls, scores: np.ndarray) -> "CategoryMask":
        """Build from a 2D (H, W) score array."""
        scores = np.asarray(scores, dtype=np.float32)
        if scores.ndim != 2:
            raise ValueError(f"Expected a 2D score array, got shape {scores.shape}")
        h, w = scores.shape
        return cls(w, h, scores.reshape(-1))

    @classmethod
    def from_selection(cls, selection: np.ndarray) -> "CategoryMask":
        """Build from a boolean (H, W) selection: selected -> 0.0, rest -> 1.0."""
        selection = np.asarray(selection).astype(bool)
        return cls.from_array(np.where(selection, 0.0, 1.0).astype(np.float32))

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def selected_flags(self) -> np.ndarray:
        """Flat boolean array, True where the pixel is selected."""
        return _round_half_up(self.scores.astype(np.float64) * 255.0) == 0

    def selected_indices(self) -> np.ndarray:
        return np.flatnonzero(self.selected_flags())

    def index_to_xy(self, index):
        """Map a flat index (or array of indices) to (x, y)."""
        x = index % self.width
        y = (index - x) // self.width
        return x, y

    def as_selection(self) -> np.ndarray:
        """Boolean (H, W) selection grid."""
        return self.selected_flags().reshape(self.height, self.width)

    @property
    def area(self) -> int:
        return int(self.selected_flags().sum())

    def bbox(self) -> np.ndarray:
        """Bounding box [x1, y1, x2, y2] (exclusive end) of the selection."""
        selection = self.as_selection()
        rows = np.any(selection, axis=1)
        cols = np.any(selection, axis=0)
        if not rows.any():
            return np.array([0, 0, 0, 0])
        y1, y2 = np.where(rows)[0][[0, -1]]
        x1, x2 = np.where(cols)[0][[0, -1]]
        return np.array([x1, y1, x2 + 1, y2 + 1])

    def resample(self, width: int, height: int) -> "CategoryMask":
        """Nearest-neighbour resample to a new size, keeping raw scores."""
        width, height = int(width), int(height)
        if (width, height) == self.size:
            return CategoryMask(width, height, self.scores.copy())
        grid = self.scores.reshape(self.height, self.width)
        resized = cv2.resize(grid, (width, height), interpolation=cv2.INTER_NEAREST)
        return CategoryMask(width, height, resized.reshape(-1))
