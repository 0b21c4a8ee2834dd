"""Shared fixtures: a scriptable fake engine and small image objects."""

import asyncio

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from sticker_system.engine import SegmentationEngine
from sticker_system.mask import CategoryMask
from sticker_system.media import ImageObject


def select_all(raster, basis):
    return CategoryMask.from_selection(np.ones((raster.height, raster.width), dtype=bool))


class FakeEngine(SegmentationEngine):
    """Engine stand-in. Each call can be held back by queueing an asyncio.Event in `gates`."""

    def __init__(self, ready=True, mask_factory=select_all):
        self._ready = ready
        self.mask_factory = mask_factory
        self.calls = []
        self.gates = []

    @property
    def ready(self):
        return self._ready

    async def initialize(self, model_location=None, execution_hint=None):
        self._ready = True

    async def segment(self, raster, basis):
        self.calls.append((raster.size, basis))
        gate = self.gates.pop(0) if self.gates else None
        if gate is not None:
            await gate.wait()
        return self.mask_factory(raster, basis)


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def rgb_image():
    # 4 wide, 3 high, every pixel distinct
    values = np.arange(4 * 3 * 3, dtype=np.uint8).reshape(3, 4, 3) * 7
    return values


@pytest.fixture
def image_object(rgb_image):
    return ImageObject(100, 50, 4, 3, rgb_image)


def gated(engine, count):
    """Queue `count` gates on `engine` and return them in call order."""
    gates = [asyncio.Event() for _ in range(count)]
    engine.gates.extend(gates)
    return gates
