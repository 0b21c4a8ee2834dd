import asyncio

import numpy as np
import pytest

from sticker_system.engine import NormalizedPoint, POINT_MODE, SCRIBBLE_MODE
from sticker_system.errors import DimensionMismatch, EngineNotReady, InvalidQuery, NoMaskAvailable
from sticker_system.mask import CategoryMask
from sticker_system.media import ImageObject
from sticker_system.session import SegmentationSession, normalize_pointer
from sticker_system.surface import Surface

from conftest import FakeEngine, gated

P = NormalizedPoint


def _state(session):
    return (session.mode, session.points, session.latest_mask, session.generation, session.has_pending_query)


def test_reset_on_fresh_session(engine):
    session = SegmentationSession(engine)
    initial = _state(session)

    session.reset()

    assert _state(session) == initial


def test_click_discards_scribble(engine):
    session = SegmentationSession(engine)
    session.record_scribble(P(0.1, 0.1))
    session.record_scribble(P(0.2, 0.2))

    session.record_click(P(0.5, 0.5))

    assert session.mode == POINT_MODE
    assert session.points == (P(0.5, 0.5),)
    assert session.query_basis().points == (P(0.5, 0.5),)


def test_click_replaces_click(engine):
    session = SegmentationSession(engine)
    session.record_click(P(0.1, 0.1))
    session.record_click(P(0.9, 0.9))
    assert session.points == (P(0.9, 0.9),)


def test_scribble_drops_click_and_keeps_order(engine):
    session = SegmentationSession(engine)
    session.record_click(P(0.5, 0.5))
    for v in (0.3, 0.1, 0.2):
        session.record_scribble(P(v, v))

    basis = session.query_basis()
    assert basis.mode == SCRIBBLE_MODE
    assert [p.x for p in basis.points] == [0.3, 0.1, 0.2]


def test_query_basis_needs_input(engine):
    with pytest.raises(InvalidQuery):
        SegmentationSession(engine).query_basis()


def test_reset_clears_overlay(engine):
    overlay = Surface(2, 2)
    overlay.fill_rect(0, 0, 2, 2, (1, 2, 3, 255))
    session = SegmentationSession(engine, overlay_surface=overlay)
    session.record_click(P(0.5, 0.5))

    session.reset()

    assert session.points == ()
    assert not overlay.pixels.any()


def test_start_new_context_resets_on_new_media(engine, image_object, rgb_image):
    session = SegmentationSession(engine)
    session.start_new_context(image_object)
    session.record_click(P(0.5, 0.5))

    session.start_new_context(image_object)
    assert session.points

    session.start_new_context(ImageObject(0, 0, 4, 3, rgb_image))
    assert session.points == ()


@pytest.mark.asyncio
async def test_engine_not_ready(image_object):
    engine = FakeEngine(ready=False)
    session = SegmentationSession(engine)
    session.record_click(P(0.5, 0.5))

    with pytest.raises(EngineNotReady):
        await session.request_segmentation(image_object)
    assert engine.calls == []

    await engine.initialize("model", "cpu")
    assert await session.request_segmentation(image_object) is not None


@pytest.mark.asyncio
async def test_request_without_input(engine, image_object):
    with pytest.raises(InvalidQuery):
        await SegmentationSession(engine).request_segmentation(image_object)


@pytest.mark.asyncio
async def test_raster_sized_to_media_geometry(engine, rgb_image):
    media = ImageObject(300, 200, 40, 30, rgb_image)
    session = SegmentationSession(engine)
    session.record_click(P(0.25, 0.75))

    mask = await session.request_segmentation(media)

    size, basis = engine.calls[0]
    assert size == (40, 30)
    assert basis.mode == POINT_MODE
    assert mask is session.latest_mask
    assert mask.size == (40, 30)


def _tagging_factory(produced):
    """Mask factory that remembers which clicked point each mask answered."""
    def factory(raster, basis):
        mask = CategoryMask.from_selection(np.zeros((raster.height, raster.width), dtype=bool))
        produced[basis.points[0]] = mask
        return mask
    return factory


@pytest.mark.asyncio
async def test_stale_response_is_discarded(image_object):
    produced = {}
    engine = FakeEngine(mask_factory=_tagging_factory(produced))
    session = SegmentationSession(engine)
    first_gate, second_gate = gated(engine, 2)

    session.record_click(P(0.1, 0.1))
    first = asyncio.create_task(session.request_segmentation(image_object))
    await asyncio.sleep(0)
    session.record_click(P(0.9, 0.9))
    second = asyncio.create_task(session.request_segmentation(image_object))
    await asyncio.sleep(0)

    second_gate.set()
    newer = await second
    first_gate.set()
    older = await first

    assert older is None
    assert newer is produced[P(0.9, 0.9)]
    assert session.latest_mask is newer
    assert not session.has_pending_query


@pytest.mark.asyncio
async def test_new_click_supersedes_query_in_flight(image_object):
    produced = {}
    engine = FakeEngine(mask_factory=_tagging_factory(produced))
    session = SegmentationSession(engine)
    (gate,) = gated(engine, 1)

    session.record_click(P(0.1, 0.1))
    task = asyncio.create_task(session.request_segmentation(image_object))
    await asyncio.sleep(0)
    session.record_click(P(0.9, 0.9))
    gate.set()

    assert await task is None
    assert P(0.1, 0.1) in produced
    assert session.latest_mask is None
    assert not session.has_pending_query
    assert session.query_basis().points == (P(0.9, 0.9),)


@pytest.mark.asyncio
async def test_new_scribble_supersedes_query_in_flight(engine, image_object):
    session = SegmentationSession(engine)
    (gate,) = gated(engine, 1)

    session.record_scribble(P(0.1, 0.1))
    task = asyncio.create_task(session.request_segmentation(image_object))
    await asyncio.sleep(0)
    session.record_scribble(P(0.2, 0.2))
    gate.set()

    assert await task is None
    assert session.latest_mask is None
    assert len(session.points) == 2


@pytest.mark.asyncio
async def test_reset_while_in_flight(engine, image_object):
    session = SegmentationSession(engine)
    (gate,) = gated(engine, 1)
    session.record_click(P(0.5, 0.5))

    task = asyncio.create_task(session.request_segmentation(image_object))
    await asyncio.sleep(0)
    assert session.has_pending_query
    session.reset()
    gate.set()

    assert await task is None
    assert session.latest_mask is None


@pytest.mark.asyncio
async def test_missing_mask_from_engine(image_object):
    session = SegmentationSession(FakeEngine(mask_factory=lambda raster, basis: None))
    session.record_click(P(0.5, 0.5))

    with pytest.raises(NoMaskAvailable):
        await session.request_segmentation(image_object)
    assert session.latest_mask is None


@pytest.mark.asyncio
async def test_wrong_size_mask_from_engine(image_object):
    engine = FakeEngine(mask_factory=lambda raster, basis: CategoryMask(1, 1, [0.0]))
    session = SegmentationSession(engine)
    session.record_click(P(0.5, 0.5))

    with pytest.raises(DimensionMismatch):
        await session.request_segmentation(image_object)
    assert session.latest_mask is None


def test_commit_checks_generation(engine):
    session = SegmentationSession(engine)
    mask = CategoryMask(1, 1, [0.0])
    assert not session.commit(session.generation + 1, mask)
    assert session.latest_mask is None
    assert session.commit(session.generation, mask)
    assert session.latest_mask is mask


def test_normalize_pointer_uses_media_frame(rgb_image):
    media = ImageObject(100, 50, 200, 100, rgb_image)
    assert normalize_pointer(200, 100, media) == P(0.5, 0.5)
    assert normalize_pointer(0, 500, media) == P(0.0, 1.0)


def test_normalize_pointer_scales_display_element(rgb_image):
    media = ImageObject(100, 50, 200, 100, rgb_image)
    point = normalize_pointer(100, 50, media, element_size=(400, 200), surface_size=(800, 400))
    assert point == P(0.5, 0.5)


def test_normalized_point_range():
    with pytest.raises(ValueError):
        P(1.5, 0.0)


def test_normalize_pointer_ignores_zero_sized_element(rgb_image):
    media = ImageObject(100, 50, 200, 100, rgb_image)
    point = normalize_pointer(200, 100, media, element_size=(0, 200), surface_size=(800, 400))
    assert point == P(0.5, 0.5)
