from types import SimpleNamespace

import matplotlib.pyplot as plt
import numpy as np
import pytest

from sticker_system.cutout import CutoutExtractor
from sticker_system.engine import SCRIBBLE_MODE
from sticker_system.media import ImageObject
from sticker_system.session import SegmentationSession
from sticker_system.selector import InteractiveStickerSelector

from conftest import FakeEngine


def _event(ax, x=None, y=None, button=1, key=None):
    return SimpleNamespace(inaxes=ax, xdata=x, ydata=y, button=button, key=key)


@pytest.fixture
def media():
    return ImageObject(10, 20, 8, 6, np.full((6, 8, 3), 120, dtype=np.uint8))


@pytest.fixture
def ui(media):
    session = SegmentationSession(FakeEngine())
    selector = InteractiveStickerSelector(session, extractor=CutoutExtractor())
    fig, ax = plt.subplots()
    selector.attach(media, ax)
    yield selector, ax
    selector.close()
    plt.close(fig)


def test_click_segments_and_draws_overlay(ui, media):
    selector, ax = ui

    selector._on_press(_event(ax, 14, 23))

    session = selector.session
    assert session.points[0].x == pytest.approx(0.5)
    assert session.points[0].y == pytest.approx(0.5)
    assert session.latest_mask is not None
    assert session.overlay_surface.size == (8, 6)
    assert session.overlay_surface.pixels[..., 3].all()


def test_scribble_drag(ui):
    selector, ax = ui

    selector._on_press(_event(ax, 11, 21, key="shift"))
    selector._on_motion(_event(ax, 12, 22))
    selector._on_motion(_event(ax, 13, 23))
    assert selector.session.latest_mask is None
    selector._on_release(_event(ax, 13, 23))

    assert selector.session.mode == SCRIBBLE_MODE
    assert len(selector.session.points) == 3
    assert selector.session.latest_mask is not None


def test_clicks_outside_axes_ignored(ui):
    selector, ax = ui
    selector._on_press(_event(None, 14, 23))
    assert selector.session.points == ()


def test_enter_extracts_sticker(ui):
    selector, ax = ui
    selector._on_press(_event(ax, 14, 23))

    selector._on_key(_event(ax, key="enter"))

    assert selector.artifact is not None
    assert (selector.artifact.width, selector.artifact.height) == (8, 6)


def test_enter_without_mask_reports(ui):
    selector, ax = ui
    selector._on_key(_event(ax, key="enter"))
    assert selector.artifact is None
    assert "select a region" in selector._status


def test_reset_key(ui):
    selector, ax = ui
    selector._on_press(_event(ax, 14, 23))

    selector._on_key(_event(ax, key="r"))

    assert selector.session.latest_mask is None
    assert not selector.session.overlay_surface.pixels.any()


def test_engine_not_ready_is_reported(media):
    session = SegmentationSession(FakeEngine(ready=False))
    selector = InteractiveStickerSelector(session)
    fig, ax = plt.subplots()
    selector.attach(media, ax)

    selector._on_press(_event(ax, 14, 23))

    assert "try again" in selector._status
    assert session.latest_mask is None
    selector.close()
    plt.close(fig)


@pytest.mark.asyncio
async def test_click_inside_running_loop_is_reported(ui):
    selector, ax = ui

    selector._on_press(_event(ax, 14, 23))

    assert "unavailable" in selector._status
    assert selector.session.latest_mask is None


def test_selector_reuses_its_event_loop(ui):
    selector, ax = ui
    selector._on_press(_event(ax, 14, 23))
    loop = selector._loop
    selector._on_press(_event(ax, 12, 22))

    assert selector._loop is loop
    selector.close()
    assert selector._loop is None
