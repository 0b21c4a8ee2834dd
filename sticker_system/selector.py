"""
Interactive Sticker Selector

Opens a matplotlib window where the user marks the region to cut out.
Supports:
- Left click: select a single point (replaces previous input)
- Shift + left drag: scribble over the region (points accumulate)
- Enter: extract the selection as a sticker
- 'r': reset input and mask
- 'q': quit without extracting
"""

import asyncio
import logging
from typing import Optional

import matplotlib.pyplot as plt

from . import config
from .cutout import CutoutExtractor, ImageArtifact
from .errors import StickerError
from .image_utils import create_temp_surface
from .overlay import MaskOverlayRenderer
from .session import SegmentationSession, normalize_pointer
from .surface import Surface, blend_over

logger = logging.getLogger(__name__)

HELP = "L-click: point | Shift+drag: scribble | Enter: extract | R: reset | Q: quit"


class InteractiveStickerSelector:
    """Click/scribble-to-segment UI using matplotlib."""

    def __init__(
        self,
        session: SegmentationSession,
        renderer: MaskOverlayRenderer = None,
        extractor: CutoutExtractor = None,
        trim: bool = False,
    ):
        self.session = session
        self.renderer = renderer or MaskOverlayRenderer()
        self.extractor = extractor or CutoutExtractor()
        self.trim = trim
        if self.session.overlay_surface is None:
            self.session.overlay_surface = Surface(1, 1)

        self.media = None
        self._ax = None
        self._scribbling = False
        self._last_input = None
        self._status = ""
        self.artifact: Optional[ImageArtifact] = None
        self.cancelled = False
        self._loop = None

    def attach(self, media, ax):
        """Bind the selector to a media object and the axes showing it."""
        self.session.start_new_context(media)
        self.media = media
        self._ax = ax
        self._scribbling = False
        self._last_input = None
        self._status = ""
        self.artifact = None
        self.cancelled = False
        self._update_display()

    def select_sticker(self, media, title: str = "") -> Optional[ImageArtifact]:
        """Launch the selection UI and block until it closes.

        Returns:
            The extracted sticker, or None if cancelled
        """
        fig, ax = plt.subplots(1, 1, figsize=config.INTERACTIVE_FIGSIZE)
        fig.canvas.mpl_connect('button_press_event', self._on_press)
        fig.canvas.mpl_connect('motion_notify_event', self._on_motion)
        fig.canvas.mpl_connect('button_release_event', self._on_release)
        fig.canvas.mpl_connect('key_press_event', self._on_key)
        self.attach(media, ax)
        if title:
            fig.suptitle(title, fontsize=9)

        plt.tight_layout()
        try:
            plt.show(block=True)
        finally:
            self.close()
        return self.artifact

    def close(self):
        """Release the selector's event loop."""
        if self._loop is not None and not self._loop.is_closed():
            self._loop.close()
        self._loop = None

    # ─── Event handlers ───────────────────────────────────────

    def _on_press(self, event):
        if event.inaxes != self._ax or event.button != 1 or event.xdata is None:
            return
        point = normalize_pointer(event.xdata, event.ydata, self.media)
        self._last_input = (event.xdata - self.media.x, event.ydata - self.media.y)

        if event.key == 'shift':
            self._scribbling = True
            self.session.record_scribble(point)
            self._update_display()
        else:
            self.session.record_click(point)
            self._segment()

    def _on_motion(self, event):
        if not self._scribbling or event.inaxes != self._ax or event.xdata is None:
            return
        self.session.record_scribble(normalize_pointer(event.xdata, event.ydata, self.media))
        self._last_input = (event.xdata - self.media.x, event.ydata - self.media.y)

    def _on_release(self, event):
        if not self._scribbling:
            return
        self._scribbling = False
        self._segment()

    def _on_key(self, event):
        if event.key == 'enter':
            self._extract()
        elif event.key == 'r':
            self.session.reset()
            self._last_input = None
            self._status = "Reset"
            self._update_display()
        elif event.key == 'q':
            self.cancelled = True
            plt.close(self._ax.figure)

    # ─── Actions ──────────────────────────────────────────────

    def _run(self, coro):
        """Drive `coro` to completion on the selector's own event loop."""
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        try:
            return self._loop.run_until_complete(coro)
        except RuntimeError:
            coro.close()
            raise

    def _segment(self):
        try:
            mask = self._run(self.session.request_segmentation(self.media))
        except StickerError as e:
            logger.warning("[Selector] Segmentation failed: %s", e)
            self._status = str(e)
        except RuntimeError as e:
            # another event loop already runs in this thread (e.g. a notebook)
            logger.error("[Selector] Cannot run segmentation here: %s", e)
            self._status = f"Segmentation unavailable: {e}"
        else:
            if mask is not None:
                self.renderer.render(mask, self.session.overlay_surface)
                self._status = f"Mask: {mask.area:,} px"
        self._update_display()

    def _extract(self):
        try:
            if self.trim:
                self.artifact = self.extractor.extract_trimmed(self.media, self.session.latest_mask)
            else:
                self.artifact = self.extractor.extract(self.media, self.session.latest_mask)
        except StickerError as e:
            logger.warning("[Selector] Extraction failed: %s", e)
            self._status = str(e)
            self._update_display()
            return
        plt.close(self._ax.figure)

    def _update_display(self):
        """Redraw the source with the current overlay and input marker."""
        frame = create_temp_surface(self.media).get_image_data()

        overlay = self.session.overlay_surface
        if self.session.latest_mask is not None and overlay.size == (frame.shape[1], frame.shape[0]):
            frame = blend_over(frame, overlay.pixels)

        if self._last_input is not None:
            markers = Surface(frame.shape[1], frame.shape[0])
            self.renderer.render_input_marker(markers, self._last_input)
            frame = blend_over(frame, markers.pixels)

        ax = self._ax
        ax.clear()
        m = self.media
        ax.imshow(frame, extent=(m.x, m.x + m.width, m.y + m.height, m.y))
        status = f" | {self._status}" if self._status else ""
        ax.set_title(f"Points: {len(self.session.points)}{status}\n{HELP}", fontsize=9)
        ax.axis('off')
        ax.figure.canvas.draw_idle()
