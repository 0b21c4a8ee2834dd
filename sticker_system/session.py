"""
Interactive segmentation session.

Accumulates pointer input into a query basis, issues queries against the
segmentation engine and owns the one authoritative mask. Every query takes a
new generation token; a response is only committed if its token is still the
latest one issued, so a slow, superseded query can never overwrite a newer
mask.
"""

import logging
from typing import List, Optional, Tuple

from .engine import NormalizedPoint, QueryBasis, POINT_MODE, SCRIBBLE_MODE
from .errors import DimensionMismatch, EngineNotReady, InvalidQuery, NoMaskAvailable
from .image_utils import create_temp_surface
from .mask import CategoryMask

logger = logging.getLogger(__name__)


def normalize_pointer(
    event_x: float,
    event_y: float,
    media,
    element_size: Tuple[float, float] = None,
    surface_size: Tuple[float, float] = None,
) -> NormalizedPoint:
    """Normalize a raw pointer position against the media object's own size.

    Args:
        event_x, event_y: Pointer position in display-element coordinates
        media: The MediaObject being segmented
        element_size: (width, height) of the element that produced the event
        surface_size: (width, height) of the drawing surface in pixels. When
            both sizes are given, the event is first scaled into surface pixels.

    Returns:
        NormalizedPoint clamped to [0, 1] on both axes
    """
    if element_size and surface_size and all(element_size):
        event_x = event_x * surface_size[0] / element_size[0]
        event_y = event_y * surface_size[1] / element_size[1]

    nx = (event_x - media.x) / media.width
    ny = (event_y - media.y) / media.height
    return NormalizedPoint(min(max(nx, 0.0), 1.0), min(max(ny, 0.0), 1.0))


class SegmentationSession:
    """Single active click/scribble selection against one engine."""

    def __init__(self, engine, overlay_surface=None):
        """
        Args:
            engine: SegmentationEngine instance
            overlay_surface: Optional Surface the mask overlay is drawn into;
                cleared on reset()
        """
        self.engine = engine
        self.overlay_surface = overlay_surface
        self.media = None
        self.latest_mask: Optional[CategoryMask] = None
        self._mode: Optional[str] = None
        self._points: List[NormalizedPoint] = []
        self._generation = 0
        self._pending: Optional[int] = None

    # ─── State ────────────────────────────────────────────────

    @property
    def mode(self) -> Optional[str]:
        return self._mode

    @property
    def points(self) -> Tuple[NormalizedPoint, ...]:
        return tuple(self._points)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def has_pending_query(self) -> bool:
        return self._pending is not None

    def query_basis(self) -> QueryBasis:
        if not self._points:
            raise InvalidQuery("Click or scribble on the image before segmenting")
        if self._mode == POINT_MODE:
            return QueryBasis.click(self._points[-1])
        return QueryBasis.scribble(self._points)

    # ─── Input ────────────────────────────────────────────────

    def record_click(self, point: NormalizedPoint):
        """Replace any prior input with this single foreground point."""
        self._supersede_pending()
        self._mode = POINT_MODE
        self._points = [point]

    def record_scribble(self, point: NormalizedPoint):
        """Append a point to the scribble, dropping a prior click first."""
        self._supersede_pending()
        if self._mode != SCRIBBLE_MODE:
            self._points = []
            self._mode = SCRIBBLE_MODE
        self._points.append(point)

    def _supersede_pending(self):
        """Make any query still in flight stale."""
        if self._pending is not None:
            self._generation += 1
            self._pending = None

    def reset(self):
        """Drop all input and the latest mask, and clear the overlay.

        Any query still in flight becomes stale.
        """
        if self._points or self.latest_mask is not None or self._pending is not None:
            logger.debug("[Session] Reset (generation %d)", self._generation)
        self._mode = None
        self._points = []
        self.latest_mask = None
        self._supersede_pending()
        if self.overlay_surface is not None:
            self.overlay_surface.clear()

    def start_new_context(self, media):
        """Switch the session to a new source object, resetting if it changed."""
        if media is not self.media:
            self.reset()
            self.media = media

    # ─── Queries ──────────────────────────────────────────────

    def commit(self, generation: int, mask: CategoryMask) -> bool:
        """Store `mask` if `generation` is still the latest query. Returns True if stored."""
        if generation != self._generation:
            logger.info(
                "[Session] Discarding stale result for query #%d (current #%d)",
                generation, self._generation,
            )
            return False
        self.latest_mask = mask
        return True

    async def request_segmentation(self, media) -> Optional[CategoryMask]:
        """Segment `media` with the accumulated input.

        Returns:
            The new mask, or None if a newer query superseded this one
            while it was in flight.

        Raises:
            EngineNotReady: the engine has not finished loading
            InvalidQuery: no click or scribble has been recorded
            NoMaskAvailable: the engine returned no mask
            DimensionMismatch: the engine returned a mask of the wrong size
        """
        if not self.engine.ready:
            raise EngineNotReady()
        basis = self.query_basis()

        raster = create_temp_surface(media)
        self._generation += 1
        token = self._generation
        self._pending = token
        logger.debug(
            "[Session] Query #%d: %s with %d point(s) on %dx%d raster",
            token, basis.mode, len(basis.points), raster.width, raster.height,
        )

        try:
            mask = await self.engine.segment(raster, basis)
        finally:
            if self._pending == token:
                self._pending = None

        if token != self._generation:
            self.commit(token, mask)
            return None
        if mask is None:
            raise NoMaskAvailable("Segmentation engine returned no mask")
        if mask.size != raster.size:
            raise DimensionMismatch(raster.size, mask.size)

        self.commit(token, mask)
        logger.info("[Session] Query #%d committed: %d px selected", token, mask.area)
        return mask
