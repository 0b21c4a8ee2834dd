"""
Error taxonomy for the segmentation session and mask pipeline.

All of these are expected, recoverable conditions reported to the caller.
"""


class StickerError(Exception):
    """Base class for all sticker pipeline errors."""


class EngineNotReady(StickerError):
    """The segmentation engine has not finished initializing. Retry shortly."""

    def __init__(self, message: str = "Segmentation engine is still loading, try again in a moment"):
        super().__init__(message)


class NoMaskAvailable(StickerError):
    """A mask-requiring operation ran before a mask was computed."""

    def __init__(self, message: str = "No mask available, select a region first"):
        super().__init__(message)


class NoDrawingSurface(StickerError):
    """A required rendering target is missing."""

    def __init__(self, message: str = "No drawing surface supplied"):
        super().__init__(message)


class DimensionMismatch(StickerError, ValueError):
    """Mask and pixel buffer sizes disagree."""

    def __init__(self, expected, actual):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(
            f"Dimension mismatch: expected {_fmt(self.expected)}, got {_fmt(self.actual)}"
        )


def _fmt(dims) -> str:
    return "x".join(str(d) for d in dims)


class InvalidQuery(StickerError, ValueError):
    """A segmentation query was issued without any recorded input."""
