"""Error types raised by the overlay pipeline."""
from __future__ import annotations


class OverlayError(RuntimeError):
    """Base class for failures that abort a render."""


class InvalidArgumentError(OverlayError, ValueError):
    """Raised when an input or output path has an unsupported extension."""


class MalformedInputError(OverlayError, ValueError):
    """Raised when track data cannot be parsed or is semantically invalid."""


class DegenerateTrackError(OverlayError):
    """Raised when a track has no spatial extent to scale onto the canvas."""


class EncodingError(OverlayError):
    """Raised when an image cannot be decoded or encoded."""


__all__ = [
    "OverlayError",
    "InvalidArgumentError",
    "MalformedInputError",
    "DegenerateTrackError",
    "EncodingError",
]
