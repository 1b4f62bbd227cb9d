"""Playlist composite engine: selection, rotation, layout and drawing."""

from .cache_key import configuration_cache_key
from .candidates import ImageCandidate, select_candidates
from .canvas import Canvas
from .compositor import CompositeError, CompositeImage, Compositor, SourceImageError
from .layout import (
    CollageLayout,
    CollageStyle,
    ImageSize,
    Rect,
    UnsupportedStyleError,
    compute_layout,
    enhanced_size,
)
from .rotation import MAX_COLLAGE_ITEMS, rotate, stable_subset

__all__ = [
    "Canvas",
    "CollageLayout",
    "CollageStyle",
    "CompositeError",
    "CompositeImage",
    "Compositor",
    "ImageCandidate",
    "ImageSize",
    "MAX_COLLAGE_ITEMS",
    "Rect",
    "SourceImageError",
    "UnsupportedStyleError",
    "compute_layout",
    "configuration_cache_key",
    "enhanced_size",
    "rotate",
    "select_candidates",
    "stable_subset",
]
