"""Grid shapes and cell placement for playlist composites."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Tuple

SQUARE_IMAGE_SIZE = 800
THUMB_IMAGE_WIDTH = 1600
THUMB_IMAGE_HEIGHT = 900

SQUARE_GRID_MINIMUM = 4
THUMB_STRIP_MINIMUM = 3


class CollageStyle(str, Enum):
    THUMB = "thumb"
    SQUARE = "square"


class UnsupportedStyleError(ValueError):
    """Raised when a layout is requested for a style the engine does not draw."""


@dataclass(frozen=True)
class ImageSize:
    width: int
    height: int


@dataclass(frozen=True)
class Rect:
    """Destination rectangle on the canvas, in pixels."""

    x: int
    y: int
    width: int
    height: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


LayoutMode = Literal["none", "single", "grid", "strip"]


@dataclass(frozen=True)
class CollageLayout:
    """Canvas size and cells chosen for a candidate count and style.

    ``mode == "none"`` means there is nothing to draw and the caller should
    keep the original image.
    """

    mode: LayoutMode
    style: CollageStyle
    canvas: Optional[ImageSize] = None
    cells: Tuple[Rect, ...] = ()

    @property
    def is_composite(self) -> bool:
        return self.mode in ("grid", "strip")


def _coerce_style(style: object) -> CollageStyle:
    try:
        return CollageStyle(style)
    except ValueError as exc:
        raise UnsupportedStyleError(f"Unsupported collage style: {style!r}") from exc


def canvas_size(style: CollageStyle) -> ImageSize:
    style = _coerce_style(style)
    if style is CollageStyle.THUMB:
        return ImageSize(THUMB_IMAGE_WIDTH, THUMB_IMAGE_HEIGHT)
    return ImageSize(SQUARE_IMAGE_SIZE, SQUARE_IMAGE_SIZE)


def _square_grid() -> Tuple[Rect, ...]:
    rows = 2
    cols = 2
    single_size = SQUARE_IMAGE_SIZE // 2
    cells = []
    for row in range(rows):
        for col in range(cols):
            cells.append(Rect(col * single_size, row * single_size, single_size, single_size))
    return tuple(cells)


def _thumb_strip() -> Tuple[Rect, ...]:
    # Panels are two thirds wide but advance by one third, so each one
    # covers half of its left neighbour; the last panel runs off the edge.
    cols = 3
    cell_width = 2 * (THUMB_IMAGE_WIDTH // 3)
    cell_height = THUMB_IMAGE_HEIGHT
    stride = cell_width // 2
    return tuple(Rect(col * stride, 0, cell_width, cell_height) for col in range(cols))


def compute_layout(candidate_count: int, style: CollageStyle) -> CollageLayout:
    """Choose the layout for ``candidate_count`` images in ``style``."""

    style = _coerce_style(style)
    if candidate_count < 0:
        raise ValueError("candidate_count must not be negative")
    if candidate_count == 0:
        return CollageLayout(mode="none", style=style)

    canvas = canvas_size(style)
    full_canvas = (Rect(0, 0, canvas.width, canvas.height),)

    if style is CollageStyle.SQUARE:
        if candidate_count < SQUARE_GRID_MINIMUM:
            return CollageLayout(mode="single", style=style, canvas=canvas, cells=full_canvas)
        return CollageLayout(mode="grid", style=style, canvas=canvas, cells=_square_grid())

    if candidate_count < THUMB_STRIP_MINIMUM:
        return CollageLayout(mode="single", style=style, canvas=canvas, cells=full_canvas)
    return CollageLayout(mode="strip", style=style, canvas=canvas, cells=_thumb_strip())


def enhanced_size(candidate_count: int, style: CollageStyle, original_size: ImageSize) -> ImageSize:
    """Report the output size without decoding anything.

    With no candidates the original artwork is kept, so its size is returned.
    """

    layout = compute_layout(candidate_count, style)
    if layout.canvas is None:
        return original_size
    return layout.canvas
