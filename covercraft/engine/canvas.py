"""Pillow drawing surface used by the compositor."""

from __future__ import annotations

from io import BytesIO
from typing import Tuple

from PIL import Image

from .layout import Rect

TRANSPARENT = (0, 0, 0, 0)

_STORABLE_MODES = {
    "PNG": frozenset({"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}),
    "WEBP": frozenset({"RGB", "RGBA"}),
}


class Canvas:
    """RGBA canvas that only ever replaces pixels, never blends them."""

    def __init__(self, width: int, height: int):
        self._image = Image.new("RGBA", (width, height), TRANSPARENT)

    @classmethod
    def allocate(cls, width: int, height: int) -> "Canvas":
        return cls(width, height)

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def size(self) -> Tuple[int, int]:
        return self._image.size

    def draw_scaled(self, source: Image.Image, rect: Rect) -> None:
        """Resize ``source`` to ``rect`` with bicubic resampling and paste it.

        Pasting without a mask copies the source pixels, alpha included, so
        an earlier draw under the same area is overwritten. Parts of ``rect``
        outside the canvas are clipped.
        """
        if source.mode != "RGBA":
            source = source.convert("RGBA")
        scaled = source.resize((rect.width, rect.height), Image.Resampling.BICUBIC)
        self._image.paste(scaled, (rect.x, rect.y))

    def fill(self, rect: Rect, color: Tuple[int, int, int, int]) -> None:
        self._image.paste(color, rect.box)

    def encode(self, image_format: str = "PNG", quality: int = 90) -> bytes:
        return encode_image(self._image, image_format, quality)


def encode_image(image: Image.Image, image_format: str = "PNG", quality: int = 90) -> bytes:
    """Encode ``image`` to bytes.

    JPEG output is flattened to RGB first. Modes the target format cannot
    store (CMYK or YCbCr sources returned unscaled, say) are converted to
    RGBA.
    """
    image_format = image_format.upper()
    storable = _STORABLE_MODES.get(image_format)
    if storable is not None and image.mode not in storable:
        image = image.convert("RGBA")
    buffer = BytesIO()
    if image_format == "JPEG":
        image.convert("RGB").save(buffer, format="JPEG", quality=quality, optimize=True)
    elif image_format == "WEBP":
        image.save(buffer, format="WEBP", quality=quality)
    else:
        image.save(buffer, format=image_format)
    return buffer.getvalue()
