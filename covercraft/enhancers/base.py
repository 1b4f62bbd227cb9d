"""Base interfaces for Covercraft image enhancers."""

from __future__ import annotations

from datetime import date
from enum import Enum, IntEnum
from typing import Callable, Optional, Protocol, TYPE_CHECKING

from PIL import Image
from structlog.stdlib import BoundLogger

from ..config import CollageSettings
from ..engine.layout import ImageSize

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..library import EntityGraph, LibraryItem


class ImageKind(str, Enum):
    PRIMARY = "primary"
    THUMB = "thumb"
    BACKDROP = "backdrop"
    LOGO = "logo"
    BANNER = "banner"
    ART = "art"


class EnhancerPriority(IntEnum):
    FIRST = 0
    SECOND = 1
    LAST = 2


class UnsupportedImageKindError(ValueError):
    """Raised when an enhancer is asked for an item or image kind it does not handle."""


class ImageEnhancer(Protocol):
    """Protocol defining the operations a host image pipeline calls."""

    name: str
    priority: EnhancerPriority

    def supports(self, item: "LibraryItem", image_kind: ImageKind) -> bool:
        """Return ``True`` when this enhancer handles ``image_kind`` for ``item``."""

    def cache_key(self, item: "LibraryItem", image_kind: ImageKind) -> str:
        """Key that changes whenever :meth:`enhance` would produce different output."""

    def enhanced_size(self, item: "LibraryItem", image_kind: ImageKind, original_size: ImageSize) -> ImageSize:
        """Size :meth:`enhance` will return, computed without rendering."""

    def enhance(self, item: "LibraryItem", image_kind: ImageKind, original_image: Image.Image) -> Image.Image:
        """Return the enhanced image, or ``original_image`` when nothing applies."""


class ImageEnhancerFactory(Protocol):
    """Factories create enhancer instances bound to an entity graph."""

    def __call__(
        self,
        graph: "EntityGraph",
        settings: Optional[CollageSettings] = None,
        *,
        today: Optional[Callable[[], date]] = None,
        logger: Optional[BoundLogger] = None,
    ) -> ImageEnhancer:
        ...
