"""Image enhancer interfaces and registry for Covercraft."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from structlog.stdlib import BoundLogger

from ..config import CollageSettings
from .base import EnhancerPriority, ImageEnhancer, ImageEnhancerFactory, ImageKind, UnsupportedImageKindError
from .playlist import PlaylistImageEnhancer, today_in

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..library import EntityGraph, LibraryItem

__all__ = [
    "EnhancerPriority",
    "EnhancerRegistry",
    "ImageEnhancer",
    "ImageEnhancerFactory",
    "ImageKind",
    "PlaylistImageEnhancer",
    "UnsupportedImageKindError",
    "default_registry",
    "enhancers_for",
    "today_in",
]


class EnhancerRegistry:
    """Ordered registry of enhancer implementations."""

    def __init__(self) -> None:
        self._registry: Dict[str, ImageEnhancerFactory] = {}

    def register(self, name: str, factory: ImageEnhancerFactory) -> None:
        if name in self._registry:
            raise ValueError(f"Enhancer already registered: {name}")
        self._registry[name] = factory

    def get(self, name: str) -> ImageEnhancerFactory:
        try:
            return self._registry[name]
        except KeyError as exc:
            raise KeyError(f"Unknown enhancer: {name}") from exc

    def names(self) -> Iterable[str]:
        return self._registry.keys()

    def build(
        self,
        graph: "EntityGraph",
        settings: Optional[CollageSettings] = None,
        *,
        today: Optional[Callable[[], date]] = None,
        logger: Optional[BoundLogger] = None,
    ) -> List[ImageEnhancer]:
        """Instantiate every enhancer, ordered by priority then registration."""
        enhancers = [
            factory(graph, settings, today=today, logger=logger)
            for factory in self._registry.values()
        ]
        return sorted(enhancers, key=lambda enhancer: enhancer.priority)


def enhancers_for(
    enhancers: Iterable[ImageEnhancer],
    item: "LibraryItem",
    image_kind: ImageKind,
) -> List[ImageEnhancer]:
    """Filter ``enhancers`` down to those that handle ``item``/``image_kind``."""

    return [enhancer for enhancer in enhancers if enhancer.supports(item, image_kind)]


# Singleton registry used across the app for now.
default_registry = EnhancerRegistry()
default_registry.register(PlaylistImageEnhancer.name, PlaylistImageEnhancer)
