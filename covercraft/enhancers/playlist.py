"""Playlist artwork built from the images of the playlist's members."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, List, Optional

from PIL import Image
from structlog.stdlib import BoundLogger

from ..config import CollageSettings, resolve_timezone
from ..engine.cache_key import configuration_cache_key
from ..engine.candidates import ImageCandidate, select_candidates
from ..engine.compositor import CompositeImage, Compositor
from ..engine.layout import CollageLayout, CollageStyle, ImageSize, compute_layout, enhanced_size
from ..engine.rotation import rotate
from ..library import EntityGraph, ItemKind, LibraryItem
from ..logging import get_logger, render_context
from .base import EnhancerPriority, ImageKind, UnsupportedImageKindError

_STYLES = {
    ImageKind.PRIMARY: CollageStyle.SQUARE,
    ImageKind.THUMB: CollageStyle.THUMB,
}


def today_in(timezone: str) -> Callable[[], date]:
    """Return a callable giving the current date in ``timezone``."""
    tz, _ = resolve_timezone(timezone)
    return lambda: datetime.now(tz).date()


class PlaylistImageEnhancer:
    """Replace playlist artwork with a collage of the day's member images."""

    name = "playlist_collage"
    priority = EnhancerPriority.FIRST

    def __init__(
        self,
        graph: EntityGraph,
        settings: Optional[CollageSettings] = None,
        *,
        today: Optional[Callable[[], date]] = None,
        logger: Optional[BoundLogger] = None,
    ) -> None:
        self.graph = graph
        self.settings = settings or CollageSettings()
        self._today = today or today_in("UTC")
        self._logger = logger or get_logger(__name__)
        self.compositor = Compositor.from_settings(self.settings, logger=self._logger)

    # ------------------------------------------------------------------
    # Enhancer contract
    # ------------------------------------------------------------------
    def supports(self, item: LibraryItem, image_kind: ImageKind) -> bool:
        return item.kind is ItemKind.PLAYLIST and image_kind in _STYLES

    def cache_key(self, item: LibraryItem, image_kind: ImageKind) -> str:
        self._style_for(item, image_kind)
        return self.configuration_cache_key(self.items_with_images(item))

    def enhanced_size(self, item: LibraryItem, image_kind: ImageKind, original_size: ImageSize) -> ImageSize:
        style = self._style_for(item, image_kind)
        return enhanced_size(len(self.items_with_images(item)), style, original_size)

    def enhance(self, item: LibraryItem, image_kind: ImageKind, original_image: Image.Image) -> Image.Image:
        composite = self.render(item, image_kind)
        if composite is None:
            return original_image

        if composite.image is not original_image:
            original_image.close()
        return composite.image

    # ------------------------------------------------------------------
    # Helpers shared with the CLI
    # ------------------------------------------------------------------
    def items_with_images(self, item: LibraryItem, reference_day: Optional[date] = None) -> List[ImageCandidate]:
        """Select and rotate the candidates for ``item`` on ``reference_day``."""
        day = reference_day or self._today()
        candidates = select_candidates(self.graph, item)
        return rotate(candidates, day, mode=self.settings.rotation)

    def configuration_cache_key(self, candidates: List[ImageCandidate]) -> str:
        return configuration_cache_key(candidates, self.settings.policy_version)

    def plan(
        self,
        item: LibraryItem,
        image_kind: ImageKind,
        reference_day: Optional[date] = None,
    ) -> tuple[List[ImageCandidate], CollageLayout]:
        style = self._style_for(item, image_kind)
        candidates = self.items_with_images(item, reference_day)
        return candidates, compute_layout(len(candidates), style)

    def render(
        self,
        item: LibraryItem,
        image_kind: ImageKind,
        reference_day: Optional[date] = None,
    ) -> Optional[CompositeImage]:
        """Render the composite, or return ``None`` when there is nothing to draw."""
        self._style_for(item, image_kind)
        with render_context(playlist_id=str(item.id), image_kind=ImageKind(image_kind).value):
            candidates, layout = self.plan(item, image_kind, reference_day)
            if layout.mode == "none":
                self._logger.info("collage.passthrough", reason="no_candidates")
                return None

            composite = self.compositor.compose(candidates, layout)
            self._logger.info(
                "collage.rendered",
                mode=composite.layout_mode,
                candidates=len(candidates),
                width=composite.width,
                height=composite.height,
            )
        return composite

    def _style_for(self, item: LibraryItem, image_kind: ImageKind) -> CollageStyle:
        if item.kind is not ItemKind.PLAYLIST:
            raise UnsupportedImageKindError(f"{self.name} only handles playlists, not {item.kind.value}")
        try:
            return _STYLES[ImageKind(image_kind)]
        except (KeyError, ValueError) as exc:
            raise UnsupportedImageKindError(f"{self.name} does not handle image kind {image_kind!r}") from exc
