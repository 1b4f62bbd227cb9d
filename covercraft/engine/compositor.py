"""Decode candidate images and draw them into a composite."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Literal, Optional, Sequence, Tuple

from PIL import Image
from structlog.stdlib import BoundLogger

from ..config import CollageSettings
from ..logging import get_logger
from .canvas import Canvas, encode_image
from .candidates import ImageCandidate
from .layout import CollageLayout

FailureMode = Literal["abort", "placeholder"]


class CompositeError(RuntimeError):
    """Raised when a composite cannot be produced."""


class SourceImageError(CompositeError):
    """Raised when a candidate image cannot be read or decoded."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


@dataclass(frozen=True)
class CompositeImage:
    """Rendered artwork handed back to the caller, who owns it from then on."""

    image: Image.Image
    layout_mode: str

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def to_bytes(self, image_format: str = "PNG", quality: int = 90) -> bytes:
        return encode_image(self.image, image_format, quality)


def load_source_image(path: Path) -> Image.Image:
    """Read ``path`` fully into memory and decode it.

    The file handle is closed before decoding finishes, whatever the outcome.
    """
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise SourceImageError(path, f"unreadable ({exc.strerror or exc})") from exc

    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise SourceImageError(path, f"undecodable ({exc})") from exc
    return image


class Compositor:
    """Draws candidates into the cells of a :class:`CollageLayout`."""

    def __init__(
        self,
        failure_mode: FailureMode = "abort",
        placeholder_color: Tuple[int, int, int, int] = (0, 0, 0, 255),
        logger: Optional[BoundLogger] = None,
    ) -> None:
        if failure_mode not in ("abort", "placeholder"):
            raise ValueError(f"Unsupported failure mode: {failure_mode}")
        self.failure_mode = failure_mode
        self.placeholder_color = placeholder_color
        self._logger = logger or get_logger(__name__)

    @classmethod
    def from_settings(cls, settings: CollageSettings, logger: Optional[BoundLogger] = None) -> "Compositor":
        return cls(
            failure_mode=settings.failure_mode,
            placeholder_color=settings.placeholder_rgba,
            logger=logger,
        )

    def compose(self, candidates: Sequence[ImageCandidate], layout: CollageLayout) -> CompositeImage:
        if layout.mode == "none" or layout.canvas is None or not candidates:
            raise ValueError("Nothing to compose; keep the original image instead")

        if not layout.is_composite or len(candidates) < len(layout.cells):
            return self.compose_single(candidates[0], layout)

        canvas = Canvas.allocate(layout.canvas.width, layout.canvas.height)
        for index, (rect, candidate) in enumerate(zip(layout.cells, candidates)):
            try:
                source = load_source_image(candidate.image)
            except SourceImageError as exc:
                if self.failure_mode == "abort":
                    raise
                self._logger.warning(
                    "collage.source_unreadable",
                    cell=index,
                    item_id=str(candidate.item_id),
                    path=str(candidate.image),
                    error=str(exc),
                )
                canvas.fill(rect, self.placeholder_color)
                continue

            try:
                canvas.draw_scaled(source, rect)
            finally:
                source.close()

        self._logger.debug(
            "collage.composed",
            mode=layout.mode,
            cells=len(layout.cells),
            width=layout.canvas.width,
            height=layout.canvas.height,
        )
        return CompositeImage(image=canvas.image, layout_mode=layout.mode)

    def compose_single(
        self,
        candidate: ImageCandidate,
        layout: Optional[CollageLayout] = None,
    ) -> CompositeImage:
        """Return ``candidate``'s image unscaled, at its native resolution."""
        try:
            image = load_source_image(candidate.image)
        except SourceImageError as exc:
            if self.failure_mode == "abort" or layout is None or layout.canvas is None:
                raise
            self._logger.warning(
                "collage.source_unreadable",
                cell=0,
                item_id=str(candidate.item_id),
                path=str(candidate.image),
                error=str(exc),
            )
            canvas = Canvas.allocate(layout.canvas.width, layout.canvas.height)
            for rect in layout.cells:
                canvas.fill(rect, self.placeholder_color)
            return CompositeImage(image=canvas.image, layout_mode="single")

        return CompositeImage(image=image, layout_mode="single")
