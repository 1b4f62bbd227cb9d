from pathlib import Path
from typing import Optional, Sequence
from uuid import UUID, uuid4

import pytest
from PIL import Image

from covercraft.library import ItemKind, Library, LibraryItem

RED = (255, 0, 0, 255)


@pytest.fixture
def make_image(tmp_path):
    """Write a solid-colour PNG under ``tmp_path/images`` and return its path."""

    image_dir = tmp_path / "images"
    image_dir.mkdir(exist_ok=True)

    def _make(name: str, color=RED, size=(60, 40)) -> Path:
        path = image_dir / f"{name}.png"
        Image.new("RGBA", size, color).save(path, format="PNG")
        return path

    return _make


@pytest.fixture
def make_item():
    def _make(
        name: str,
        kind: ItemKind = ItemKind.AUDIO,
        image: Optional[Path] = None,
        parent: Optional[LibraryItem] = None,
        item_id: Optional[UUID] = None,
    ) -> LibraryItem:
        return LibraryItem(
            id=item_id or uuid4(),
            name=name,
            kind=kind,
            image=image,
            parent_id=parent.id if parent else None,
        )

    return _make


@pytest.fixture
def make_playlist():
    def _make(name: str, members: Sequence[LibraryItem]) -> LibraryItem:
        return LibraryItem(
            id=uuid4(),
            name=name,
            kind=ItemKind.PLAYLIST,
            member_ids=tuple(member.id for member in members),
        )

    return _make


@pytest.fixture
def colored_playlist(make_image, make_item, make_playlist):
    """Build a library whose playlist members each carry a solid-colour image.

    Returns ``(library, playlist, items)``; names are used as given, so
    callers control the final name ordering.
    """

    def _build(specs, playlist_name: str = "Mix"):
        items = [
            make_item(name, image=make_image(name, color, size))
            for name, color, size in specs
        ]
        playlist = make_playlist(playlist_name, items)
        library = Library([*items, playlist])
        return library, playlist, items

    return _build
