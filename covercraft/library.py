"""Read-only view over library entities and the playlists that group them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple
from uuid import UUID

from .config import ConfigError, LibraryManifest


class ItemKind(str, Enum):
    PLAYLIST = "playlist"
    FOLDER = "folder"
    SERIES = "series"
    SEASON = "season"
    EPISODE = "episode"
    MOVIE = "movie"
    MUSIC_ALBUM = "music_album"
    MUSIC_ARTIST = "music_artist"
    AUDIO = "audio"
    MUSIC_VIDEO = "music_video"
    VIDEO = "video"
    BOOK = "book"
    PHOTO = "photo"


@dataclass(frozen=True)
class LibraryItem:
    """An entity known to the library."""

    id: UUID
    name: str
    kind: ItemKind
    image: Optional[Path] = None
    parent_id: Optional[UUID] = None
    member_ids: Tuple[UUID, ...] = ()


@dataclass(frozen=True)
class CollectionMember:
    """One entry of a playlist, in playlist order."""

    item_id: UUID
    role: Optional[ItemKind] = None


class EntityGraph(Protocol):
    """Lookups the collage engine needs from whatever owns the entities."""

    def get_item(self, item_id: UUID) -> Optional[LibraryItem]:
        """Return the entity with ``item_id`` if it exists."""

    def members(self, collection: LibraryItem) -> List[CollectionMember]:
        """Return the members of ``collection`` in collection order."""

    def primary_image(self, item_id: UUID) -> Optional[Path]:
        """Return the primary image path recorded for ``item_id``."""

    def parent_of(self, item_id: UUID) -> Optional[LibraryItem]:
        """Return the immediate parent of ``item_id``."""

    def ancestor_of_kind(self, item_id: UUID, kind: ItemKind) -> Optional[LibraryItem]:
        """Return the nearest ancestor of ``item_id`` whose kind is ``kind``."""


class Library:
    """In-memory :class:`EntityGraph` backed by a dictionary of items."""

    def __init__(self, items: Iterable[LibraryItem] = ()) -> None:
        self._items: Dict[UUID, LibraryItem] = {}
        for item in items:
            self.add(item)

    def add(self, item: LibraryItem) -> None:
        if item.id in self._items:
            raise ValueError(f"Duplicate library item id: {item.id}")
        self._items[item.id] = item

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def get_item(self, item_id: UUID) -> Optional[LibraryItem]:
        return self._items.get(item_id)

    def items(self) -> List[LibraryItem]:
        return list(self._items.values())

    def playlists(self) -> List[LibraryItem]:
        return [item for item in self._items.values() if item.kind is ItemKind.PLAYLIST]

    def find_playlist(self, reference: str) -> Optional[LibraryItem]:
        """Find a playlist by id or, failing that, by case-insensitive name."""
        try:
            item = self._items.get(UUID(reference))
        except ValueError:
            item = None
        if item is not None and item.kind is ItemKind.PLAYLIST:
            return item

        wanted = reference.strip().casefold()
        for playlist in self.playlists():
            if playlist.name.casefold() == wanted:
                return playlist
        return None

    def members(self, collection: LibraryItem) -> List[CollectionMember]:
        members: List[CollectionMember] = []
        for member_id in collection.member_ids:
            item = self._items.get(member_id)
            members.append(CollectionMember(item_id=member_id, role=item.kind if item else None))
        return members

    def primary_image(self, item_id: UUID) -> Optional[Path]:
        item = self._items.get(item_id)
        return item.image if item else None

    def parent_of(self, item_id: UUID) -> Optional[LibraryItem]:
        item = self._items.get(item_id)
        if item is None or item.parent_id is None:
            return None
        return self._items.get(item.parent_id)

    def ancestor_of_kind(self, item_id: UUID, kind: ItemKind) -> Optional[LibraryItem]:
        seen = {item_id}
        parent = self.parent_of(item_id)
        while parent is not None and parent.id not in seen:
            if parent.kind is kind:
                return parent
            seen.add(parent.id)
            parent = self.parent_of(parent.id)
        return None


def _resolve_image(raw: Optional[str], manifest_path: Path) -> Optional[Path]:
    if not raw:
        return None
    path = Path(raw).expanduser()
    return path if path.is_absolute() else manifest_path.parent / path


def build_library(manifests: Iterable[Tuple[Path, LibraryManifest]]) -> Library:
    """Assemble a :class:`Library` from parsed manifests.

    Raises :class:`ConfigError` for duplicate ids, unknown kinds and
    references to items that no manifest defines.
    """

    library = Library()
    for manifest_path, manifest in manifests:
        for definition in manifest.items:
            try:
                kind = ItemKind(definition.kind)
            except ValueError as exc:
                raise ConfigError(
                    f"Unknown item kind '{definition.kind}' for {definition.id} in {manifest_path}"
                ) from exc
            if kind is ItemKind.PLAYLIST:
                raise ConfigError(
                    f"Playlists belong under 'playlists', not 'items' ({definition.id} in {manifest_path})"
                )
            item = LibraryItem(
                id=definition.id,
                name=definition.name,
                kind=kind,
                image=_resolve_image(definition.image, manifest_path),
                parent_id=definition.parent,
            )
            try:
                library.add(item)
            except ValueError as exc:
                raise ConfigError(f"{exc} ({manifest_path})") from exc

        for definition in manifest.playlists:
            playlist = LibraryItem(
                id=definition.id,
                name=definition.name,
                kind=ItemKind.PLAYLIST,
                image=_resolve_image(definition.image, manifest_path),
                member_ids=tuple(definition.members),
            )
            try:
                library.add(playlist)
            except ValueError as exc:
                raise ConfigError(f"{exc} ({manifest_path})") from exc

    for item in library.items():
        if item.parent_id is not None and item.parent_id not in library:
            raise ConfigError(f"Item {item.id} references unknown parent {item.parent_id}")
        for member_id in item.member_ids:
            if member_id not in library:
                raise ConfigError(f"Playlist '{item.name}' references unknown member {member_id}")

    return library
