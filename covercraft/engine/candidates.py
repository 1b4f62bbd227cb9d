"""Pick one representative image per playlist member."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set
from uuid import UUID

from ..library import CollectionMember, EntityGraph, ItemKind, LibraryItem
from ..logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImageCandidate:
    """A source entity and the primary image that will represent it."""

    item_id: UUID
    image: Path
    name: str


def _resolve_member(graph: EntityGraph, member: CollectionMember) -> Optional[ImageCandidate]:
    """Walk the fallback cascade for a single member."""
    item = graph.get_item(member.item_id)
    if item is None:
        logger.debug("collage.member_missing", item_id=str(member.item_id))
        return None

    # Series artwork wins over an episode's own still.
    if member.role is ItemKind.EPISODE:
        series = graph.ancestor_of_kind(item.id, ItemKind.SERIES)
        if series is not None:
            candidate = _candidate_for(graph, series)
            if candidate is not None:
                return candidate

    candidate = _candidate_for(graph, item)
    if candidate is not None:
        return candidate

    # Only albums lend their cover; other parents are usually folders.
    parent = graph.parent_of(item.id)
    if parent is not None and parent.kind is ItemKind.MUSIC_ALBUM:
        return _candidate_for(graph, parent)

    return None


def _candidate_for(graph: EntityGraph, item: LibraryItem) -> Optional[ImageCandidate]:
    image = graph.primary_image(item.id)
    if image is None:
        return None
    return ImageCandidate(item_id=item.id, image=image, name=item.name)


def select_candidates(graph: EntityGraph, collection: LibraryItem) -> List[ImageCandidate]:
    """Return the de-duplicated candidates for ``collection`` in playlist order."""

    candidates: List[ImageCandidate] = []
    seen: Set[UUID] = set()
    members = graph.members(collection)
    for member in members:
        candidate = _resolve_member(graph, member)
        if candidate is None or candidate.item_id in seen:
            continue
        seen.add(candidate.item_id)
        candidates.append(candidate)

    logger.debug(
        "collage.candidates",
        collection_id=str(collection.id),
        members=len(members),
        candidates=len(candidates),
    )
    return candidates
