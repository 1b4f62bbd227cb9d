"""Daily "image of the day" rotation over playlist candidates."""

from __future__ import annotations

import random
from datetime import date
from typing import List, Literal, Sequence

from .candidates import ImageCandidate

MAX_COLLAGE_ITEMS = 4

RotationMode = Literal["hashed", "legacy"]


def day_number(reference_day: date) -> int:
    """Day of the year (1-366) used to seed the rotation."""
    return reference_day.timetuple().tm_yday


def _daily_sort_key(day: int, candidate: ImageCandidate) -> float:
    return random.Random(f"{day}:{candidate.item_id.hex}").random()


def stable_subset(
    candidates: Sequence[ImageCandidate],
    day: int,
    limit: int = MAX_COLLAGE_ITEMS,
) -> List[ImageCandidate]:
    """Pick ``limit`` candidates using a per-item key derived from ``day``.

    Each candidate's position depends only on the day and its own id, so the
    pick is stable for a whole day and unaffected by unrelated members.
    """

    ordered = sorted(candidates, key=lambda candidate: _daily_sort_key(day, candidate))
    return ordered[:limit]


def legacy_subset(
    candidates: Sequence[ImageCandidate],
    day: int,
    limit: int = MAX_COLLAGE_ITEMS,
) -> List[ImageCandidate]:
    """Reproduce the historical single-draw ordering.

    The historical scheme drew one value from a generator seeded with the
    day and sorted by ``value - index``. The offset is shared by every item,
    so the sort is a plain reversal whatever the day; ``day`` is accepted to
    keep the signature aligned with :func:`stable_subset`.
    """

    del day
    return list(reversed(candidates))[:limit]


def _name_key(candidate: ImageCandidate) -> tuple[str, str]:
    # Case-insensitive first so "alpha" lands before "Bravo".
    return (candidate.name.casefold(), candidate.name)


def rotate(
    candidates: Sequence[ImageCandidate],
    reference_day: date,
    mode: RotationMode = "hashed",
) -> List[ImageCandidate]:
    """Return at most four candidates for ``reference_day`` ordered by name."""

    day = day_number(reference_day)
    if mode == "hashed":
        subset = stable_subset(candidates, day)
    elif mode == "legacy":
        subset = legacy_subset(candidates, day)
    else:
        raise ValueError(f"Unsupported rotation mode: {mode}")
    return sorted(subset, key=_name_key)
