"""Cache keys for rendered playlist composites."""

from __future__ import annotations

from typing import Sequence

from ..config import DEFAULT_POLICY_VERSION
from .candidates import ImageCandidate


def configuration_cache_key(
    candidates: Sequence[ImageCandidate],
    version: str = DEFAULT_POLICY_VERSION,
) -> str:
    """Return ``<version>_<id>,<id>,...`` keeping the order of ``candidates``.

    Ids are written as 32 lowercase hex digits without dashes.
    """

    return version + "_" + ",".join(candidate.item_id.hex for candidate in candidates)
