"""Locating the anchor column in a promoted header row."""

from __future__ import annotations

from collections.abc import Sequence

from .errors import AnchorMissing
from .profile import AnchorMatch


def find(header: Sequence[str], anchor: str, strategy: AnchorMatch) -> int:
    """Return the index of the first header cell matching ``anchor``."""
    for index, value in enumerate(header):
        if strategy is AnchorMatch.EXACT:
            hit = value.strip() == anchor
        else:
            hit = anchor in value
        if hit:
            return index
    raise AnchorMissing(anchor, strategy.value.capitalize())