"""Stable short signature of a header row."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable


def compute(header: Iterable[str]) -> str:
    """Trim cells, join with '|', SHA-1, and keep the first 12 hex digits."""
    joined = "|".join(cell.strip() for cell in header)
    return hashlib.sha1(joined.encode("utf-8")).hexdigest()[:12]