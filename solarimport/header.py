"""Promotion of one or more header rows into a single header row."""

from __future__ import annotations

from itertools import zip_longest

from .grid import Grid


def _ffill(row: list[str]) -> list[str]:
    filled: list[str] = []
    last = ""
    for value in row:
        if value.strip():
            last = value
            filled.append(value)
        else:
            filled.append(last)
    return filled


def promote(grid: Grid, header_rows: int, fill_merged: bool) -> list[str]:
    """Build one header row from the first ``header_rows`` rows of ``grid``.

    With several rows, empty cells are optionally forward-filled per row, and
    the trimmed non-empty fragments of each column are joined with '/'.
    """
    if not grid or header_rows == 0:
        return []
    if header_rows == 1:
        return list(grid[0])
    rows = [list(grid[i]) if i < len(grid) else [] for i in range(header_rows)]
    if fill_merged:
        rows = [_ffill(row) for row in rows]
    return [
        "/".join(part.strip() for part in column if part.strip())
        for column in zip_longest(*rows, fillvalue="")
    ]