"""A grid is a list of rows, each a list of cell strings."""

from __future__ import annotations

Grid = list[list[str]]


def cell(grid: Grid, row: int, col: int) -> str | None:
    """Return the cell at (row, col), or None when outside the grid."""
    if row < 0 or col < 0 or row >= len(grid):
        return None
    cells = grid[row]
    if col >= len(cells):
        return None
    return cells[col]


def cell_trim(grid: Grid, row: int, col: int) -> str:
    """Return the trimmed cell at (row, col), or an empty string when absent."""
    value = cell(grid, row, col)
    return value.strip() if value is not None else ""