"""Discovery of input files in the flat input directory."""

from __future__ import annotations

from pathlib import Path

from .reader import Format


def list_input_files(directory) -> list[Path]:
    """List every csv / xlsx / xlsm file directly inside ``directory``, sorted.

    The listing is not recursive. A missing directory yields an empty list.
    """
    directory = Path(directory)
    if not directory.exists():
        return []
    if directory.is_file():
        return [directory] if Format.from_path(directory) is not None else []
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and Format.from_path(path) is not None
    )