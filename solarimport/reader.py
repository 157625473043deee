"""Readers turning CSV text or XLSX workbooks into a grid of strings."""

from __future__ import annotations

import csv
import io
import posixpath
import re
import zipfile
from enum import Enum
from pathlib import Path
from xml.etree import ElementTree as ET

from .grid import Grid

_NS_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

_ERROR_NAMES = {
    "#DIV/0!": "Div0",
    "#N/A": "NA",
    "#NAME?": "Name",
    "#NULL!": "Null",
    "#NUM!": "Num",
    "#REF!": "Ref",
    "#VALUE!": "Value",
    "#GETTING_DATA": "GettingData",
}

_CELL_REF = re.compile(r"\$?([A-Za-z]+)\$?(\d+)")


class Format(Enum):
    """Supported input file formats."""

    CSV = "csv"
    XLSX = "xlsx"

    @classmethod
    def from_path(cls, path) -> Format | None:
        """Pick the format from the file extension (csv, xlsx, xlsm), if any."""
        match Path(path).suffix[1:].lower():
            case "csv":
                return cls.CSV
            case "xlsx" | "xlsm":
                return cls.XLSX
            case _:
                return None

    def needs_text_decode(self) -> bool:
        """True when the bytes must be decoded to text before reading."""
        return self is Format.CSV


class CsvReader:
    """Reads decoded CSV text; rows may have differing lengths."""

    def read(self, path, text: str | None = None, sheet: int | None = None) -> Grid:
        if text is None:
            raise ValueError("CsvReader requires decoded text (Decoder must run first)")
        try:
            return [row for row in csv.reader(io.StringIO(text, newline="")) if row]
        except csv.Error as exc:
            raise ValueError(f"csv parse error in {path}: {exc}") from exc


class XlsxReader:
    """Reads one worksheet (1-indexed ``sheet``, default first) of an xlsx/xlsm file."""

    def read(self, path, text: str | None = None, sheet: int | None = None) -> Grid:
        path = Path(path)
        try:
            archive = zipfile.ZipFile(path)
        except (OSError, zipfile.BadZipFile) as exc:
            raise ValueError(f"open_workbook({path}): {exc}") from exc
        with archive:
            try:
                sheets = _sheet_targets(archive)
            except (KeyError, ET.ParseError) as exc:
                raise ValueError(f"open_workbook({path}): {exc}") from exc
            if not sheets:
                raise ValueError("workbook has no sheets")
            idx = 0 if sheet is None else max(sheet - 1, 0)
            if idx >= len(sheets):
                raise ValueError(f"sheet index {idx} out of range (have {len(sheets)})")
            name, target = sheets[idx]
            try:
                shared = _shared_strings(archive)
                root = ET.fromstring(archive.read(target))
                return _sheet_grid(root, shared)
            except (KeyError, ET.ParseError, ValueError, IndexError) as exc:
                raise ValueError(f"worksheet_range({name}): {exc}") from exc


def make_reader(fmt: Format) -> CsvReader | XlsxReader:
    """Return the reader for ``fmt``."""
    return CsvReader() if fmt is Format.CSV else XlsxReader()


def format_float(value: float) -> str:
    """Render a float without exponent, trimming trailing zeros."""
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    text = f"{value:.10f}"
    return text.rstrip("0").rstrip(".")


def cell_to_string(value) -> str:
    """Render a spreadsheet cell value as a grid string."""
    match value:
        case None:
            return ""
        case str():
            return value
        case bool():
            return "true" if value else "false"
        case int():
            return str(value)
        case float():
            return format_float(value)
        case _:
            return str(value)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str):
    return (child for child in element if _local(child.tag) == name)


def _resolve_target(target: str) -> str:
    if target.startswith("/"):
        return target.lstrip("/")
    return posixpath.normpath(posixpath.join("xl", target))


def _sheet_targets(archive: zipfile.ZipFile) -> list[tuple[str, str]]:
    workbook = ET.fromstring(archive.read("xl/workbook.xml"))
    rels = ET.fromstring(archive.read("xl/_rels/workbook.xml.rels"))
    targets = {rel.get("Id"): rel.get("Target", "") for rel in rels.iter() if _local(rel.tag) == "Relationship"}
    sheets = []
    for element in workbook.iter():
        if _local(element.tag) != "sheet":
            continue
        rel_id = element.get(f"{{{_NS_REL}}}id")
        sheets.append((element.get("name", ""), _resolve_target(targets[rel_id])))
    return sheets


def _rich_text(element: ET.Element) -> str:
    parts = []
    for child in element:
        match _local(child.tag):
            case "t":
                parts.append(child.text or "")
            case "r":
                parts.extend(t.text or "" for t in _children(child, "t"))
    return "".join(parts)


def _shared_strings(archive: zipfile.ZipFile) -> list[str]:
    try:
        data = archive.read("xl/sharedStrings.xml")
    except KeyError:
        return []
    root = ET.fromstring(data)
    return [_rich_text(si) for si in root.iter() if _local(si.tag) == "si"]


def _parse_ref(ref: str) -> tuple[int, int]:
    match = _CELL_REF.fullmatch(ref)
    if match is None:
        raise ValueError(f"bad cell reference '{ref}'")
    letters, digits = match.groups()
    col = 0
    for ch in letters.upper():
        col = col * 26 + (ord(ch) - ord("A") + 1)
    return int(digits) - 1, col - 1


def _cell_value(element: ET.Element, shared: list[str]) -> str | None:
    kind = element.get("t", "n")
    if kind == "inlineStr":
        inline = next(_children(element, "is"), None)
        return None if inline is None else _rich_text(inline)
    v_el = next(_children(element, "v"), None)
    if v_el is None or v_el.text is None:
        return None
    raw = v_el.text
    match kind:
        case "s":
            return shared[int(raw)]
        case "str" | "d":
            return raw
        case "b":
            return cell_to_string(raw.strip() != "0")
        case "e":
            return "#" + _ERROR_NAMES.get(raw, raw)
        case _:
            return cell_to_string(float(raw))


def _sheet_grid(root: ET.Element, shared: list[str]) -> Grid:
    cells: dict[tuple[int, int], str] = {}
    next_row = 0
    for row_el in root.iter():
        if _local(row_el.tag) != "row":
            continue
        row_attr = row_el.get("r")
        row_idx = int(row_attr) - 1 if row_attr else next_row
        next_row = row_idx + 1
        next_col = 0
        for cell_el in _children(row_el, "c"):
            ref = cell_el.get("r")
            r, c = _parse_ref(ref) if ref else (row_idx, next_col)
            next_col = c + 1
            value = _cell_value(cell_el, shared)
            if value is not None:
                cells[(r, c)] = value
    if not cells:
        return []
    rows = [r for r, _ in cells]
    cols = [c for _, c in cells]
    col_range = range(min(cols), max(cols) + 1)
    return [[cells.get((r, c), "") for c in col_range] for r in range(min(rows), max(rows) + 1)]