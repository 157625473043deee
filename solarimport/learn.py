"""Inference of a draft profile from a structure template and an optional sample."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

from . import signature
from .grid import Grid
from .profile import (
    AnchorMatch,
    IdCol,
    MatchRules,
    Profile,
    Unpivot,
    ValueKind,
    ValueRules,
)
from .reader import Format

_DAY_SUFFIX = "日"
_ANCHOR = "1日"
_UNSIGNED = re.compile(r"\+?[0-9]+")
_U32_MAX = 2**32 - 1
_BASE_MISSING = ("", "-", "#DIV/0!", "#N/A", "#VALUE!")


@dataclass
class StructureDraft:
    """What the structure template reveals about the layout."""

    header_row: int
    anchor_col: int
    anchor_value: str
    day_cols: int
    data_start_row: int
    signature: str
    header_contains: list[str] = field(default_factory=list)


def is_day_token(text: str) -> bool:
    """True for header cells such as "1日" or "31日"."""
    if not text.endswith(_DAY_SUFFIX):
        return False
    number = text[: -len(_DAY_SUFFIX)]
    return bool(_UNSIGNED.fullmatch(number)) and int(number) <= _U32_MAX


def learn(
    structure_grid: Grid,
    sample_grid: Grid | None,
    name: str,
    fmt: Format,
) -> Profile:
    """Build a draft profile; id columns, year-month source and encoding are best guesses."""
    draft = learn_structure(structure_grid)
    value_rules = learn_values(sample_grid, draft) if sample_grid is not None else default_value_rules()

    header_idx = max(draft.header_row - 1, 0)
    header_cells = structure_grid[header_idx] if header_idx < len(structure_grid) else []

    def header_at(index: int) -> str | None:
        return header_cells[index] if index < len(header_cells) else None

    return Profile(
        name=name,
        match_rules=MatchRules(
            filename=f"*.{fmt.value}",
            header_contains=list(draft.header_contains),
            header_signature=draft.signature,
            priority=0,
        ),
        encoding="utf-8" if fmt is Format.CSV else "big5",
        format=fmt,
        sheet=1,
        header_rows=1,
        data_start_row=draft.data_start_row,
        skip_blank_id=True,
        fill_merged=False,
        id_cols=[
            IdCol(name="caseid", col=1, header=header_at(0), kind="string"),
            IdCol(name="plant_name", col=2, header=header_at(1), kind="string"),
        ],
        unpivot=Unpivot(
            anchor=draft.anchor_value,
            anchor_match=AnchorMatch.EXACT,
            day_cols=draft.day_cols,
            validate_calendar_day=True,
            var_name="shift_hour",
            value_name="daily_kwh",
            year_month_from="filename:0..6",
            anchor_col_observed=draft.anchor_col + 1,
        ),
        value_rules=value_rules,
    )


def learn_structure(grid: Grid) -> StructureDraft:
    """Locate the header row, the "1日" anchor, the day-column run and the data start."""
    hdr_idx = next(
        (i for i, row in enumerate(grid) if any(is_day_token(c.strip()) for c in row)),
        0,
    )
    hdr_row = grid[hdr_idx] if hdr_idx < len(grid) else []

    anchor_col = next((i for i, c in enumerate(hdr_row) if c.strip() == _ANCHOR), 0)

    day_cols = 0
    for value in hdr_row[anchor_col:]:
        if not is_day_token(value.strip()):
            break
        day_cols += 1

    data_start_row = hdr_idx + 2
    for r, row in enumerate(grid[hdr_idx + 1:], start=hdr_idx + 1):
        if row and row[0].strip():
            data_start_row = r + 1
            break

    header_contains: list[str] = []
    first = next((c for c in hdr_row if c.strip()), None)
    if first is not None:
        header_contains.append(first.strip())
    header_contains.append(_ANCHOR)
    if day_cols > 0:
        header_contains.append(f"{day_cols}{_DAY_SUFFIX}")

    return StructureDraft(
        header_row=hdr_idx + 1,
        anchor_col=anchor_col,
        anchor_value=_ANCHOR,
        day_cols=day_cols,
        data_start_row=data_start_row,
        signature=signature.compute(hdr_row),
        header_contains=header_contains,
    )


def _parse_float(text: str) -> float | None:
    if not text.isascii() or "_" in text or text != text.strip():
        return None
    try:
        return float(text)
    except ValueError:
        return None


def learn_values(sample: Grid, draft: StructureDraft) -> ValueRules:
    """Learn decimals, range and extra missing tokens from the day block of a sample."""
    decimals = 0
    low = math.inf
    high = -math.inf
    unknown: set[str] = set()

    start = max(draft.data_start_row - 1, 0)
    for row in sample[start:]:
        if not row or not row[0].strip():
            continue
        for raw_cell in row[draft.anchor_col:draft.anchor_col + draft.day_cols]:
            raw = raw_cell.strip()
            if not raw:
                continue
            value = _parse_float(raw.replace(",", ""))
            if value is None:
                unknown.add(raw)
                continue
            if value < low:
                low = value
            if value > high:
                high = value
            dot = raw.find(".")
            if dot >= 0:
                decimals = max(decimals, len(raw) - dot - 1)

    missing_values = list(_BASE_MISSING)
    missing_values.extend(tok for tok in sorted(unknown) if tok not in _BASE_MISSING)

    return ValueRules(
        kind=ValueKind.DECIMAL,
        decimals=decimals,
        missing_values=missing_values,
        zero_is_valid=True,
        min=min(low, 0.0) if math.isfinite(low) else 0.0,
        max=max(high * 2.0, 1000.0) if math.isfinite(high) else 1_000_000.0,
    )


def default_value_rules() -> ValueRules:
    """Value rules used when no sample is available."""
    return ValueRules(
        kind=ValueKind.DECIMAL,
        decimals=4,
        missing_values=list(_BASE_MISSING),
        zero_is_valid=True,
        min=0.0,
        max=1_000_000.0,
    )