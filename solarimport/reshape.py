"""Wide-to-long reshaping of a grid into daily rows."""

from __future__ import annotations

import re
from decimal import Decimal

from . import anchor, calendar_days, cast, header
from .errors import BadYearMonth
from .grid import Grid, cell, cell_trim
from .profile import Profile
from .rows import DailyKwhRow

_YEAR_MONTH = re.compile(r"[0-9]{6}")


def apply(grid: Grid, profile: Profile, year_month: str) -> list[DailyKwhRow]:
    """Emit one row per (case, valid calendar day) for ``year_month`` ("YYYYMM")."""
    if not _YEAR_MONTH.fullmatch(year_month):
        raise BadYearMonth(year_month)

    promoted = header.promote(grid, profile.header_rows, profile.fill_merged)
    anchor_col = anchor.find(promoted, profile.unpivot.anchor, profile.unpivot.anchor_match)
    caseid_col = profile.caseid_col_index()
    plant_name_col = profile.plant_name_col_index()
    data_start = max(profile.data_start_row - 1, 0)

    out: list[DailyKwhRow] = []
    for rno in range(data_start, len(grid)):
        if profile.skip_blank_id and not cell_trim(grid, rno, caseid_col):
            continue
        caseid = cell(grid, rno, caseid_col) or ""
        plant_name = None
        if plant_name_col is not None:
            candidate = cell(grid, rno, plant_name_col)
            if candidate is not None and candidate.strip():
                plant_name = candidate

        for offset in range(profile.unpivot.day_cols):
            day = offset + 1
            if profile.unpivot.validate_calendar_day and not calendar_days.is_valid(
                year_month, day
            ):
                continue
            cell_col = anchor_col + offset
            raw = cell(grid, rno, cell_col) or ""
            value = cast.cast_value(raw, profile.value_rules, rno, cell_col)
            out.append(make_row(caseid, plant_name, year_month, day, value))
    return out


def make_row(
    caseid: str,
    plant_name: str | None,
    year_month: str,
    day: int,
    value: Decimal | None,
) -> DailyKwhRow:
    """Build one output row, formatting the date as "YYYYMMDD"."""
    return DailyKwhRow(
        caseid=caseid,
        plant_name=plant_name,
        shift_hour=f"{year_month}{day:02d}",
        daily_kwh=value,
    )