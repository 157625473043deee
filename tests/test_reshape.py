from decimal import Decimal

import pytest

from solarimport.errors import AnchorMissing, BadProfile, BadYearMonth, CastError
from solarimport.profile import (
    AnchorMatch,
    IdCol,
    MatchRules,
    Profile,
    Unpivot,
    ValueKind,
    ValueRules,
)
from solarimport.reader import Format
from solarimport.reshape import apply, make_row
from solarimport.rows import DailyKwhRow


def solar_profile():
    return Profile(
        name="test",
        match_rules=MatchRules(filename=None, header_contains=[], header_signature=None, priority=0),
        encoding="utf-8",
        format=Format.CSV,
        sheet=None,
        header_rows=1,
        data_start_row=3,
        skip_blank_id=True,
        fill_merged=False,
        id_cols=[
            IdCol(name="caseid", col=1, header=None, kind="string"),
            IdCol(name="plant_name", col=2, header=None, kind="string"),
        ],
        unpivot=Unpivot(
            anchor="1日",
            anchor_match=AnchorMatch.EXACT,
            day_cols=31,
            validate_calendar_day=True,
            var_name="shift_hour",
            value_name="daily_kwh",
            year_month_from="filename:0..6",
            anchor_col_observed=None,
        ),
        value_rules=ValueRules(
            kind=ValueKind.DECIMAL,
            decimals=4,
            missing_values=["", "-"],
            zero_is_valid=True,
            min=0.0,
            max=1_000_000.0,
        ),
    )


def build_grid_31():
    header = ["案件編號", "案件名稱"] + [f"{d}日" for d in range(1, 32)]
    totals = ["", ""] + ["99"] * 31
    data = ["A001", "PlantA"] + [f"{d}.5" for d in range(1, 32)]
    return [header, totals, data]


def test_april_drops_day_31():
    rows = apply(build_grid_31(), solar_profile(), "202604")
    assert len(rows) == 30
    assert rows[0].shift_hour == "20260401"
    assert rows[-1].shift_hour == "20260430"


def test_march_keeps_day_31():
    rows = apply(build_grid_31(), solar_profile(), "202603")
    assert len(rows) == 31
    assert rows[-1].shift_hour == "20260331"


def test_skip_blank_id():
    grid = build_grid_31()
    grid.append(["", ""] + [""] * 31)
    rows = apply(grid, solar_profile(), "202603")
    assert len(rows) == 31


def test_row_values():
    rows = apply(build_grid_31(), solar_profile(), "202603")
    assert rows[0] == DailyKwhRow("A001", "PlantA", "20260301", Decimal("1.5"))
    assert rows[30].daily_kwh == Decimal("31.5")


def test_missing_cells_and_blank_plant_name():
    grid = build_grid_31()
    grid[2][1] = "  "
    grid[2][2] = "-"
    del grid[2][10:]
    rows = apply(grid, solar_profile(), "202603")
    assert len(rows) == 31
    assert rows[0].plant_name is None
    assert rows[0].daily_kwh is None
    assert rows[1].daily_kwh == Decimal("2.5")
    assert rows[30].daily_kwh is None


def test_without_calendar_validation_keeps_all_days():
    profile = solar_profile()
    profile.unpivot.validate_calendar_day = False
    rows = apply(build_grid_31(), profile, "202602")
    assert len(rows) == 31
    assert rows[-1].shift_hour == "20260231"


def test_bad_year_month():
    with pytest.raises(BadYearMonth):
        apply(build_grid_31(), solar_profile(), "2026-4")


def test_missing_anchor():
    profile = solar_profile()
    profile.unpivot.anchor = "第1天"
    with pytest.raises(AnchorMissing):
        apply(build_grid_31(), profile, "202603")


def test_empty_id_cols():
    profile = solar_profile()
    profile.id_cols = []
    with pytest.raises(BadProfile):
        apply(build_grid_31(), profile, "202603")


def test_cast_error_reports_position():
    grid = build_grid_31()
    grid[2][4] = "oops"
    with pytest.raises(CastError) as info:
        apply(grid, solar_profile(), "202603")
    assert (info.value.row, info.value.col) == (2, 4)


def test_make_row_pads_day():
    row = make_row("C1", None, "202601", 5, Decimal("3"))
    assert row == DailyKwhRow("C1", None, "20260105", Decimal("3"))