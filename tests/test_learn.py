from solarimport import signature
from solarimport.learn import (
    default_value_rules,
    is_day_token,
    learn,
    learn_structure,
    learn_values,
)
from solarimport.profile import AnchorMatch, Profile, ValueKind
from solarimport.reader import Format


def solar_grid():
    header = ["caseid", "plant", "extra"] + [f"{d}日" for d in range(1, 32)]
    return [
        header,
        ["", "", "Total", "100"],
        ["A001", "PlantA", "x", "10.5"],
        ["A002", "PlantB", "x", "20.123"],
    ]


def test_structure_solar_layout():
    draft = learn_structure(solar_grid())
    assert draft.anchor_col == 3
    assert draft.day_cols == 31
    assert draft.data_start_row == 3


def test_structure_header_contains_and_signature():
    grid = solar_grid()
    draft = learn_structure(grid)
    assert draft.header_row == 1
    assert draft.anchor_value == "1日"
    assert draft.header_contains == ["caseid", "1日", "31日"]
    assert draft.signature == signature.compute(grid[0])


def test_structure_header_below_title_row():
    grid = [["Monthly report"], ["id", "name", "1日", "2日"], ["A1", "P", "1", "2"]]
    draft = learn_structure(grid)
    assert draft.header_row == 2
    assert draft.anchor_col == 2
    assert draft.day_cols == 2
    assert draft.data_start_row == 3


def test_is_day_token_works():
    assert is_day_token("1日")
    assert is_day_token("31日")
    assert not is_day_token("掛表日")
    assert not is_day_token("日")


def test_learn_values_from_sample():
    grid = solar_grid()
    grid[2].append("n/a")
    grid[3].append("-")
    rules = learn_values(grid, learn_structure(grid))
    assert rules.kind is ValueKind.DECIMAL
    assert rules.decimals == 3
    assert rules.min == 0.0
    assert rules.max == 1000.0
    assert rules.missing_values == ["", "-", "#DIV/0!", "#N/A", "#VALUE!", "n/a"]


def test_learn_values_without_numbers_uses_wide_range():
    grid = [["id", "1日"], ["A", ""]]
    rules = learn_values(grid, learn_structure(grid))
    assert rules.min == 0.0
    assert rules.max == 1_000_000.0
    assert rules.decimals == 0


def test_default_value_rules():
    rules = default_value_rules()
    assert rules.decimals == 4
    assert rules.min == 0.0
    assert rules.max == 1_000_000.0
    assert rules.missing_values == ["", "-", "#DIV/0!", "#N/A", "#VALUE!"]
    assert rules.zero_is_valid is True


def test_learn_builds_csv_profile():
    grid = solar_grid()
    profile = learn(grid, None, "solar", Format.CSV)
    assert profile.name == "solar"
    assert profile.match_rules.filename == "*.csv"
    assert profile.match_rules.header_signature == signature.compute(grid[0])
    assert profile.encoding == "utf-8"
    assert profile.sheet == 1
    assert profile.data_start_row == 3
    assert [c.header for c in profile.id_cols] == ["caseid", "plant"]
    assert profile.unpivot.anchor_match is AnchorMatch.EXACT
    assert profile.unpivot.anchor_col_observed == 4
    assert profile.unpivot.year_month_from == "filename:0..6"
    assert profile.value_rules == default_value_rules()


def test_learn_xlsx_uses_big5_and_sample_rules():
    grid = solar_grid()
    profile = learn(grid, grid, "x", Format.XLSX)
    assert profile.match_rules.filename == "*.xlsx"
    assert profile.encoding == "big5"
    assert profile.value_rules.decimals == 3


def test_learned_profile_round_trips():
    profile = learn(solar_grid(), None, "solar", Format.CSV)
    assert Profile.from_dict(profile.to_dict()) == profile