"""Import profiles: their JSON form, year-month extraction and routing."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from . import matching, signature
from .errors import (
    AmbiguousMatch,
    BadProfile,
    BadYearMonth,
    NoMatch,
    ProfileIoError,
    ProfileJsonError,
)
from .grid import Grid
from .reader import Format

_YEAR_MONTH = re.compile(r"[0-9]{6}")
_UNSIGNED = re.compile(r"\+?[0-9]+")
_MISSING = object()


class AnchorMatch(Enum):
    """How the anchor header cell is compared."""

    EXACT = "exact"
    CONTAINS = "contains"


class ValueKind(Enum):
    """Type of the unpivoted values."""

    DECIMAL = "decimal"
    INT = "int"
    STRING = "string"


@dataclass(kw_only=True)
class MatchRules:
    """Filename glob, header needles, expected signature and priority."""

    filename: str | None = None
    header_contains: list[str] = field(default_factory=list)
    header_signature: str | None = None
    priority: int = 0


@dataclass(kw_only=True)
class IdCol:
    """An identifying column; ``col`` is 1-indexed (A=1)."""

    name: str
    col: int
    header: str | None = None
    kind: str = "string"

    def index(self) -> int:
        """The 0-indexed position of the column."""
        return max(self.col - 1, 0)


@dataclass(kw_only=True)
class Unpivot:
    """Where the day columns start and how they become rows."""

    anchor: str
    anchor_match: AnchorMatch = AnchorMatch.EXACT
    day_cols: int
    validate_calendar_day: bool = False
    var_name: str = "shift_hour"
    value_name: str = "daily_kwh"
    year_month_from: str
    anchor_col_observed: int | None = None


@dataclass(kw_only=True)
class ValueRules:
    """Parsing and validation rules for day values."""

    kind: ValueKind
    decimals: int = 0
    missing_values: list[str] = field(default_factory=list)
    zero_is_valid: bool = True
    min: float | None = None
    max: float | None = None


@dataclass(kw_only=True)
class Profile:
    """A template describing how one kind of report file is imported."""

    name: str
    match_rules: MatchRules
    encoding: str = "utf-8"
    format: Format
    sheet: int | None = None
    header_rows: int = 1
    data_start_row: int = 2
    skip_blank_id: bool = True
    fill_merged: bool = False
    id_cols: list[IdCol]
    unpivot: Unpivot
    value_rules: ValueRules

    @classmethod
    def from_dict(cls, data: Any) -> Profile:
        """Build a profile from its JSON object form; raise ValueError when malformed."""
        obj = _as_object(data, "profile")
        return cls(
            name=_field(obj, "name", _as_str),
            match_rules=_field(obj, "match", _match_rules_from),
            encoding=_field(obj, "encoding", _as_str, "utf-8"),
            format=_field(obj, "format", _enum(Format)),
            sheet=_field(obj, "sheet", _optional(_as_uint), None),
            header_rows=_field(obj, "header_rows", _as_uint, 1),
            data_start_row=_field(obj, "data_start_row", _as_uint, 2),
            skip_blank_id=_field(obj, "skip_blank_id", _as_bool, True),
            fill_merged=_field(obj, "fill_merged", _as_bool, False),
            id_cols=_field(obj, "id_cols", _list_of(_id_col_from)),
            unpivot=_field(obj, "unpivot", _unpivot_from),
            value_rules=_field(obj, "value_rules", _value_rules_from),
        )

    def to_dict(self) -> dict[str, Any]:
        """The JSON object form of this profile."""
        m = self.match_rules
        u = self.unpivot
        v = self.value_rules
        return {
            "name": self.name,
            "match": {
                "filename": m.filename,
                "header_contains": list(m.header_contains),
                "header_signature": m.header_signature,
                "priority": m.priority,
            },
            "encoding": self.encoding,
            "format": self.format.value,
            "sheet": self.sheet,
            "header_rows": self.header_rows,
            "data_start_row": self.data_start_row,
            "skip_blank_id": self.skip_blank_id,
            "fill_merged": self.fill_merged,
            "id_cols": [
                {"name": c.name, "col": c.col, "header": c.header, "type": c.kind}
                for c in self.id_cols
            ],
            "unpivot": {
                "anchor": u.anchor,
                "anchor_match": u.anchor_match.value,
                "day_cols": u.day_cols,
                "validate_calendar_day": u.validate_calendar_day,
                "var_name": u.var_name,
                "value_name": u.value_name,
                "year_month_from": u.year_month_from,
                "anchor_col_observed": u.anchor_col_observed,
            },
            "value_rules": {
                "type": v.kind.value,
                "decimals": v.decimals,
                "missingValues": list(v.missing_values),
                "zero_is_valid": v.zero_is_valid,
                "min": v.min,
                "max": v.max,
            },
        }

    def extract_year_month(self, path) -> str:
        """Apply the ``year_month_from`` directive to ``path`` and return "YYYYMM"."""
        directive = self.unpivot.year_month_from
        if directive.startswith("filename:"):
            spec = directive[len("filename:"):]
            filename = Path(path).name
            start_s, sep, end_s = spec.partition("..")
            if not sep:
                raise BadProfile(f"bad year_month_from range '{directive}'")
            if not _UNSIGNED.fullmatch(start_s):
                raise BadProfile(f"bad range start: {start_s}")
            if not _UNSIGNED.fullmatch(end_s):
                raise BadProfile(f"bad range end: {end_s}")
            start, end = int(start_s), int(end_s)
            if end < start:
                raise BadProfile(f"year_month_from end < start: {directive}")
            ym = filename[start:end]
        elif directive.startswith("constant:"):
            ym = directive[len("constant:"):].strip()
        else:
            raise BadProfile(f"unsupported year_month_from: {directive}")
        if not _YEAR_MONTH.fullmatch(ym):
            raise BadYearMonth(ym)
        return ym

    def caseid_col_index(self) -> int:
        """0-indexed column of the case id (the first id column)."""
        if not self.id_cols:
            raise BadProfile("id_cols must have at least one entry")
        return self.id_cols[0].index()

    def plant_name_col_index(self) -> int | None:
        """0-indexed column of the plant name (the second id column), if any."""
        return self.id_cols[1].index() if len(self.id_cols) > 1 else None


@dataclass
class LoadedProfile:
    """A profile together with the file it came from."""

    path: Path
    profile: Profile


@dataclass
class MatchResult:
    """The outcome of routing a file to a profile."""

    profile: Profile
    path: Path
    signature_ok: bool
    actual_signature: str


class Registry:
    """The set of loaded profiles, able to route a file to one of them."""

    def __init__(self, profiles: Iterable[LoadedProfile] | None = None) -> None:
        self._profiles: list[LoadedProfile] = list(profiles or [])

    def __iter__(self) -> Iterator[LoadedProfile]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def route(self, filename: str, header_row: Sequence[str]) -> MatchResult:
        """Pick the single profile matching ``filename`` and ``header_row``.

        Raises NoMatch when none match and AmbiguousMatch when the highest
        priority is shared by several matches.
        """
        actual = signature.compute(header_row)
        hits = [
            lp for lp in self._profiles if matching.matches(lp.profile, filename, header_row)
        ]
        if not hits:
            raise NoMatch(filename)
        if len(hits) > 1:
            hits.sort(key=lambda lp: lp.profile.match_rules.priority, reverse=True)
            if hits[0].profile.match_rules.priority == hits[1].profile.match_rules.priority:
                raise AmbiguousMatch(filename, [lp.profile.name for lp in hits])
        picked = hits[0]
        expected = picked.profile.match_rules.header_signature
        return MatchResult(
            profile=picked.profile,
            path=picked.path,
            signature_ok=expected is None or expected == actual,
            actual_signature=actual,
        )


def load_dir(directory) -> Registry:
    """Load every ``*.json`` file in ``directory``; a missing directory gives an empty registry."""
    directory = Path(directory)
    if not directory.exists():
        return Registry()
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise ProfileIoError(str(directory), str(exc)) from exc
    loaded = []
    for path in entries:
        if path.suffix != ".json":
            continue
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ProfileIoError(str(path), str(exc)) from exc
        try:
            profile = Profile.from_dict(json.loads(raw))
        except ValueError as exc:
            raise ProfileJsonError(str(path), str(exc)) from exc
        loaded.append(LoadedProfile(path=path, profile=profile))
    return Registry(loaded)


def first_row(grid: Grid) -> list[str]:
    """The first row of ``grid``, or an empty list."""
    return list(grid[0]) if grid else []


def _field(obj: dict, key: str, conv: Callable[[Any, str], Any], default: Any = _MISSING) -> Any:
    if key not in obj:
        if default is _MISSING:
            raise ValueError(f"missing field `{key}`")
        return default
    return conv(obj[key], key)


def _as_object(value: Any, key: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"invalid type for `{key}`: expected an object")
    return value


def _as_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"invalid type for `{key}`: expected a string")
    return value


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"invalid type for `{key}`: expected a boolean")
    return value


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"invalid type for `{key}`: expected an integer")
    return value


def _as_uint(value: Any, key: str) -> int:
    number = _as_int(value, key)
    if number < 0:
        raise ValueError(f"invalid value for `{key}`: expected a non-negative integer")
    return number


def _as_float(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"invalid type for `{key}`: expected a number")
    return float(value)


def _optional(conv: Callable[[Any, str], Any]) -> Callable[[Any, str], Any]:
    return lambda value, key: None if value is None else conv(value, key)


def _list_of(conv: Callable[[Any, str], Any]) -> Callable[[Any, str], list]:
    def convert(value: Any, key: str) -> list:
        if not isinstance(value, list):
            raise ValueError(f"invalid type for `{key}`: expected an array")
        return [conv(item, key) for item in value]

    return convert


def _enum(enum_cls: type[Enum]) -> Callable[[Any, str], Any]:
    def convert(value: Any, key: str) -> Enum:
        try:
            return enum_cls(_as_str(value, key))
        except ValueError as exc:
            allowed = ", ".join(member.value for member in enum_cls)
            raise ValueError(
                f"unknown variant `{value}` for `{key}`, expected one of {allowed}"
            ) from exc

    return convert


def _match_rules_from(value: Any, key: str) -> MatchRules:
    obj = _as_object(value, key)
    return MatchRules(
        filename=_field(obj, "filename", _optional(_as_str), None),
        header_contains=_field(obj, "header_contains", _list_of(_as_str), []),
        header_signature=_field(obj, "header_signature", _optional(_as_str), None),
        priority=_field(obj, "priority", _as_int, 0),
    )


def _id_col_from(value: Any, key: str) -> IdCol:
    obj = _as_object(value, key)
    return IdCol(
        name=_field(obj, "name", _as_str),
        col=_field(obj, "col", _as_uint),
        header=_field(obj, "header", _optional(_as_str), None),
        kind=_field(obj, "type", _as_str, "string"),
    )


def _unpivot_from(value: Any, key: str) -> Unpivot:
    obj = _as_object(value, key)
    return Unpivot(
        anchor=_field(obj, "anchor", _as_str),
        anchor_match=_field(obj, "anchor_match", _enum(AnchorMatch), AnchorMatch.EXACT),
        day_cols=_field(obj, "day_cols", _as_uint),
        validate_calendar_day=_field(obj, "validate_calendar_day", _as_bool, False),
        var_name=_field(obj, "var_name", _as_str, "shift_hour"),
        value_name=_field(obj, "value_name", _as_str, "daily_kwh"),
        year_month_from=_field(obj, "year_month_from", _as_str),
        anchor_col_observed=_field(obj, "anchor_col_observed", _optional(_as_uint), None),
    )


def _value_rules_from(value: Any, key: str) -> ValueRules:
    obj = _as_object(value, key)
    if "missingValues" in obj and "missing_values" in obj:
        raise ValueError("duplicate field `missingValues`")
    missing_key = "missing_values" if "missing_values" in obj else "missingValues"
    return ValueRules(
        kind=_field(obj, "type", _enum(ValueKind)),
        decimals=_field(obj, "decimals", _as_uint, 0),
        missing_values=_field(obj, missing_key, _list_of(_as_str), []),
        zero_is_valid=_field(obj, "zero_is_valid", _as_bool, True),
        min=_field(obj, "min", _optional(_as_float), None),
        max=_field(obj, "max", _optional(_as_float), None),
    )