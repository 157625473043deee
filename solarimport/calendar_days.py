"""Calendar validity checks for YYYYMM year-months."""

from __future__ import annotations

import re

_YEAR = re.compile(r"[+-]?[0-9]+")
_MONTH = re.compile(r"\+?[0-9]+")
_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def _is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def parse_ym(ym: str) -> tuple[int, int] | None:
    """Split "YYYYMM" into (year, month), or None if malformed or month not 1..12."""
    if not ym.isascii() or len(ym) != 6:
        return None
    year_part, month_part = ym[:4], ym[4:]
    if not _YEAR.fullmatch(year_part) or not _MONTH.fullmatch(month_part):
        return None
    year, month = int(year_part), int(month_part)
    if not 1 <= month <= 12:
        return None
    return year, month


def is_valid(ym: str, day: int) -> bool:
    """True when ``day`` exists in the month named by ``ym``."""
    parsed = parse_ym(ym)
    if parsed is None:
        return False
    year, month = parsed
    last = _DAYS_IN_MONTH[month - 1] + (1 if month == 2 and _is_leap(year) else 0)
    return 1 <= day <= last