"""Conversion of raw cells into decimal values under a profile's value rules."""

from __future__ import annotations

import re
from decimal import Decimal

from .errors import CastError, OutOfRange
from .profile import ValueKind, ValueRules

_NUMBER = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


def cast_value(raw: str, rules: ValueRules, row: int, col: int) -> Decimal | None:
    """Parse ``raw`` to a Decimal; None for missing values or string-typed rules."""
    trimmed = raw.strip()
    if not trimmed or raw in rules.missing_values or trimmed in rules.missing_values:
        return None
    if rules.kind is ValueKind.STRING:
        return None
    cleaned = trimmed.replace(",", "")
    if not _NUMBER.fullmatch(cleaned):
        raise CastError(row, col, raw, rules.kind.value.capitalize())
    value = Decimal(cleaned)
    _check_range(value, rules, row, col, raw)
    return value


def _check_range(value: Decimal, rules: ValueRules, row: int, col: int, raw: str) -> None:
    number = float(value)
    if (rules.min is not None and number < rules.min) or (
        rules.max is not None and number > rules.max
    ):
        raise OutOfRange(row, col, raw, rules.min, rules.max)
    if not rules.zero_is_valid and value == 0:
        raise CastError(row, col, raw, "zero_is_valid=false")