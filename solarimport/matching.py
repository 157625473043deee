"""Loose profile matching: filename glob plus header substrings."""

from __future__ import annotations

from collections.abc import Sequence


def matches(profile, filename: str, header_row: Sequence[str]) -> bool:
    """True when the filename glob (if any) matches and every header needle occurs."""
    rules = profile.match_rules
    if rules.filename is not None and not glob_match(rules.filename, filename):
        return False
    joined = "|".join(header_row)
    return all(needle in joined for needle in rules.header_contains)


def glob_match(pattern: str, name: str) -> bool:
    """Match ``name`` against a pattern supporting only ``*`` and ``?`` (byte-wise)."""
    pat = pattern.encode("utf-8")
    txt = name.encode("utf-8")
    pi = ti = 0
    star: tuple[int, int] | None = None
    star_byte, any_byte = ord("*"), ord("?")

    while ti < len(txt):
        if pi < len(pat):
            b = pat[pi]
            if b == star_byte:
                star = (pi, ti)
                pi += 1
                continue
            if b == any_byte or b == txt[ti]:
                pi += 1
                ti += 1
                continue
        if star is not None:
            sp, st = star
            pi, ti = sp + 1, st + 1
            star = (sp, st + 1)
            continue
        return False

    while pi < len(pat) and pat[pi] == star_byte:
        pi += 1
    return pi == len(pat)