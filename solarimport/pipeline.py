"""Processing of a single input file: decode, read, route, reshape and store."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TypeVar

from . import decoder, reshape
from .dao import Dao
from .errors import NoMatch
from .profile import Registry, first_row
from .reader import Format, make_reader
from .rows import DailyKwhRow

log = logging.getLogger(__name__)

_T = TypeVar("_T")


class _StepError(Exception):
    """A failure annotated with the step that was being performed."""


def _step(message: str, func: Callable[..., _T], *args) -> _T:
    try:
        return func(*args)
    except Exception as exc:
        raise _StepError(message) from exc


@dataclass
class ProcessOutcome:
    """What processing one file produced."""

    rows: int
    profile_name: str
    year_month: str
    signature_drift: bool


async def process_file(path, registry: Registry, dao: Dao, dry_run: bool) -> ProcessOutcome:
    """Decode, read, route, reshape and hand the rows to ``dao`` (unless ``dry_run``)."""
    path = Path(path)
    data = _step(f"read {path}", path.read_bytes)

    fmt = Format.from_path(path)
    if fmt is None:
        raise ValueError(f"unsupported file: {path}")
    filename = path.name
    reader = make_reader(fmt)

    # Peek the header with auto-detected encoding to choose a profile.
    peek_text = None
    if fmt.needs_text_decode():
        peek_text = _step("decode for routing peek", decoder.from_label("auto").decode, data)
    peek_grid = _step("read for routing peek", reader.read, path, peek_text, None)
    header_row = first_row(peek_grid)

    match = registry.route(filename, header_row)
    profile = match.profile
    signature_drift = not match.signature_ok
    if signature_drift:
        log.warning(
            "header signature drift — proceeding anyway profile=%s expected=%s actual=%s",
            profile.name,
            profile.match_rules.header_signature,
            match.actual_signature,
        )

    # Full read with the profile's encoding and sheet.
    final_text = None
    if fmt.needs_text_decode():
        final_text = _step(
            f"decode with {profile.encoding}",
            decoder.from_label(profile.encoding).decode,
            data,
        )
    grid = _step(
        "read with profile encoding/sheet", reader.read, path, final_text, profile.sheet
    )

    year_month = profile.extract_year_month(path)
    rows = reshape.apply(grid, profile, year_month)

    if dry_run:
        log.info(
            "dry-run preview file=%s profile=%s year_month=%s rows=%d",
            filename,
            profile.name,
            year_month,
            len(rows),
        )
        _log_preview(rows)
        return ProcessOutcome(
            rows=len(rows),
            profile_name=profile.name,
            year_month=year_month,
            signature_drift=signature_drift,
        )

    inserted = await dao.upsert_month(year_month, rows)
    return ProcessOutcome(
        rows=inserted,
        profile_name=profile.name,
        year_month=year_month,
        signature_drift=signature_drift,
    )


def _log_preview(rows: Sequence[DailyKwhRow]) -> None:
    for i, r in enumerate(rows[:5]):
        log.info(
            "preview row i=%d caseid=%s plant_name=%r shift_hour=%s daily_kwh=%r",
            i,
            r.caseid,
            r.plant_name,
            r.shift_hour,
            r.daily_kwh,
        )


def move_to_backup(src, backup_dir) -> Path:
    """Move ``src`` into ``backup_dir``, suffixing its stem with today's date (YYYYMMDD)."""
    src = Path(src)
    backup_dir = Path(backup_dir)
    backup_dir.mkdir(parents=True, exist_ok=True)
    stem = src.stem
    if not stem:
        raise ValueError(f"bad filename: {src}")
    ext = src.suffix[1:]
    date = datetime.now().strftime("%Y%m%d")
    new_name = f"{stem}_{date}.{ext}" if ext else f"{stem}_{date}"
    dest = backup_dir / new_name
    _step(f"rename {src} -> {dest}", os.replace, src, dest)
    return dest


def move_to_error(src, error_dir, err: BaseException) -> Path:
    """Move ``src`` into ``error_dir`` and write ``<file>.err.txt`` with the error chain."""
    src = Path(src)
    error_dir = Path(error_dir)
    error_dir.mkdir(parents=True, exist_ok=True)
    if not src.name:
        raise ValueError(f"bad filename: {src}")
    dest = error_dir / src.name
    _step(f"rename {src} -> {dest}", os.replace, src, dest)
    ext = src.suffix[1:]
    err_path = dest.with_name(f"{dest.stem}.{ext}.err.txt")
    err_path.write_text(render_error_chain(err), encoding="utf-8")
    return dest


def _cause(err: BaseException) -> BaseException | None:
    if err.__cause__ is not None:
        return err.__cause__
    if err.__suppress_context__:
        return None
    return err.__context__


def render_error_chain(err: BaseException) -> str:
    """The error message followed by one indented line per underlying cause."""
    lines = [f"{err}\n"]
    cur = _cause(err)
    depth = 1
    while cur is not None:
        lines.append(f"  caused by [{depth}]: {cur}\n")
        cur = _cause(cur)
        depth += 1
    return "".join(lines)


def is_no_match(err: BaseException) -> bool:
    """True when ``err`` means that no profile matched the file."""
    return isinstance(err, NoMatch)