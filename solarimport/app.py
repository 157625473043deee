"""One import run over every file in the input directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from . import pipeline, scan
from .config import Config
from .dao import Dao
from .profile import Registry

log = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Counters collected over one run."""

    processed: int = 0
    rejected_no_match: int = 0
    failed: int = 0
    rows_total: int = 0


async def run(
    cfg: Config,
    registry: Registry,
    dao: Dao,
    input_override=None,
    dry_run: bool = False,
) -> RunSummary:
    """Process every input file, moving each to backup or error unless ``dry_run``."""
    input_dir = Path(input_override) if input_override is not None else cfg.source.input_dir
    log.info(
        "run starting input=%s backup=%s error=%s profiles=%d dry_run=%s",
        input_dir,
        cfg.source.backup_dir,
        cfg.source.error_dir,
        len(registry),
        dry_run,
    )

    files = scan.list_input_files(input_dir)
    if not files:
        log.info("no input files found")
        return RunSummary()

    summary = RunSummary()
    for path in files:
        try:
            out = await pipeline.process_file(path, registry, dao, dry_run)
        except Exception as exc:
            if pipeline.is_no_match(exc):
                summary.rejected_no_match += 1
                log.warning("no profile matched — rejecting file=%s error=%s", path, exc)
            else:
                summary.failed += 1
                log.error("processing failed file=%s error=%s", path, exc)
            if not dry_run:
                try:
                    pipeline.move_to_error(path, cfg.source.error_dir, exc)
                except Exception as move_err:
                    log.error("error move failed file=%s error=%s", path, move_err)
            continue

        summary.processed += 1
        summary.rows_total += out.rows
        log.info(
            "file done file=%s profile=%s year_month=%s rows=%d drift=%s",
            path,
            out.profile_name,
            out.year_month,
            out.rows,
            out.signature_drift,
        )
        if not dry_run:
            try:
                dest = pipeline.move_to_backup(path, cfg.source.backup_dir)
                log.info("moved to backup file=%s dest=%s", path, dest)
            except Exception as move_err:
                log.error("backup move failed file=%s error=%s", path, move_err)

    log.info(
        "run done processed=%d rejected=%d failed=%d rows_total=%d",
        summary.processed,
        summary.rejected_no_match,
        summary.failed,
        summary.rows_total,
    )
    return summary