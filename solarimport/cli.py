"""Command line entry point: ``run`` imports files, ``learn`` drafts a profile."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from . import app, config, decoder, logsetup, profile
from .dao import NoopDao, make_dao
from .grid import Grid
from .learn import learn
from .pipeline import render_error_chain
from .reader import Format, make_reader

log = logging.getLogger(__name__)

_VERSION = "0.1.0"


def _add_config(parser: argparse.ArgumentParser, default) -> None:
    parser.add_argument("--config", type=Path, default=default, help="path of the TOML config")


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the ``import`` command."""
    parser = argparse.ArgumentParser(prog="import", description="Solar monitoring monthly importer")
    parser.add_argument("-V", "--version", action="version", version=f"import {_VERSION}")
    _add_config(parser, Path("config.toml"))
    sub = parser.add_subparsers(dest="cmd", required=True)

    run_p = sub.add_parser("run", help="Process files in input_dir using profiles in profile_dir.")
    _add_config(run_p, argparse.SUPPRESS)
    run_p.add_argument("--profile-dir", type=Path, default=None)
    run_p.add_argument("--input-dir", type=Path, default=None)
    run_p.add_argument("--dry-run", action="store_true", default=False)

    learn_p = sub.add_parser("learn", help="Generate a profile.json from a template + sample.")
    _add_config(learn_p, argparse.SUPPRESS)
    learn_p.add_argument("--structure", type=Path, required=True)
    learn_p.add_argument("--sample", type=Path, required=True)
    learn_p.add_argument("--out", type=Path, required=True)
    learn_p.add_argument("--name", default=None)
    return parser


async def run_cmd(cfg: config.Config, profile_dir, input_dir, dry_run: bool) -> app.RunSummary:
    """Load profiles, pick the DAO and run one import."""
    pdir = Path(profile_dir) if profile_dir is not None else cfg.profile.dir
    registry = profile.load_dir(pdir)
    if len(registry) == 0:
        log.warning("no profiles loaded — nothing will match dir=%s", pdir)
    dao = NoopDao() if dry_run else make_dao(cfg.database)
    return await app.run(cfg, registry, dao, input_dir, dry_run)


def learn_cmd(structure, sample, out, name=None) -> profile.Profile:
    """Learn a profile from ``structure`` (and ``sample``) and write it as JSON to ``out``."""
    structure = Path(structure)
    sample = Path(sample)
    out = Path(out)
    fmt = Format.from_path(structure)
    if fmt is None:
        raise ValueError(f"unsupported structure file extension: {structure}")
    reader = make_reader(fmt)

    def read_one(path: Path) -> Grid:
        data = path.read_bytes()
        text = decoder.from_label("auto").decode(data) if fmt.needs_text_decode() else None
        return reader.read(path, text, None)

    structure_grid = read_one(structure)
    if sample == structure:
        sample_grid = None
    elif sample.exists():
        sample_grid = read_one(sample)
    else:
        log.warning("sample not found — using default value rules path=%s", sample)
        sample_grid = None

    profile_name = name if name is not None else (structure.stem or "unnamed")
    learned = learn(structure_grid, sample_grid, profile_name, fmt)

    text = json.dumps(learned.to_dict(), indent=2, ensure_ascii=False)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    log.info("profile written out=%s profile=%s", out, learned.name)
    return learned


def main(argv=None) -> int:
    """Run the command line; return the process exit code."""
    args = build_parser().parse_args(argv)
    try:
        cfg = config.load(args.config)
        with logsetup.init_log(cfg.log):
            if args.cmd == "run":
                summary = asyncio.run(
                    run_cmd(cfg, args.profile_dir, args.input_dir, args.dry_run)
                )
                return 1 if summary.failed > 0 else 0
            learn_cmd(args.structure, args.sample, args.out, args.name)
            return 0
    except Exception as exc:
        sys.stderr.write(f"Error: {render_error_chain(exc)}")
        return 1