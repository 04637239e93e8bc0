#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
roster_reports.py

Command line reports over the theatre staffing roster.

Input (one of):
- the sheet backend REST API (--api-url or ROSTER_API_URL)
- an exported workbook (--workbook roster.xlsx), read-only: archive-play and
  sync-extras are refused

Commands:
- plays            per-play summary (person count, row count, categories)
- people           per-person summary, most-cast first
- overlap-people   plays shared by two people
- overlap-plays    people shared by two plays, with their roles
- distribution     people cast in exactly N plays, optional name/play filter
- categories       row count per category, with style class and extra flag
- search           rows matching category / play / person
- tsv              rows as tab-separated text, optionally per category
- sheets           sheet tabs (legacy sheets hidden)
- export           CSVs (utf-8-sig) per view + one .xlsx workbook
- archive-play     move a play to the archive sheet
- sync-extras      add missing extras to the extras registry

Logs:
- Console + <log_dir>/theater_roster.log

Dependencies:
- pandas
- openpyxl
- requests
- python-dotenv
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from memory_store import load_workbook_store
from roster_aggregate import (
    category_counts,
    compare_people,
    compare_plays,
    distribution,
    filter_plays,
    group_by_person,
    is_child_play,
    plays_by_headcount,
    records_to_tsv,
    search_records,
)
from roster_categories import classify
from roster_config import RosterConfig
from roster_mutations import RosterService
from roster_parser import LOGGER_NAME, Record, records_frame
from roster_store import RestSheetStore, RosterError, SheetNotFoundError, StoreError
from roster_sync import visible_sheets


LOG_FILE_NAME = "theater_roster.log"

EXPORT_WORKBOOK = "roster_views.xlsx"

# Commands that write to the backend; a --workbook is only ever read.
MUTATING_COMMANDS = ("archive-play", "sync-extras")


# ----------
# Logging
# ----------

def setup_logging(debug: bool, log_dir: str = "logs") -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    if logger.handlers:
        return logger

    os.makedirs(log_dir, exist_ok=True)
    log_path = Path(log_dir) / LOG_FILE_NAME

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.DEBUG if debug else logging.INFO)
    fh.setFormatter(fmt)

    sh = logging.StreamHandler(sys.stdout)
    sh.setLevel(logging.DEBUG if debug else logging.INFO)
    sh.setFormatter(fmt)

    logger.addHandler(fh)
    logger.addHandler(sh)
    return logger


# ------------
# View frames
# ------------

def plays_frame(records: Sequence[Record], query: str = "", kind: str = "all", by_headcount: bool = False) -> pd.DataFrame:
    plays = filter_plays(records, query=query, kind=kind)
    if by_headcount:
        keep = {p.name for p in plays}
        plays = [p for p in plays_by_headcount(records) if p.name in keep]
    return pd.DataFrame(
        [
            {
                "play": p.name,
                "person_count": p.person_count,
                "record_count": p.record_count,
                "categories": "; ".join(p.categories),
                "child_play": is_child_play(p.name),
            }
            for p in plays
        ],
        columns=["play", "person_count", "record_count", "categories", "child_play"],
    )


def people_frame(records: Sequence[Record], exact_play_count: Optional[int] = None, name: str = "", play: str = "") -> pd.DataFrame:
    if exact_play_count is None and not name and not play:
        people = group_by_person(records)
    else:
        people = distribution(records, exact_play_count=exact_play_count, name=name, play=play)
    return pd.DataFrame(
        [
            {"person": p.name, "play_count": len(p.plays), "plays": "; ".join(p.plays), "roles": "; ".join(p.roles)}
            for p in people
        ],
        columns=["person", "play_count", "plays", "roles"],
    )


def categories_frame(records: Sequence[Record]) -> pd.DataFrame:
    rows = []
    for cat, n in category_counts(records):
        c = classify(cat)
        rows.append({"category": cat, "rows": n, "style_class": c.style_class, "is_extra": c.is_extra})
    return pd.DataFrame(rows, columns=["category", "rows", "style_class", "is_extra"])


def overlap_frame(only_a: List[str], only_b: List[str], common: List[str], label_a: str, label_b: str) -> pd.DataFrame:
    rows = [{"side": f"only {label_a}", "name": n} for n in only_a]
    rows += [{"side": "common", "name": n} for n in common]
    rows += [{"side": f"only {label_b}", "name": n} for n in only_b]
    return pd.DataFrame(rows, columns=["side", "name"])


def export_views(records: Sequence[Record], out_folder: Path, logger: logging.Logger) -> Dict[str, Path]:
    """
    Write every view as CSV (utf-8-sig) and all of them into one workbook.
    """
    out_folder.mkdir(parents=True, exist_ok=True)
    frames = {
        "records": records_frame(records),
        "plays": plays_frame(records),
        "people": people_frame(records),
        "categories": categories_frame(records),
    }

    written: Dict[str, Path] = {}
    for name, df in frames.items():
        path = out_folder / f"{name}.csv"
        df.to_csv(path, index=False, encoding="utf-8-sig")
        written[name] = path
        logger.info(f"wrote {path.resolve()} rows={len(df)}")

    xlsx_path = out_folder / EXPORT_WORKBOOK
    with pd.ExcelWriter(xlsx_path, engine="openpyxl") as writer:
        for name, df in frames.items():
            df.to_excel(writer, sheet_name=name, index=False)
    written["workbook"] = xlsx_path
    logger.info(f"wrote {xlsx_path.resolve()} sheets={list(frames)}")
    return written


# -----
# Main
# -----

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Reports over the theatre staffing roster.")
    parser.add_argument("--api-url", default=None, help="Sheet backend base URL (default: ROSTER_API_URL)")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds (default: ROSTER_API_TIMEOUT)")
    parser.add_argument("--workbook", default=None, help="Read sheets from an exported .xlsx/.xlsm instead of the API")
    parser.add_argument("--sheet", default=None, help="Roster sheet to report on (default: main roster)")
    parser.add_argument("--log-dir", default=None, help="Log folder (default: ROSTER_LOG_DIR or logs)")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("plays", help="Per-play summary")
    p.add_argument("--query", default="", help="Match play, person, role or category")
    p.add_argument("--kind", choices=["all", "adult", "child"], default="all")
    p.add_argument("--by-headcount", action="store_true", help="Largest cast first")

    p = sub.add_parser("people", help="Per-person summary")
    p.add_argument("--name", default="")

    p = sub.add_parser("overlap-people", help="Plays shared by two people")
    p.add_argument("person_a")
    p.add_argument("person_b")

    p = sub.add_parser("overlap-plays", help="People shared by two plays")
    p.add_argument("play_a")
    p.add_argument("play_b")

    p = sub.add_parser("distribution", help="People by number of plays")
    p.add_argument("--plays", type=int, default=None, help="Only people cast in exactly this many plays")
    p.add_argument("--name", default="")
    p.add_argument("--play", default="")

    sub.add_parser("categories", help="Rows per category")

    p = sub.add_parser("search", help="Rows matching category, play and person")
    p.add_argument("--category", default="")
    p.add_argument("--play", default="")
    p.add_argument("--person", default="")

    p = sub.add_parser("tsv", help="Rows as tab-separated text for pasting")
    p.add_argument("--category", action="append", default=None, help="Keep only this category (repeatable)")

    sub.add_parser("sheets", help="Sheets offered as tabs")

    p = sub.add_parser("export", help="Write all views to CSV and xlsx")
    p.add_argument("--out-folder", default="roster_out", help="Output folder (default: roster_out)")

    p = sub.add_parser("archive-play", help="Move a play to the archive sheet")
    p.add_argument("play")

    sub.add_parser("sync-extras", help="Add missing extras to the extras registry")
    return parser


def build_service(args: argparse.Namespace, config: RosterConfig, logger: logging.Logger) -> RosterService:
    if args.workbook:
        path = Path(args.workbook)
        if not path.exists():
            logger.error(f"Workbook not found: {path.resolve()}")
            sys.exit(2)
        store = load_workbook_store(path, config=config, logger=logger)
    else:
        store = RestSheetStore(config.api_url, timeout=config.api_timeout, logger=logger)
    return RosterService(store, config=config, logger=logger)


def _print_frame(df: pd.DataFrame) -> None:
    if df.empty:
        print("(no rows)")
    else:
        print(df.to_string(index=False))


def run(args: argparse.Namespace, service: RosterService, logger: logging.Logger) -> int:
    cmd = args.command

    if cmd == "archive-play":
        result = service.archive_play(args.play)
        print(f"moved={result.moved_count} remaining={result.remaining_in_roster}")
        for w in result.warnings:
            print(f"WARNING: {w}")
        return 1 if result.partial else 0

    if cmd == "sync-extras":
        added = service.sync_extras()
        print(f"added={added}")
        return 0

    if cmd == "sheets":
        for name in visible_sheets(service.list_sheets()):
            print(name)
        return 0

    records = service.records(args.sheet)
    logger.info(f"Loaded {len(records)} record(s) from '{args.sheet or service.config.main_sheet}'")

    if cmd == "plays":
        _print_frame(plays_frame(records, query=args.query, kind=args.kind, by_headcount=args.by_headcount))
    elif cmd == "people":
        _print_frame(people_frame(records, name=args.name))
    elif cmd == "overlap-people":
        o = compare_people(records, args.person_a, args.person_b)
        _print_frame(overlap_frame(o.only_a, o.only_b, o.common, args.person_a, args.person_b))
    elif cmd == "overlap-plays":
        c = compare_plays(records, args.play_a, args.play_b)
        rows = [{"side": f"only {args.play_a}", "name": p.name, "roles": p.roles_a} for p in c.only_a]
        rows += [{"side": "common", "name": p.name, "roles": f"{p.roles_a} | {p.roles_b}"} for p in c.common]
        rows += [{"side": f"only {args.play_b}", "name": p.name, "roles": p.roles_b} for p in c.only_b]
        _print_frame(pd.DataFrame(rows, columns=["side", "name", "roles"]))
    elif cmd == "distribution":
        _print_frame(people_frame(records, exact_play_count=args.plays, name=args.name, play=args.play))
    elif cmd == "categories":
        _print_frame(categories_frame(records))
    elif cmd == "search":
        found = search_records(records, category=args.category, play=args.play, person=args.person)
        _print_frame(records_frame(found))
    elif cmd == "tsv":
        print(records_to_tsv(records, categories=args.category))
    elif cmd == "export":
        export_views(records, Path(args.out_folder), logger)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = RosterConfig.from_env().with_overrides(
        api_url=args.api_url,
        api_timeout=args.timeout,
        log_dir=args.log_dir,
    )
    logger = setup_logging(args.debug or config.debug, config.log_dir)

    if args.workbook and args.command in MUTATING_COMMANDS:
        logger.error(f"{args.command} needs the sheet backend; --workbook input is read-only and would not be saved.")
        return 2

    service = build_service(args, config, logger)
    try:
        return run(args, service, logger)
    except SheetNotFoundError as e:
        logger.error(f"{e} Create it first (default headers: {config.headers_for(e.sheet)}).")
        return 2
    except StoreError as e:
        logger.error(f"Backend error: {e}")
        return 2
    except RosterError as e:
        logger.exception(f"{args.command} failed")
        print(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
