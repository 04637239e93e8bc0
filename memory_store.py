# -*- coding: utf-8 -*-
"""
memory_store.py

In-process SheetStore with the backend's semantics, plus a loader that fills
it from an exported .xlsx workbook (one worksheet per sheet, first row is the
header row).

Dependencies:
- pandas
- openpyxl
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from roster_aggregate import missing_extras
from roster_config import EXTRAS_HEADERS, NOTIFICATIONS_OLDEST_BATCH, RosterConfig
from roster_parser import LOGGER_NAME, RECORD_HEADERS, cell_text, parse_records, resolve_column
from roster_store import MutationRejectedError, SheetNotFoundError, SheetStore


class MemorySheetStore(SheetStore):
    def __init__(
        self,
        sheets: Optional[Dict[str, Dict[str, Any]]] = None,
        config: Optional[RosterConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or RosterConfig()
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self._sheets: Dict[str, Dict[str, List]] = {}
        for name, data in (sheets or {}).items():
            self._sheets[name] = {
                "headers": [cell_text(h) for h in data.get("headers", [])],
                "rows": [[cell_text(c) for c in row] for row in data.get("rows", [])],
            }

    def _sheet(self, name: str, operation: str) -> Dict[str, List]:
        if name not in self._sheets:
            raise MutationRejectedError(operation, name, "sheet does not exist")
        return self._sheets[name]

    def _check_row(self, name: str, operation: str, row: int, allow_top: bool = False) -> Dict[str, List]:
        sheet = self._sheet(name, operation)
        low = -1 if allow_top else 0
        if not isinstance(row, int) or row < low or row >= len(sheet["rows"]):
            raise MutationRejectedError(operation, name, f"row {row} out of range (rows={len(sheet['rows'])})")
        return sheet

    def list_sheets(self) -> List[str]:
        return list(self._sheets.keys())

    def read_sheet(self, name: str) -> Dict[str, Any]:
        if name not in self._sheets:
            raise SheetNotFoundError(name)
        sheet = self._sheets[name]
        return {"headers": list(sheet["headers"]), "rows": [list(r) for r in sheet["rows"]]}

    def update_cell(self, name: str, row: int, col: int, value: str) -> None:
        sheet = self._check_row(name, "update_cell", row)
        if col < 0:
            raise MutationRejectedError("update_cell", name, f"column {col} out of range")
        cells = sheet["rows"][row]
        if col >= len(cells):
            cells.extend([""] * (col + 1 - len(cells)))
        cells[col] = str(value)

    def append_row(self, name: str, values: Sequence[str]) -> None:
        # the first row written to a missing or blank sheet becomes its header row
        sheet = self._sheets.get(name)
        if sheet is None or (not sheet["headers"] and not sheet["rows"]):
            self._sheets[name] = {"headers": [str(v) for v in values], "rows": []}
            return
        self._sheets[name]["rows"].append([str(v) for v in values])

    def insert_row(self, name: str, after_row: int, values: Sequence[str]) -> None:
        sheet = self._check_row(name, "insert_row", after_row, allow_top=True)
        sheet["rows"].insert(after_row + 1, [str(v) for v in values])

    def delete_row(self, name: str, row: int) -> None:
        sheet = self._check_row(name, "delete_row", row)
        del sheet["rows"][row]

    def archive_play(self, play_name: str) -> int:
        main = self._sheet(self.config.main_sheet, "archive_play")
        play_col = resolve_column(main["headers"], "play")
        if play_col is None:
            raise MutationRejectedError("archive_play", self.config.main_sheet, "play column not found")

        moving = [r for r in main["rows"] if play_col < len(r) and r[play_col].strip() == play_name]
        if not moving:
            return 0

        if self.config.archive_sheet not in self._sheets:
            self._sheets[self.config.archive_sheet] = {"headers": list(RECORD_HEADERS), "rows": []}
        self._sheets[self.config.archive_sheet]["rows"].extend([list(r) for r in moving])
        main["rows"] = [r for r in main["rows"] if not (play_col < len(r) and r[play_col].strip() == play_name)]
        return len(moving)

    def sync_extras(self) -> int:
        main = self._sheet(self.config.main_sheet, "sync_extras")
        records = parse_records(main["headers"], main["rows"], self.logger)

        if self.config.extras_sheet not in self._sheets:
            self._sheets[self.config.extras_sheet] = {"headers": list(EXTRAS_HEADERS), "rows": []}
        registry = self._sheets[self.config.extras_sheet]
        person_col = resolve_column(registry["headers"], "person")
        person_col = 0 if person_col is None else person_col
        registered = [r[person_col] for r in registry["rows"] if person_col < len(r)]

        added = missing_extras(records, registered)
        play_col = resolve_column(registry["headers"], "play")
        cat_col = resolve_column(registry["headers"], "category")
        width = max(len(registry["headers"]), 1)
        for name, plays in added:
            row = [""] * width
            row[person_col] = name
            if play_col is not None:
                row[play_col] = ", ".join(plays)
            if cat_col is not None:
                row[cat_col] = "Figüran"
            registry["rows"].append(row)
        return len(added)

    def clear_notifications(self) -> None:
        sheet = self._sheets.get(self.config.notifications_sheet)
        if sheet is not None:
            sheet["rows"] = []

    def clear_oldest_notifications(self) -> None:
        sheet = self._sheets.get(self.config.notifications_sheet)
        if sheet is not None:
            sheet["rows"] = sheet["rows"][NOTIFICATIONS_OLDEST_BATCH:]


# -----------------
# Workbook loading
# -----------------

def load_workbook_store(
    file_path: Path,
    config: Optional[RosterConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> MemorySheetStore:
    """
    Read every worksheet of an .xlsx/.xlsm file into a MemorySheetStore.
    """
    logger = logger or logging.getLogger(LOGGER_NAME)
    suffix = file_path.suffix.lower()
    if suffix not in (".xlsx", ".xlsm"):
        raise ValueError(f"Unsupported extension: {suffix} (expected .xlsx/.xlsm)")

    xls = pd.ExcelFile(file_path, engine="openpyxl")
    sheets: Dict[str, Dict[str, Any]] = {}
    for sh in xls.sheet_names:
        raw = pd.read_excel(xls, sheet_name=sh, header=None, dtype=object)
        raw = raw.dropna(axis=0, how="all")
        if raw.empty:
            logger.debug(f"{file_path.name}: sheet '{sh}' is empty")
            sheets[sh] = {"headers": [], "rows": []}
            continue
        values = [[cell_text(v) for v in row] for row in raw.values.tolist()]
        headers = values[0]
        while headers and headers[-1] == "":
            headers.pop()
        rows = [row[: max(len(headers), 1)] for row in values[1:]]
        sheets[sh] = {"headers": headers, "rows": rows}
        logger.info(f"{file_path.name} | {sh}: loaded rows={len(rows)} columns={len(headers)}")

    return MemorySheetStore(sheets, config=config, logger=logger)
