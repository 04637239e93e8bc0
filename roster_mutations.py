# -*- coding: utf-8 -*-
"""
roster_mutations.py

Position-addressed mutations against a SheetStore, with the invalidation that
must follow each one.

Rules:
- Nothing is applied to a local snapshot. A mutation is sent, and only after
  the store acknowledges it are the affected cache entries invalidated; the
  next read re-fetches and re-parses.
- Positional mutations (edit cell, insert after, delete) take the snapshot the
  position was read from. If that snapshot's generation is no longer current,
  the call is refused with StaleSnapshotError before reaching the store.
- A rejected mutation leaves the cache untouched and re-raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from roster_config import RosterConfig
from roster_parser import LOGGER_NAME, Record
from roster_store import (
    MutationRejectedError,
    SheetNotFoundError,
    SheetStore,
    SnapshotCache,
    StaleSnapshotError,
    StoreError,
)
from roster_sync import (
    INSERT_AT_TOP,
    IndexedRow,
    LastAssignment,
    NotificationFeed,
    RowSelection,
    SheetSnapshot,
    copy_rows,
    find_last_assignment,
    resolve_absolute_index,
)


SHEET_LIST_KEY = "__sheets__"

RowRef = Union[int, IndexedRow]


# -------------
# Result types
# -------------

@dataclass
class DeleteResult:
    sheet: str
    row_index: int
    last_assignment: Optional[LastAssignment] = None


@dataclass
class ArchiveResult:
    play: str
    moved_count: int
    remaining_in_roster: int = 0
    partial: bool = False
    warnings: List[str] = field(default_factory=list)


@dataclass
class ItemResult:
    position: int
    values: List[str]
    ok: bool
    error: str = ""


@dataclass
class BatchResult:
    sheet: str
    items: List[ItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for i in self.items if i.ok)

    @property
    def failed(self) -> int:
        return sum(1 for i in self.items if not i.ok)

    @property
    def complete(self) -> bool:
        return self.failed == 0


# --------
# Service
# --------

class RosterService:
    def __init__(
        self,
        store: SheetStore,
        cache: Optional[SnapshotCache] = None,
        config: Optional[RosterConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.cache = cache or SnapshotCache(self.logger)
        self.config = config or RosterConfig()

    # ------
    # Reads
    # ------

    def list_sheets(self, refresh: bool = False) -> List[str]:
        cached = self.cache.get(SHEET_LIST_KEY)
        if cached is not None and not refresh:
            return list(cached)
        gen = self.cache.generation(SHEET_LIST_KEY)
        sheets = self.store.list_sheets()
        self.cache.put(SHEET_LIST_KEY, tuple(sheets), gen)
        return list(sheets)

    def read(self, name: str, refresh: bool = False) -> SheetSnapshot:
        cached = self.cache.get(name)
        if cached is not None and not refresh:
            return cached

        gen = self.cache.generation(name)
        payload = self.store.read_sheet(name)
        snapshot = SheetSnapshot.from_payload(name, payload.get("headers", []), payload.get("rows", []), gen)
        if snapshot.is_empty and name not in self.list_sheets(refresh=True):
            raise SheetNotFoundError(name)

        self.cache.put(name, snapshot, gen)
        self.logger.debug(f"read '{name}': rows={len(snapshot)} generation={gen}")
        return snapshot

    def records(self, name: Optional[str] = None) -> List[Record]:
        return self.read(name or self.config.main_sheet).records()

    def ensure_sheet(self, name: str) -> SheetSnapshot:
        """
        Read `name`, creating it with its default header row if it does not exist.
        """
        try:
            return self.read(name)
        except SheetNotFoundError:
            headers = self.config.headers_for(name)
            self.logger.info(f"Sheet '{name}' not found; creating it with headers {headers}")
            self._run("create_sheet", name, lambda: self.store.append_row(name, headers), [name, SHEET_LIST_KEY])
            return self.read(name)

    # ---------
    # Plumbing
    # ---------

    def _check_fresh(self, snapshot: SheetSnapshot) -> None:
        current = self.cache.generation(snapshot.name)
        if snapshot.generation != current:
            raise StaleSnapshotError(snapshot.name, snapshot.generation, current)

    def _row_index(self, snapshot: SheetSnapshot, row: RowRef) -> int:
        if isinstance(row, IndexedRow):
            return resolve_absolute_index(row, snapshot)
        return int(row)

    def _invalidate(self, keys: Iterable[str]) -> None:
        for key in dict.fromkeys(keys):
            self.cache.invalidate(key)

    def _run(self, operation: str, sheet: str, call, invalidate: Sequence[str]):
        self.logger.info(f"{operation} | sheet='{sheet}'")
        try:
            result = call()
        except MutationRejectedError as e:
            self.logger.warning(f"{operation} | sheet='{sheet}' rejected: {e.detail or e}")
            raise
        self._invalidate(invalidate)
        return result

    # -------------------
    # Single-row mutations
    # -------------------

    def update_cell(self, snapshot: SheetSnapshot, row: RowRef, col: int, value: str) -> None:
        self._check_fresh(snapshot)
        idx = self._row_index(snapshot, row)
        if idx < 0 or idx >= len(snapshot):
            raise IndexError(f"row {idx} out of range for '{snapshot.name}' ({len(snapshot)} rows)")
        if col < 0:
            raise IndexError(f"column {col} out of range for '{snapshot.name}'")
        self._run(
            "update_cell", snapshot.name,
            lambda: self.store.update_cell(snapshot.name, idx, col, value),
            [snapshot.name],
        )

    def append_row(self, sheet: str, values: Sequence[str]) -> None:
        vals = [str(v) for v in values]
        self._run("append_row", sheet, lambda: self.store.append_row(sheet, vals), [sheet])

    def insert_row_after(self, snapshot: SheetSnapshot, after: Optional[RowRef], values: Sequence[str]) -> None:
        """
        after=-1 (or None) inserts at the very top.
        """
        self._check_fresh(snapshot)
        idx = INSERT_AT_TOP if after is None else self._row_index(snapshot, after)
        if idx < INSERT_AT_TOP or idx >= len(snapshot):
            raise IndexError(f"insert position {idx} out of range for '{snapshot.name}' ({len(snapshot)} rows)")
        vals = [str(v) for v in values]
        self._run(
            "insert_row", snapshot.name,
            lambda: self.store.insert_row(snapshot.name, idx, vals),
            [snapshot.name],
        )

    def insert_at_slot(self, snapshot: SheetSnapshot, selection: RowSelection, values: Sequence[str]) -> None:
        if selection.insert_after is None:
            raise ValueError("No insert slot is open.")
        self.insert_row_after(snapshot, selection.insert_after, values)
        selection.insert_after = None

    def delete_row(self, snapshot: SheetSnapshot, row: RowRef) -> DeleteResult:
        self._check_fresh(snapshot)
        idx = self._row_index(snapshot, row)
        if idx < 0 or idx >= len(snapshot):
            raise IndexError(f"row {idx} out of range for '{snapshot.name}' ({len(snapshot)} rows)")

        last = find_last_assignment(snapshot, idx) if snapshot.name == self.config.main_sheet else None
        self._run(
            "delete_row", snapshot.name,
            lambda: self.store.delete_row(snapshot.name, idx),
            [snapshot.name] + self.config.dependent_sheets(snapshot.name),
        )
        if last is not None:
            self.logger.info(f"'{last.person}' has no assignment left after leaving '{last.play}'")
        return DeleteResult(sheet=snapshot.name, row_index=idx, last_assignment=last)

    def add_play(self, play_name: str) -> None:
        """
        Start a new play with a row that only carries its name.
        """
        name = play_name.strip()
        if not name:
            raise ValueError("Play name is empty.")
        snapshot = self.read(self.config.main_sheet)
        width = max(len(snapshot.headers), 4)
        values = [""] * width
        col = snapshot.column("play")
        values[0 if col is None else col] = name
        self.append_row(self.config.main_sheet, values)

    # -------------
    # Copy / paste
    # -------------

    def copy_selection(self, snapshot: SheetSnapshot, selection: RowSelection) -> List[List[str]]:
        self._check_fresh(snapshot)
        return copy_rows(snapshot, selection.sorted_indices())

    def paste_rows(self, sheet: str, rows: Sequence[Sequence[str]]) -> BatchResult:
        """
        Append each copied row in order. Not atomic: every item reports its
        own outcome and a failure does not stop the rest.
        """
        result = BatchResult(sheet=sheet)
        for pos, row in enumerate(rows):
            values = [str(v) for v in row]
            try:
                self.store.append_row(sheet, values)
                result.items.append(ItemResult(position=pos, values=values, ok=True))
            except MutationRejectedError as e:
                self.logger.warning(f"paste_rows | sheet='{sheet}' item {pos} rejected: {e.detail or e}")
                result.items.append(ItemResult(position=pos, values=values, ok=False, error=str(e)))

        if result.succeeded:
            self._invalidate([sheet])
        self.logger.info(f"paste_rows | sheet='{sheet}' pasted={result.succeeded} failed={result.failed}")
        return result

    # ---------------------
    # Cross-sheet operations
    # ---------------------

    def _count_play_rows(self, sheet: str, play_name: str) -> int:
        try:
            snapshot = self.read(sheet, refresh=True)
        except SheetNotFoundError:
            return 0
        return sum(1 for r in snapshot.records() if r.play == play_name)

    def archive_play(self, play_name: str) -> ArchiveResult:
        """
        Move every roster row of `play_name` to the archive sheet.

        A retry after success finds nothing to move. The archive is counted
        before the call and both sheets are re-read afterwards; rows left
        behind, or fewer new archive rows than reported, mark the result as
        partial. Nothing is rolled back.
        """
        main, archive = self.config.main_sheet, self.config.archive_sheet
        result = ArchiveResult(play=play_name, moved_count=0)
        error: Optional[MutationRejectedError] = None
        archived_before = self._count_play_rows(archive, play_name)

        self.logger.info(f"archive_play | play='{play_name}' already_archived={archived_before}")
        try:
            result.moved_count = int(self.store.archive_play(play_name))
        except MutationRejectedError as e:
            error = e
            self.logger.warning(f"archive_play | play='{play_name}' rejected: {e.detail or e}")
        # both sheets may have changed even when the call failed midway
        self._invalidate([main, archive, SHEET_LIST_KEY])

        try:
            result.remaining_in_roster = self._count_play_rows(main, play_name)
            archived = self._count_play_rows(archive, play_name) - archived_before
        except StoreError as e:
            if error is not None:
                raise error
            result.partial = True
            result.warnings.append(f"Could not verify archive of '{play_name}': {e}. Check both sheets.")
            self.logger.warning(result.warnings[-1])
            return result

        if error is not None:
            if archived <= 0:
                raise error
            result.partial = True
            result.warnings.append(
                f"Archive of '{play_name}' failed after {archived} new row(s) reached '{archive}': {error.detail or error}"
            )
        if result.remaining_in_roster:
            result.partial = True
            result.warnings.append(f"{result.remaining_in_roster} row(s) of '{play_name}' are still in '{main}'.")
        if archived < result.moved_count:
            result.partial = True
            result.warnings.append(
                f"'{archive}' gained {archived} row(s) of '{play_name}' but {result.moved_count} were reported moved."
            )

        for w in result.warnings:
            self.logger.warning(w)
        return result

    def sync_extras(self) -> int:
        added = self._run("sync_extras", self.config.extras_sheet, self.store.sync_extras, [self.config.extras_sheet])
        self.logger.info(f"sync_extras | added={added}")
        return int(added)

    # --------------
    # Notifications
    # --------------

    def notification_feed(self) -> NotificationFeed:
        return NotificationFeed(self.read(self.config.notifications_sheet))

    def delete_notification(self, feed: NotificationFeed, display_index: int) -> DeleteResult:
        return self.delete_row(feed.snapshot, feed.sheet_index(display_index))

    def clear_notifications(self) -> None:
        sheet = self.config.notifications_sheet
        self._run("clear_notifications", sheet, self.store.clear_notifications, [sheet])

    def clear_oldest_notifications(self) -> None:
        sheet = self.config.notifications_sheet
        self._run("clear_oldest_notifications", sheet, self.store.clear_oldest_notifications, [sheet])
