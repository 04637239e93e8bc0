# -*- coding: utf-8 -*-
"""
roster_sync.py

Keeps what the user sees (filtered, grouped by play, paged, reversed) tied to
the absolute row position in the full sheet snapshot a mutation must target.

Every row is paired with its fetch-time index when the snapshot is built, so
views can be sliced and reordered freely and still resolve back. A snapshot
also carries the cache generation it was read under; a row from an older
generation cannot be resolved against a newer snapshot.

Assumption: the sheet is re-read between a positional mutation and the next
index resolution. Two positional mutations are never issued from one snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from roster_parser import RECORD_FIELDS, Record, cell_text, parse_records, resolve_column
from roster_text import split_people, tr_lower, tr_sort_key, tr_sorted


ROWS_PER_PAGE = 50

# Sheets hidden from the sheet tab list.
LEGACY_SHEET_PREFIXES = ("__", "_SNAPSHOT")
LEGACY_SHEET_NAMES = {"LOG", "Log", "Snapshot", "BİLDİRİMLER_ARŞİV", "BİLDİRİMLER"}

# Always offered even before they exist upstream.
PINNED_SHEETS = ["GÖREVLİ OLMAYAN", "ARŞİV OYUNLAR"]

NO_INSERT_SLOT = None
INSERT_AT_TOP = -1


class StaleRowError(ValueError):
    """A display row does not belong to the snapshot it is resolved against."""


# ---------
# Snapshot
# ---------

@dataclass(frozen=True)
class IndexedRow:
    index: int
    cells: Tuple[str, ...]
    generation: int = 0

    def cell(self, col: Optional[int]) -> str:
        if col is None or col < 0 or col >= len(self.cells):
            return ""
        return self.cells[col]


@dataclass(frozen=True)
class SheetSnapshot:
    name: str
    headers: Tuple[str, ...]
    rows: Tuple[IndexedRow, ...]
    generation: int = 0

    @classmethod
    def from_payload(cls, name: str, headers: Sequence[Any], rows: Sequence[Sequence[Any]], generation: int = 0) -> "SheetSnapshot":
        return cls(
            name=name,
            headers=tuple(cell_text(h) for h in headers),
            rows=tuple(
                IndexedRow(index=i, cells=tuple(cell_text(c) for c in row), generation=generation)
                for i, row in enumerate(rows)
            ),
            generation=generation,
        )

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.headers and not self.rows

    def raw_rows(self) -> List[List[str]]:
        return [list(r.cells) for r in self.rows]

    def records(self) -> List[Record]:
        return parse_records(self.headers, self.raw_rows())

    def column(self, field_name: str) -> Optional[int]:
        return resolve_column(self.headers, field_name)


def resolve_absolute_index(display_row: IndexedRow, snapshot: SheetSnapshot) -> int:
    """
    Absolute position of a displayed row in the full snapshot.
    """
    if display_row.generation != snapshot.generation:
        raise StaleRowError(
            f"Row from generation {display_row.generation} resolved against "
            f"'{snapshot.name}' generation {snapshot.generation}; re-read the sheet."
        )
    idx = display_row.index
    if idx < 0 or idx >= len(snapshot.rows) or snapshot.rows[idx].cells != display_row.cells:
        raise StaleRowError(f"Row {idx} is not part of snapshot '{snapshot.name}'.")
    return idx


def original_index(display_index: int, total_count: int) -> int:
    """
    Sheet position of a row shown at `display_index` in a newest-first view.
    """
    if display_index < 0 or display_index >= total_count:
        raise IndexError(f"display index {display_index} out of range for {total_count} rows")
    return total_count - 1 - display_index


# -----------
# Row views
# -----------

def filter_rows(snapshot: SheetSnapshot, query: str) -> List[IndexedRow]:
    q = tr_lower((query or "").strip())
    if not q:
        return list(snapshot.rows)
    return [r for r in snapshot.rows if any(q in tr_lower(c) for c in r.cells)]


def group_rows_by_play(snapshot: SheetSnapshot) -> List[Tuple[str, List[IndexedRow]]]:
    col = snapshot.column("play")
    groups: Dict[str, List[IndexedRow]] = {}
    for r in snapshot.rows:
        groups.setdefault(r.cell(col).strip(), []).append(r)
    return sorted(groups.items(), key=lambda kv: tr_sort_key(kv[0]))


def page_count(rows: Sequence[IndexedRow], per_page: int = ROWS_PER_PAGE) -> int:
    return max(1, -(-len(rows) // per_page))


def page_rows(rows: Sequence[IndexedRow], page: int, per_page: int = ROWS_PER_PAGE) -> List[IndexedRow]:
    """
    1-based page of a (possibly filtered) row list.
    """
    page = min(max(1, page), page_count(rows, per_page))
    return list(rows[(page - 1) * per_page : page * per_page])


def column_suggestions(snapshot: SheetSnapshot, columns: int = len(RECORD_FIELDS)) -> List[List[str]]:
    """
    Distinct comma-split values of the first `columns` columns, for autocomplete.
    """
    out: List[List[str]] = []
    for col in range(columns):
        values: Set[str] = set()
        for r in snapshot.rows:
            values.update(split_people(r.cell(col)))
        out.append(tr_sorted(values))
    return out


def visible_sheets(api_sheets: Iterable[str]) -> List[str]:
    visible = [
        s for s in api_sheets
        if not s.startswith(LEGACY_SHEET_PREFIXES) and s not in LEGACY_SHEET_NAMES
    ]
    return visible + [s for s in PINNED_SHEETS if s not in visible]


@dataclass
class NotificationFeed:
    """
    Newest-first view over a log sheet.
    """
    snapshot: SheetSnapshot

    @property
    def rows(self) -> List[IndexedRow]:
        return list(reversed(self.snapshot.rows))

    def sheet_index(self, display_index: int) -> int:
        return original_index(display_index, len(self.snapshot.rows))


# ----------------------------
# Selection and insert slot
# ----------------------------

@dataclass
class RowSelection:
    """
    Selected rows and the single active insert slot, both in absolute indices.

    insert_after == -1 means "insert at the top"; None means no slot is open.
    """
    selected: Set[int] = field(default_factory=set)
    insert_after: Optional[int] = NO_INSERT_SLOT

    def click(self, index: int, extend: bool = False, toggle: bool = False) -> Set[int]:
        if toggle:
            if index in self.selected:
                self.selected.discard(index)
            else:
                self.selected.add(index)
        elif extend and self.selected:
            anchor = max(self.selected)
            lo, hi = min(anchor, index), max(anchor, index)
            self.selected = set(range(lo, hi + 1))
        elif self.selected == {index}:
            self.selected = set()
        else:
            self.selected = {index}
        return set(self.selected)

    def clear(self) -> None:
        self.selected = set()
        self.insert_after = NO_INSERT_SLOT

    def sorted_indices(self) -> List[int]:
        return sorted(self.selected)

    def toggle_insert_below(self, index: int) -> Optional[int]:
        self.insert_after = NO_INSERT_SLOT if self.insert_after == index else index
        return self.insert_after

    def toggle_insert_above(self, index: int) -> Optional[int]:
        # "above row K" is the same slot as "below row K-1"
        return self.toggle_insert_below(index - 1)

    def is_inserting_below(self, index: int) -> bool:
        return self.insert_after is not None and self.insert_after == index

    def is_inserting_above(self, index: int) -> bool:
        return self.insert_after is not None and self.insert_after == index - 1


def copy_rows(snapshot: SheetSnapshot, indices: Iterable[int]) -> List[List[str]]:
    """
    Cell values of the given absolute rows, in sheet order, copied by value.
    """
    out: List[List[str]] = []
    for idx in sorted(set(indices)):
        if 0 <= idx < len(snapshot.rows):
            out.append([str(c) for c in snapshot.rows[idx].cells])
    return out


def rows_to_tsv(rows: Iterable[Sequence[str]]) -> str:
    return "\n".join("\t".join(r) for r in rows)


# ---------------------------
# Last-assignment detection
# ---------------------------

@dataclass(frozen=True)
class LastAssignment:
    person: str
    play: str


def find_last_assignment(snapshot: SheetSnapshot, row_index: int) -> Optional[LastAssignment]:
    """
    If deleting `row_index` removes the only row whose person cell equals this
    row's person cell (trimmed, case-insensitive), report who and from which play.
    """
    person_col = snapshot.column("person")
    if person_col is None or row_index < 0 or row_index >= len(snapshot.rows):
        return None

    play_col = snapshot.column("play")
    row = snapshot.rows[row_index]
    person = row.cell(person_col).strip()
    if not person:
        return None

    key = tr_lower(person)
    count = sum(1 for r in snapshot.rows if tr_lower(r.cell(person_col).strip()) == key)
    if count != 1:
        return None
    return LastAssignment(person=person, play=row.cell(play_col).strip())
