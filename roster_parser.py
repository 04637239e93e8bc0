# -*- coding: utf-8 -*-
"""
roster_parser.py

Maps a raw sheet snapshot (header row + data rows) to strict 4-field records.

Canonical fields (ONLY these):
- play      ("Oyun", "Oyun Adı", ...)
- category  ("Kategori", ...)
- role      ("Görev", ...)
- person    ("Kişi", ...; may hold several comma-separated names)

Columns are resolved by header text, never by position. A field whose column
cannot be resolved reads as "" for every row. Rows without a play are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from pandas.api.types import is_scalar

from roster_text import collapse_spaces, decode_entities, tr_lower


LOGGER_NAME = "theater_roster"

RECORD_FIELDS = ["play", "category", "role", "person"]

# Exact labels are tried first, then prefixes.
HEADER_EXACT_LABELS: Dict[str, Tuple[str, ...]] = {
    "play": ("oyun", "oyun adı", "oyun adi"),
    "category": ("kategori",),
    "role": ("görev", "gorev"),
    "person": ("kişi", "kisi"),
}

HEADER_PREFIXES: Dict[str, Tuple[str, ...]] = {
    "play": ("oyun",),
    "category": ("kategori",),
    "role": ("görev", "gorev"),
    "person": ("kişi", "kisi"),
}

# Header row written when a play-based sheet is created from scratch.
RECORD_HEADERS = ["Oyun Adı", "Kategori", "Görev", "Kişi"]


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


@dataclass(frozen=True)
class Record:
    play: str
    category: str
    role: str
    person: str


# ----------------
# Column mapping
# ----------------

def _norm_header(h: Any) -> str:
    """
    Normalize header text for matching: NBSP -> space, collapse, Turkish lower.
    """
    s = "" if is_na_scalar(h) else str(h)
    s = s.replace("\u00A0", " ").replace("\r", " ").replace("\n", " ")
    return tr_lower(collapse_spaces(s))


def resolve_column(headers: Sequence[Any], field: str) -> Optional[int]:
    """
    Index of the header matching `field`, exact label first, prefix second.
    """
    norm = [_norm_header(h) for h in headers]

    for i, h in enumerate(norm):
        if h in HEADER_EXACT_LABELS[field]:
            return i
    for i, h in enumerate(norm):
        if h and h.startswith(HEADER_PREFIXES[field]):
            return i
    return None


def map_columns(headers: Sequence[Any]) -> Tuple[Dict[str, Optional[int]], List[str]]:
    mapping: Dict[str, Optional[int]] = {f: resolve_column(headers, f) for f in RECORD_FIELDS}
    warnings: List[str] = []
    for f, idx in mapping.items():
        if idx is None:
            warnings.append(f"{f} column not found in headers {list(headers)}; reading as empty.")
    return mapping, warnings


# -------------------
# Extraction utilities
# -------------------

def is_na_scalar(v: Any) -> bool:
    """
    Safe NA check that never returns an array/Series.
    """
    if v is None:
        return True
    if is_scalar(v):
        return bool(pd.isna(v))
    return False


def cell_text(v: Any) -> str:
    if is_na_scalar(v):
        return ""
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def _safe_series_to_str(s: pd.Series) -> pd.Series:
    return s.apply(lambda v: decode_entities(cell_text(v)).strip())


def rows_frame(rows: Sequence[Sequence[Any]]) -> pd.DataFrame:
    """
    Ragged rows are padded with NA so short rows read as empty cells.
    """
    return pd.DataFrame([list(r) for r in rows], dtype=object)


def parse_records(
    headers: Sequence[Any],
    rows: Sequence[Sequence[Any]],
    logger: Optional[logging.Logger] = None,
) -> List[Record]:
    logger = logger or get_logger()
    mapping, warnings = map_columns(headers)
    for w in warnings:
        logger.warning(w)

    df = rows_frame(rows)
    out = pd.DataFrame(index=df.index)
    for f in RECORD_FIELDS:
        idx = mapping[f]
        if idx is not None and idx in df.columns:
            out[f] = _safe_series_to_str(df[idx])
        else:
            out[f] = ""

    rows_in = len(out)
    out = out.loc[out["play"] != ""] if rows_in else out
    logger.debug(f"parse_records: rows_in={rows_in} rows_out={len(out)} mapping={mapping}")

    return [Record(**{f: str(r[f]) for f in RECORD_FIELDS}) for r in out.to_dict("records")]


def records_frame(records: Sequence[Record]) -> pd.DataFrame:
    if not records:
        return pd.DataFrame(columns=RECORD_FIELDS)
    return pd.DataFrame([asdict(r) for r in records], columns=RECORD_FIELDS)
