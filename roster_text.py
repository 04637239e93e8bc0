# -*- coding: utf-8 -*-
"""
roster_text.py

Turkish-aware text helpers shared by the roster modules:
- case folding that respects dotted/dotless I
- HTML entity decoding for values exported by the sheet backend
- a collation key approximating the "tr" locale ordering
- comma-split of co-assigned person fields
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List, Tuple


# ----------------
# Case folding
# ----------------

# Applied before str.lower(): Python maps "I" -> "i" and "İ" -> "i̇" otherwise.
TR_UPPER_TO_LOWER = (
    ("İ", "i"),
    ("I", "ı"),
    ("Ğ", "ğ"),
    ("Ü", "ü"),
    ("Ş", "ş"),
    ("Ö", "ö"),
    ("Ç", "ç"),
)

HTML_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
)

TR_ALPHABET = "abcçdefgğhıijklmnoöpqrsştuüvwxyz"
_TR_RANK = {ch: i for i, ch in enumerate(TR_ALPHABET)}


def tr_lower(s: str) -> str:
    """
    Lowercase using Turkish rules (İ -> i, I -> ı) before the generic lower().
    """
    t = str(s)
    for upper, lower in TR_UPPER_TO_LOWER:
        t = t.replace(upper, lower)
    return t.lower()


def tr_contains(haystack: str, needle: str) -> bool:
    return tr_lower(needle) in tr_lower(haystack)


def decode_entities(s: str) -> str:
    """
    Reverse the small set of HTML entities the sheet export produces.
    &amp; is decoded first, so "&amp;lt;" ends up as "<".
    """
    t = str(s)
    for entity, ch in HTML_ENTITIES:
        t = t.replace(entity, ch)
    return t


# ---------
# Collation
# ---------

def _primary_weight(ch: str) -> Tuple[int, int]:
    if ch in _TR_RANK:
        return (3, _TR_RANK[ch])
    if ch.isdigit():
        return (2, int(ch) if ch in "0123456789" else ord(ch))
    # Non-Turkish accented letters collate with their base letter (é -> e).
    base = unicodedata.normalize("NFD", ch)[0]
    if base in _TR_RANK:
        return (3, _TR_RANK[base])
    if ch.isspace():
        return (0, 0)
    return (1, ord(ch))


def tr_sort_key(s: str) -> Tuple[Tuple[Tuple[int, int], ...], Tuple[int, ...], str]:
    """
    Sort key close to localeCompare(..., "tr"): alphabetic order of the Turkish
    alphabet first, then lowercase before uppercase, then the raw string.
    """
    t = str(s)
    folded = tr_lower(t)
    primary = tuple(_primary_weight(ch) for ch in folded)
    case = tuple(0 if ch == lo else 1 for ch, lo in zip(t, folded))
    return primary, case, t


def tr_sorted(values: Iterable[str]) -> List[str]:
    return sorted(values, key=tr_sort_key)


# --------------
# Person fields
# --------------

_WS = re.compile(r"\s+")


def split_people(value: str) -> List[str]:
    """
    Split a co-assigned person cell ("Ahmet, Mehmet") into trimmed names.
    Empty fragments are dropped.
    """
    if not value:
        return []
    return [p.strip() for p in str(value).split(",") if p.strip()]


def collapse_spaces(value: str) -> str:
    return _WS.sub(" ", str(value or "")).strip()
