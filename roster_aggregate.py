# -*- coding: utf-8 -*-
"""
roster_aggregate.py

Derived views over parsed roster records. Everything here is a pure function
of the record list; nothing is cached or persisted.

- group_by_play     -> PlaySummary per play, locale sorted by name
- group_by_person   -> PersonSummary per person, most-cast first
- overlap           -> onlyA / onlyB / common partition of two name sets
- query helpers used by the listing, search, distribution and chart views
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from roster_categories import is_extra
from roster_parser import Record
from roster_text import split_people, tr_contains, tr_lower, tr_sort_key, tr_sorted


CHILD_PLAY_MARKERS = ("Ç.O", "(Ç)")

OTHER_CATEGORY = "Diğer"
TOP_CATEGORY_COUNT = 12

TSV_HEADERS = ["Oyun", "Kategori", "Görev", "Kişi"]


# -------------
# Data classes
# -------------

@dataclass
class PlaySummary:
    name: str
    person_count: int
    record_count: int
    categories: List[str] = field(default_factory=list)


@dataclass
class PersonSummary:
    name: str
    plays: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)


@dataclass
class Overlap:
    only_a: List[str]
    only_b: List[str]
    common: List[str]


@dataclass
class PersonRoles:
    name: str
    roles_a: str = ""
    roles_b: str = ""


@dataclass
class PlayComparison:
    only_a: List[PersonRoles]
    only_b: List[PersonRoles]
    common: List[PersonRoles]


# ----------------
# Core aggregation
# ----------------

def group_by_play(records: Iterable[Record]) -> List[PlaySummary]:
    buckets: Dict[str, Dict[str, object]] = {}
    for r in records:
        entry = buckets.setdefault(r.play, {"people": set(), "rows": 0, "cats": set()})
        entry["people"].update(split_people(r.person))
        entry["rows"] += 1
        cat = r.category.strip()
        if cat:
            entry["cats"].add(cat)

    summaries = [
        PlaySummary(
            name=name,
            person_count=len(e["people"]),
            record_count=int(e["rows"]),
            categories=tr_sorted(e["cats"]),
        )
        for name, e in buckets.items()
    ]
    summaries.sort(key=lambda p: tr_sort_key(p.name))
    return summaries


def group_by_person(records: Iterable[Record]) -> List[PersonSummary]:
    """
    Records without a person are skipped. Ties in play count keep first-seen order.
    """
    plays: Dict[str, Set[str]] = {}
    roles: Dict[str, Set[str]] = {}
    for r in records:
        if not r.person:
            continue
        role = r.role.strip()
        for name in split_people(r.person):
            plays.setdefault(name, set()).add(r.play)
            roles.setdefault(name, set())
            if role:
                roles[name].add(role)

    out = [PersonSummary(name=n, plays=tr_sorted(p), roles=tr_sorted(roles[n])) for n, p in plays.items()]
    out.sort(key=lambda s: len(s.plays), reverse=True)
    return out


def overlap(set_a: Iterable[str], set_b: Iterable[str]) -> Overlap:
    a = set(set_a)
    b = set(set_b)
    return Overlap(only_a=tr_sorted(a - b), only_b=tr_sorted(b - a), common=tr_sorted(a & b))


# ----------------------
# Person / play lookups
# ----------------------

def all_people(records: Iterable[Record]) -> List[str]:
    names: Set[str] = set()
    for r in records:
        names.update(split_people(r.person))
    return tr_sorted(names)


def person_plays(records: Iterable[Record], name: str) -> Set[str]:
    """
    Plays whose person field mentions `name` (case-insensitive substring).
    """
    needle = (name or "").strip()
    if not needle:
        return set()
    return {r.play for r in records if tr_contains(r.person, needle)}


def play_people(records: Iterable[Record], play: str) -> Set[str]:
    return set(play_roles(records, play).keys())


def play_roles(records: Iterable[Record], play: str) -> Dict[str, List[str]]:
    roles: Dict[str, List[str]] = {}
    for r in records:
        if r.play != play:
            continue
        for name in split_people(r.person):
            bucket = roles.setdefault(name, [])
            if r.role and r.role not in bucket:
                bucket.append(r.role)
    return roles


def compare_people(records: Sequence[Record], person_a: str, person_b: str) -> Overlap:
    return overlap(person_plays(records, person_a), person_plays(records, person_b))


def compare_plays(records: Sequence[Record], play_a: str, play_b: str) -> PlayComparison:
    roles_a = play_roles(records, play_a)
    roles_b = play_roles(records, play_b)
    o = overlap(roles_a.keys(), roles_b.keys())
    return PlayComparison(
        only_a=[PersonRoles(n, roles_a=", ".join(roles_a[n])) for n in o.only_a],
        only_b=[PersonRoles(n, roles_b=", ".join(roles_b[n])) for n in o.only_b],
        common=[PersonRoles(n, ", ".join(roles_a[n]), ", ".join(roles_b[n])) for n in o.common],
    )


# -------------
# View filters
# -------------

def is_child_play(name: str) -> bool:
    return any(m in (name or "") for m in CHILD_PLAY_MARKERS)


def filter_plays(records: Sequence[Record], query: str = "", kind: str = "all") -> List[PlaySummary]:
    """
    kind: "all" | "adult" | "child". The query matches the play name or any
    person, role or category on the play's rows (Turkish case-insensitive).
    """
    if kind not in ("all", "adult", "child"):
        raise ValueError(f"Unknown play kind: {kind}")

    plays = group_by_play(records)
    if kind == "adult":
        plays = [p for p in plays if not is_child_play(p.name)]
    elif kind == "child":
        plays = [p for p in plays if is_child_play(p.name)]

    q = tr_lower((query or "").strip())
    if not q:
        return plays

    hits: Set[str] = set()
    for r in records:
        if any(q in tr_lower(v) for v in (r.play, r.person, r.role, r.category)):
            hits.add(r.play)
    return [p for p in plays if p.name in hits]


def search_records(
    records: Iterable[Record],
    category: str = "",
    play: str = "",
    person: str = "",
) -> List[Record]:
    out: List[Record] = []
    for r in records:
        if category and not tr_contains(r.category, category):
            continue
        if play and not tr_contains(r.play, play):
            continue
        if person and not tr_contains(r.person, person):
            continue
        out.append(r)
    return out


def distribution(
    records: Sequence[Record],
    exact_play_count: Optional[int] = None,
    name: str = "",
    play: str = "",
) -> List[PersonSummary]:
    """
    Person summaries, optionally only people cast in exactly N plays.
    exact_play_count of None or 1 means no restriction.
    """
    people = group_by_person(records)
    if exact_play_count is not None and exact_play_count > 1:
        people = [p for p in people if len(p.plays) == exact_play_count]
    if name.strip():
        people = [p for p in people if tr_contains(p.name, name.strip())]
    if play.strip():
        people = [p for p in people if any(tr_contains(o, play.strip()) for o in p.plays)]
    return people


def plays_by_headcount(records: Iterable[Record]) -> List[PlaySummary]:
    return sorted(group_by_play(records), key=lambda p: p.person_count, reverse=True)


def category_counts(records: Iterable[Record], top: int = TOP_CATEGORY_COUNT) -> List[tuple]:
    """
    (category, row count) pairs, largest first; the tail beyond `top` is folded
    into a single "Diğer" entry.
    """
    counts = Counter(r.category.strip() for r in records if r.category.strip())
    ranked = counts.most_common()
    head = ranked[:top]
    rest = sum(n for _, n in ranked[top:])
    if rest:
        head.append((OTHER_CATEGORY, rest))
    return head


def records_to_tsv(records: Iterable[Record], categories: Optional[Iterable[str]] = None) -> str:
    keep = None if categories is None else {c.strip() for c in categories}
    lines = ["\t".join(TSV_HEADERS)]
    for r in records:
        if keep is not None and r.category.strip() not in keep:
            continue
        lines.append("\t".join([r.play, r.category, r.role, r.person]))
    return "\n".join(lines)


def extras_by_person(records: Iterable[Record]) -> Dict[str, List[str]]:
    """
    Every person on an extra/figurant row, with the plays they appear in as one.
    """
    plays: Dict[str, Set[str]] = {}
    for r in records:
        if not is_extra(r.category):
            continue
        for name in split_people(r.person):
            plays.setdefault(name, set()).add(r.play)
    return {n: tr_sorted(p) for n, p in plays.items()}


def missing_extras(records: Iterable[Record], registered: Iterable[str]) -> List[tuple]:
    """
    (name, plays) for extras found in the roster but absent from the registry.
    Names are compared trimmed and Turkish case-insensitive.
    """
    known = {tr_lower(n.strip()) for n in registered if n and n.strip()}
    found = extras_by_person(records)
    return [(n, found[n]) for n in tr_sorted(found) if tr_lower(n) not in known]
