# -*- coding: utf-8 -*-
"""
roster_categories.py

Maps free-text category strings to a display style class and to the
extra/figurant predicate. Rules are tested in order; the first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from roster_text import tr_lower


EXTRA_MARKERS = ("figüran", "figuran")

DEFAULT_STYLE = "default"

# Categories as they appear in the production roster (used for suggestions).
KNOWN_CATEGORIES = [
    "Oyuncu",
    "Figüran",
    "Figüran/Müzisyen",
    "Figüran/Yönetim",
    "Oyuncu/Figüran",
    "Koro/Dans",
    "Orkestra",
    "Tasarım",
    "Işık – Tasarım",
    "Işık Kontrol",
    "Kostüm",
    "Müzisyen",
    "Hareket / Koreografi",
    "Sahne Amiri",
    "Yönetim",
    "Yönetim/Figüran",
    "Ses – Kondüvit",
    "Ses-Kondüvit",
    "Dramaturgi",
    "Sahne Arkası",
    "Sahne Dekor (Sorumlu)",
    "Dekor/Aksesuar",
    "Video / Görüntü",
    "Peruk – Makyaj",
    "Sanatsal Denetim",
    "Uzman",
    "Yazar",
]

# (style class, prefixes). "extra" is matched by marker substring instead.
# "Oyuncu/Figüran" is an actor and "Yönetim/Figüran" an extra because of this order.
STYLE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("actor", ("Oyuncu",)),
    ("extra", ()),
    ("ensemble", ("Koro", "Orkestra")),
    ("design", ("Tasarım",)),
    ("lighting", ("Işık",)),
    ("costume", ("Kostüm",)),
    ("musician", ("Müzisyen",)),
    ("choreography", ("Hareket",)),
    ("stage-manager", ("Sahne Amiri",)),
    ("management", ("Yönetim",)),
    ("sound", ("Ses",)),
    ("dramaturgy", ("Dramaturgi",)),
)


@dataclass(frozen=True)
class CategoryClass:
    style_class: str
    is_extra: bool


def is_extra(category: str) -> bool:
    # "FIGURAN" folds to "fıguran"; match the ASCII spelling too
    c = tr_lower((category or "").strip())
    ascii_c = c.replace("ı", "i")
    return any(m in c or m in ascii_c for m in EXTRA_MARKERS)


def style_class(category: str) -> str:
    c = (category or "").strip()
    extra = is_extra(c)
    for style, prefixes in STYLE_RULES:
        if style == "extra":
            if extra:
                return style
            continue
        if any(c == p or c.startswith(p) for p in prefixes):
            return style
    return DEFAULT_STYLE


def classify(category: str) -> CategoryClass:
    return CategoryClass(style_class=style_class(category), is_extra=is_extra(category))
