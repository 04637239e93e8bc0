# -*- coding: utf-8 -*-
import pytest

from roster_categories import DEFAULT_STYLE, KNOWN_CATEGORIES, classify, is_extra, style_class


@pytest.mark.parametrize(
    "category, expected",
    [
        ("Oyuncu", "actor"),
        ("Oyuncu/Figüran", "actor"),
        ("Figüran", "extra"),
        ("Figüran/Müzisyen", "extra"),
        ("Yönetim/Figüran", "extra"),
        ("Koro/Dans", "ensemble"),
        ("Orkestra", "ensemble"),
        ("Işık – Tasarım", "lighting"),
        ("Tasarım", "design"),
        ("Müzisyen", "musician"),
        ("Hareket / Koreografi", "choreography"),
        ("Sahne Amiri", "stage-manager"),
        ("Yönetim", "management"),
        ("Ses – Kondüvit", "sound"),
        ("Dramaturgi", "dramaturgy"),
        ("Sahne Arkası", DEFAULT_STYLE),
        ("", DEFAULT_STYLE),
    ],
)
def test_style_class_first_rule_wins(category, expected):
    assert style_class(category) == expected


def test_extra_predicate_ignores_case_and_diacritics():
    assert is_extra("FİGÜRAN")
    assert is_extra("Figuran")
    assert is_extra("FIGURAN")
    assert is_extra("Oyuncu/FIGURAN")
    assert classify("FIGURAN") == classify("Figüran")
    assert is_extra("Oyuncu/Figüran")
    assert not is_extra("Oyuncu")
    assert not is_extra(None)


def test_actor_that_is_also_extra():
    c = classify("Oyuncu/Figüran")
    assert c.style_class == "actor"
    assert c.is_extra


def test_classify_is_stable():
    for cat in KNOWN_CATEGORIES:
        assert classify(cat) == classify(cat)
