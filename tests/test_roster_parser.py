# -*- coding: utf-8 -*-
import logging

from roster_parser import Record, map_columns, parse_records, records_frame, resolve_column

from conftest import HEADERS, SCENARIO_ROWS


def test_scenario_rows_parse_to_records():
    records = parse_records(HEADERS, SCENARIO_ROWS)
    assert records == [
        Record("Hamlet", "Oyuncu", "Kral", "Ahmet, Mehmet"),
        Record("Hamlet", "Figüran", "-", "Mehmet"),
    ]


def test_columns_resolved_independent_of_order_and_case():
    headers = ["KİŞİ", "Görev Adı", "OYUN ADI", "Kategori (Bölüm)"]
    rows = [["Ayşe", "Ophelia", "Hamlet", "Oyuncu"]]
    assert parse_records(headers, rows) == [Record("Hamlet", "Oyuncu", "Ophelia", "Ayşe")]


def test_exact_label_beats_prefix():
    headers = ["Oyun Sırası", "Oyun"]
    assert resolve_column(headers, "play") == 1


def test_missing_column_degrades_to_empty(caplog):
    with caplog.at_level(logging.WARNING, logger="theater_roster"):
        records = parse_records(["Oyun", "Kategori", "Görev"], [["Hamlet", "Oyuncu", "Kral"]])
    assert records == [Record("Hamlet", "Oyuncu", "Kral", "")]
    assert any("person column not found" in m for m in caplog.messages)

    mapping, warnings = map_columns(["Başka"])
    assert mapping == {"play": None, "category": None, "role": None, "person": None}
    assert len(warnings) == 4


def test_rows_without_play_are_dropped():
    rows = [["", "Oyuncu", "Kral", "Ahmet"], ["   ", "Oyuncu", "", ""], ["Cimri", "", "", ""]]
    assert parse_records(HEADERS, rows) == [Record("Cimri", "", "", "")]


def test_cells_are_decoded_and_trimmed():
    rows = [["  Romeo &amp; Juliet ", "Oyuncu&nbsp;", " Romeo", " Can "]]
    assert parse_records(HEADERS, rows) == [Record("Romeo & Juliet", "Oyuncu", "Romeo", "Can")]


def test_short_rows_and_numeric_cells():
    rows = [["Hamlet", "Oyuncu"], [1984, 2.0, None, "Ali"]]
    assert parse_records(HEADERS, rows) == [
        Record("Hamlet", "Oyuncu", "", ""),
        Record("1984", "2", "", "Ali"),
    ]


def test_parse_is_idempotent():
    assert parse_records(HEADERS, SCENARIO_ROWS) == parse_records(HEADERS, SCENARIO_ROWS)


def test_empty_input():
    assert parse_records(HEADERS, []) == []
    assert parse_records([], []) == []
    assert list(records_frame([]).columns) == ["play", "category", "role", "person"]
