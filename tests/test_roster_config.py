# -*- coding: utf-8 -*-
import pytest

from roster_config import FALLBACK_SHEET_HEADERS, RosterConfig


def test_from_env_mapping():
    cfg = RosterConfig.from_env(
        {"ROSTER_API_URL": "http://sheets:8080/", "ROSTER_API_TIMEOUT": "5", "ROSTER_DEBUG": "Yes"}
    )
    assert cfg.api_url == "http://sheets:8080"
    assert cfg.api_timeout == 5.0
    assert cfg.debug
    assert cfg.log_dir == "logs"


def test_bad_timeout():
    with pytest.raises(ValueError):
        RosterConfig.from_env({"ROSTER_API_TIMEOUT": "soon"})


def test_overrides_skip_none():
    cfg = RosterConfig().with_overrides(api_url=None, log_dir="var/log")
    assert cfg.api_url == "http://localhost:5000"
    assert cfg.log_dir == "var/log"


def test_sheet_defaults():
    cfg = RosterConfig()
    assert cfg.headers_for(cfg.archive_sheet) == ["Oyun Adı", "Kategori", "Görev", "Kişi"]
    assert cfg.headers_for("YENİ") == FALLBACK_SHEET_HEADERS
    assert cfg.dependent_sheets(cfg.main_sheet) == [cfg.holding_sheet, cfg.extras_sheet]
    assert cfg.dependent_sheets(cfg.archive_sheet) == []
