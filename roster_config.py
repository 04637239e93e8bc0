# -*- coding: utf-8 -*-
"""
roster_config.py

Runtime settings. Values come from the environment (a .env file is loaded
first) and can be overridden by CLI flags.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv


# -------------------
# Well-known sheets
# -------------------

MAIN_SHEET = "BÜTÜN OYUNLAR"
ARCHIVE_SHEET = "ARŞİV OYUNLAR"
EXTRAS_SHEET = "FİGÜRAN LİSTESİ"
HOLDING_SHEET = "GÖREVLİ OLMAYAN"
NOTIFICATIONS_SHEET = "BİLDİRİMLER"

# Header rows used when a missing sheet is created.
DEFAULT_SHEET_HEADERS: Dict[str, List[str]] = {
    HOLDING_SHEET: ["Kişi", "Kategori", "Başlangıç", "Bitiş", "Açıklama"],
    ARCHIVE_SHEET: ["Oyun Adı", "Kategori", "Görev", "Kişi"],
}
FALLBACK_SHEET_HEADERS = ["Sütun 1", "Sütun 2", "Sütun 3"]

EXTRAS_HEADERS = ["Kişi", "Oyun", "Kategori"]

# Deleting the oldest notifications removes this many rows at once.
NOTIFICATIONS_OLDEST_BATCH = 20

TRUTHY = ("1", "true", "yes", "on")


@dataclass
class RosterConfig:
    api_url: str = "http://localhost:5000"
    api_timeout: float = 30.0
    log_dir: str = "logs"
    debug: bool = False
    main_sheet: str = MAIN_SHEET
    archive_sheet: str = ARCHIVE_SHEET
    extras_sheet: str = EXTRAS_SHEET
    holding_sheet: str = HOLDING_SHEET
    notifications_sheet: str = NOTIFICATIONS_SHEET
    default_headers: Dict[str, List[str]] = field(default_factory=lambda: {k: list(v) for k, v in DEFAULT_SHEET_HEADERS.items()})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RosterConfig":
        if environ is None:
            load_dotenv()
            environ = os.environ
        cfg = cls()
        cfg.api_url = environ.get("ROSTER_API_URL", cfg.api_url).rstrip("/")
        try:
            cfg.api_timeout = float(environ.get("ROSTER_API_TIMEOUT", cfg.api_timeout))
        except ValueError:
            raise ValueError(f"ROSTER_API_TIMEOUT must be a number, got {environ.get('ROSTER_API_TIMEOUT')!r}")
        cfg.log_dir = environ.get("ROSTER_LOG_DIR", cfg.log_dir)
        cfg.debug = str(environ.get("ROSTER_DEBUG", "")).strip().lower() in TRUTHY
        return cfg

    def with_overrides(self, **overrides) -> "RosterConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def headers_for(self, sheet: str) -> List[str]:
        return list(self.default_headers.get(sheet, FALLBACK_SHEET_HEADERS))

    def dependent_sheets(self, sheet: str) -> List[str]:
        """
        Sheets whose views are derived from counts in `sheet`.
        """
        if sheet == self.main_sheet:
            return [self.holding_sheet, self.extras_sheet]
        return []
