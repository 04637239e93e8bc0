# -*- coding: utf-8 -*-
import pytest

from memory_store import MemorySheetStore
from roster_config import RosterConfig
from roster_mutations import RosterService


HEADERS = ["Oyun", "Kategori", "Görev", "Kişi"]

SCENARIO_ROWS = [
    ["Hamlet", "Oyuncu", "Kral", "Ahmet, Mehmet"],
    ["Hamlet", "Figüran", "-", "Mehmet"],
]

ROSTER_ROWS = [
    ["Hamlet", "Oyuncu", "Hamlet", "Ayşe Yılmaz"],
    ["Hamlet", "Oyuncu", "Ophelia", "Zeynep Kaya"],
    ["Hamlet", "Figüran", "Asker", "Mehmet Demir, Can Öz"],
    ["Cimri", "Oyuncu", "Harpagon", "Ayşe Yılmaz"],
    ["Cimri", "Işık – Tasarım", "Işık Tasarımı", "İlker Işık"],
    ["Pinokyo (Ç)", "Oyuncu", "Pinokyo", "Ayşe Yılmaz, Zeynep Kaya"],
    ["Pinokyo (Ç)", "Figüran/Müzisyen", "Davulcu", "Can Öz"],
]


@pytest.fixture
def config():
    return RosterConfig()


@pytest.fixture
def store(config):
    return MemorySheetStore(
        {
            config.main_sheet: {"headers": list(HEADERS), "rows": [list(r) for r in ROSTER_ROWS]},
            config.extras_sheet: {"headers": ["Kişi", "Oyun", "Kategori"], "rows": [["CAN ÖZ", "Hamlet", "Figüran"]]},
            config.notifications_sheet: {
                "headers": ["Zaman", "Mesaj"],
                "rows": [[f"2026-10-{i + 1:02d}", f"mesaj {i}"] for i in range(25)],
            },
        },
        config=config,
    )


@pytest.fixture
def service(store, config):
    return RosterService(store, config=config)
