# -*- coding: utf-8 -*-
"""
roster_store.py

Access to the external sheet backend and the process-wide snapshot cache.

Backend REST contract:
- GET    /api/sheets                          -> {"sheets": [...]}
- GET    /api/sheets/{name}                   -> {"headers": [...], "rows": [[...]]}
- PUT    /api/sheets/{name}/cell              {row, col, value}
- POST   /api/sheets/{name}/row               {values}
- POST   /api/sheets/{name}/row/insert        {afterRow, values}
- DELETE /api/sheets/{name}/row/{index}
- POST   /api/archive-play                    {playName} -> {movedCount}
- POST   /api/sync-figuran                    -> {added}
- DELETE /api/notifications
- DELETE /api/notifications/oldest
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import requests

from roster_parser import LOGGER_NAME


DEFAULT_TIMEOUT = 30

READ_OPERATIONS = ("list_sheets", "read_sheet")


# -------
# Errors
# -------

class RosterError(Exception):
    pass


class SheetNotFoundError(RosterError):
    def __init__(self, sheet: str):
        super().__init__(f"Sheet '{sheet}' does not exist yet.")
        self.sheet = sheet


class StoreError(RosterError):
    """The backend could not be reached or answered with an error."""


class MutationRejectedError(StoreError):
    def __init__(self, operation: str, sheet: str, detail: str = ""):
        super().__init__(f"{operation} on '{sheet}' rejected: {detail}" if detail else f"{operation} on '{sheet}' rejected")
        self.operation = operation
        self.sheet = sheet
        self.detail = detail


class StaleSnapshotError(RosterError):
    def __init__(self, sheet: str, generation: int, current: int):
        super().__init__(
            f"Snapshot of '{sheet}' (generation {generation}) is stale (current {current}); "
            "re-read the sheet before issuing another positional mutation."
        )
        self.sheet = sheet
        self.generation = generation
        self.current = current


# ------------------
# Store interface
# ------------------

class SheetStore(ABC):
    """
    Tabular backend addressed by sheet name and zero-based row position.
    Mutations raise MutationRejectedError on any failure.
    """

    @abstractmethod
    def list_sheets(self) -> List[str]:
        ...

    @abstractmethod
    def read_sheet(self, name: str) -> Dict[str, Any]:
        """Return {"headers": [...], "rows": [[...], ...]} or raise SheetNotFoundError."""

    @abstractmethod
    def update_cell(self, name: str, row: int, col: int, value: str) -> None:
        ...

    @abstractmethod
    def append_row(self, name: str, values: Sequence[str]) -> None:
        ...

    @abstractmethod
    def insert_row(self, name: str, after_row: int, values: Sequence[str]) -> None:
        ...

    @abstractmethod
    def delete_row(self, name: str, row: int) -> None:
        ...

    @abstractmethod
    def archive_play(self, play_name: str) -> int:
        """Move the play's rows to the archive sheet; return the moved row count."""

    @abstractmethod
    def sync_extras(self) -> int:
        """Append missing extras to the extras registry; return how many were added."""

    @abstractmethod
    def clear_notifications(self) -> None:
        ...

    @abstractmethod
    def clear_oldest_notifications(self) -> None:
        ...


class RestSheetStore(SheetStore):
    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(LOGGER_NAME)

    def _sheet_url(self, name: str, suffix: str = "") -> str:
        return f"{self.base_url}/api/sheets/{quote(name, safe='')}{suffix}"

    def _send(self, operation: str, sheet: str, method: str, url: str, payload: Optional[dict] = None) -> Any:
        try:
            resp = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            if operation in READ_OPERATIONS:
                raise StoreError(f"{operation} on '{sheet}' failed: {e}") from e
            raise MutationRejectedError(operation, sheet, str(e)) from e

        if resp.status_code == 404 and operation == "read_sheet":
            raise SheetNotFoundError(sheet)
        if not 200 <= resp.status_code < 300:
            if operation in READ_OPERATIONS:
                raise StoreError(f"{operation} on '{sheet}' failed: HTTP {resp.status_code}")
            raise MutationRejectedError(operation, sheet, f"HTTP {resp.status_code}: {resp.text[:200]}")

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            return {}

    def list_sheets(self) -> List[str]:
        data = self._send("list_sheets", "*", "GET", f"{self.base_url}/api/sheets")
        return [str(s) for s in (data or {}).get("sheets", [])]

    def read_sheet(self, name: str) -> Dict[str, Any]:
        data = self._send("read_sheet", name, "GET", self._sheet_url(name)) or {}
        return {"headers": list(data.get("headers") or []), "rows": list(data.get("rows") or [])}

    def update_cell(self, name: str, row: int, col: int, value: str) -> None:
        self._send("update_cell", name, "PUT", self._sheet_url(name, "/cell"), {"row": row, "col": col, "value": value})

    def append_row(self, name: str, values: Sequence[str]) -> None:
        self._send("append_row", name, "POST", self._sheet_url(name, "/row"), {"values": list(values)})

    def insert_row(self, name: str, after_row: int, values: Sequence[str]) -> None:
        self._send(
            "insert_row", name, "POST", self._sheet_url(name, "/row/insert"),
            {"afterRow": after_row, "values": list(values)},
        )

    def delete_row(self, name: str, row: int) -> None:
        self._send("delete_row", name, "DELETE", self._sheet_url(name, f"/row/{int(row)}"))

    def archive_play(self, play_name: str) -> int:
        data = self._send("archive_play", play_name, "POST", f"{self.base_url}/api/archive-play", {"playName": play_name})
        return int((data or {}).get("movedCount", 0) or 0)

    def sync_extras(self) -> int:
        data = self._send("sync_extras", "*", "POST", f"{self.base_url}/api/sync-figuran", {})
        return int((data or {}).get("added", 0) or 0)

    def clear_notifications(self) -> None:
        self._send("clear_notifications", "*", "DELETE", f"{self.base_url}/api/notifications")

    def clear_oldest_notifications(self) -> None:
        self._send("clear_oldest_notifications", "*", "DELETE", f"{self.base_url}/api/notifications/oldest")


# -------------
# Snapshot cache
# -------------

class SnapshotCache:
    """
    Sheet name -> snapshot. Lives for the whole process.

    invalidate() drops the entry and bumps the key's generation; a snapshot
    fetched under an older generation is not stored by put().
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._lock = threading.Lock()
        self._entries: Dict[str, Any] = {}
        self._generations: Dict[str, int] = {}
        self.logger = logger or logging.getLogger(LOGGER_NAME)

    def get(self, key: str) -> Any:
        with self._lock:
            return self._entries.get(key)

    def generation(self, key: str) -> int:
        with self._lock:
            return self._generations.get(key, 0)

    def put(self, key: str, value: Any, generation: int) -> bool:
        with self._lock:
            current = self._generations.get(key, 0)
            if generation != current:
                self.logger.debug(f"cache: discarding '{key}' fetched at generation {generation} (current {current})")
                return False
            self._entries[key] = value
            return True

    def invalidate(self, key: str) -> int:
        with self._lock:
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1
            gen = self._generations[key]
        self.logger.debug(f"cache: invalidated '{key}' -> generation {gen}")
        return gen

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())
